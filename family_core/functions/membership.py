import logging
from typing import Optional

from family_core.datastore.base import BaseDatastore


class MembershipGuard:
    """Checks that a user belongs to the family owning a resource."""

    def __init__(self, datastore: BaseDatastore, logger: Optional[logging.Logger] = None):
        self.datastore = datastore
        self.logger = logger or logging.getLogger(__name__)

    def is_member(self, user_id: Optional[str], family_id: Optional[str]) -> bool:
        """
        Return whether `user_id` is listed in the family's `memberUids`.

        Fails closed: a missing family, missing ids or a failed lookup all yield False.
        """
        if not user_id or not family_id:
            self.logger.warning(f"[is_member] Missing user or family id (user={user_id}, family={family_id})")
            return False

        try:
            family = self.datastore.get_family(family_id)
        except Exception as e:
            self.logger.error(f"[is_member] Family lookup failed for family {family_id}: {e}")
            return False

        if family is None:
            self.logger.warning(f"[is_member] Family {family_id} does not exist")
            return False

        member_uids = family.get("memberUids")
        if not isinstance(member_uids, list):
            self.logger.warning(f"[is_member] Family {family_id} has no memberUids list")
            return False

        is_member = user_id in member_uids
        if not is_member:
            self.logger.info(f"[is_member] User {user_id} is not a member of family {family_id}")
        return is_member
