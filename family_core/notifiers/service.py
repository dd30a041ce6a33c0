"""
'notifiers/service.py': Document-change triggers of FamilySync.

Each trigger reacts to one document transition. Push delivery is best effort:
a recipient without a push token is skipped, and lookup or gateway failures
are logged with the family and triggering document, never raised. The document
write that fired the trigger is never undone.
"""
import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, Set

from google.api_core.exceptions import GoogleAPIError
from pydantic import ValidationError

from family_core.datastore.base import BaseDatastore
from family_core.datastore.firestore.exceptions import DatastoreError
from family_core.datastore.firestore.schemas import Family, User, UserRole
from family_core.messaging.base import BaseMessenger, MAX_MULTICAST_TOKENS
from family_core.messaging.exceptions import MessagingError
from family_core.messaging.schemas import MulticastResult, NotificationType, PushNotification
from family_core.utils import to_datetime
from .router import TriggerRouter
from .schemas import DocumentEvent, DocumentEventType

INFRASTRUCTURE_ERRORS = (DatastoreError, GoogleAPIError, MessagingError)


def is_purchased(item: Optional[Dict[str, Any]]) -> bool:
    # older clients write `isPurchased`
    item = item or {}
    return bool(item.get("purchased") or item.get("isPurchased"))


def assignee_ids(value: Any) -> Set[str]:
    if isinstance(value, str):
        return {value} if value else set()
    if isinstance(value, (list, tuple)):
        return {uid for uid in value if isinstance(uid, str) and uid}
    return set()


def same_instant(first: Any, second: Any) -> bool:
    first_time, second_time = to_datetime(first), to_datetime(second)
    if first_time is None or second_time is None:
        return first == second
    return first_time == second_time


class NotificationService:
    def __init__(self, datastore: BaseDatastore, messenger: BaseMessenger, logger: Optional[logging.Logger] = None):
        self.datastore = datastore
        self.messenger = messenger
        self.logger = logger or logging.getLogger(__name__)

    async def on_user_create(self, event: DocumentEvent) -> Optional[str]:
        """Create a family for a new user who has none, and link the user to it as a parent."""
        user_id = event.params.get("userId")
        user_data = event.after
        if not user_data:
            self.logger.error(f"[on_user_create] No user data found for new user {user_id}")
            return None

        if user_data.get("familyId"):
            return None

        family = Family.for_founder(user_id, user_data.get("name"))
        try:
            family_id = await asyncio.to_thread(
                self.datastore.create_family_for_user, user_id, family.to_firestore(), UserRole.PARENT.value
            )
        except INFRASTRUCTURE_ERRORS as e:
            self.logger.error(f"[on_user_create] Failed to create family for user {user_id}: {e}")
            return None

        if family_id is None:
            self.logger.info(f"[on_user_create] User {user_id} already linked to a family or gone, nothing to do")
        else:
            self.logger.info(f"[on_user_create] Created family {family_id} for user {user_id}")
        return family_id

    async def on_shopping_complete(self, event: DocumentEvent) -> None:
        """Ask parents for approval when a shopping item document is marked purchased."""
        family_id = event.params.get("familyId")
        item_id = event.params.get("itemId")
        if is_purchased(event.data) and not is_purchased(event.previous):
            await self._notify_purchase(family_id, item_id, event.data.get("name"))

    async def on_shopping_list_update(self, event: DocumentEvent) -> None:
        """Ask parents for approval for every item of a list that was just marked purchased."""
        family_id = event.params.get("familyId")
        before_items = event.previous.get("items") or {}
        after_items = event.data.get("items") or {}
        if not isinstance(before_items, dict) or not isinstance(after_items, dict):
            self.logger.warning(f"[on_shopping_list_update] List {event.params.get('listId')} has no items map")
            return

        purchased = [
            (item_id, item) for item_id, item in after_items.items()
            if isinstance(item, dict) and is_purchased(item) and not is_purchased(before_items.get(item_id))
        ]
        await asyncio.gather(*[
            self._notify_purchase(family_id, item_id, item.get("name")) for item_id, item in purchased
        ])

    async def on_task_assign(self, event: DocumentEvent) -> None:
        """Notify the assignee of a newly created task."""
        family_id = event.params.get("familyId")
        task_id = event.params.get("taskId")
        assigned_to = event.data.get("assignedTo")
        if not assigned_to:
            return

        notification = PushNotification(
            title="New Task Assigned",
            body=f"You have been assigned: {event.data.get('title')}",
            data={"type": NotificationType.TASK_ASSIGNMENT.value, "familyId": family_id, "taskId": task_id},
        )
        try:
            tokens = await self._tokens_for([assigned_to], family_id=family_id)
            if not tokens:
                return
            await asyncio.to_thread(self.messenger.send, notification, tokens[0])
            self.logger.info(
                f"[on_task_assign] Sent task assignment notification (familyId={family_id} taskId={task_id} assignedTo={assigned_to})"
            )
        except INFRASTRUCTURE_ERRORS as e:
            self.logger.error(f"[on_task_assign] Failed to notify assignee (familyId={family_id} taskId={task_id}): {e}")

    async def on_calendar_change(self, event: DocumentEvent) -> None:
        """Notify an event's assignees when its time or its assignee set changes."""
        family_id = event.params.get("familyId")
        event_id = event.params.get("eventId")
        after, before = event.data, event.previous

        time_changed = not same_instant(after.get("datetime"), before.get("datetime"))
        assignees_changed = assignee_ids(after.get("assignedTo")) != assignee_ids(before.get("assignedTo"))
        if not time_changed and not assignees_changed:
            return

        recipients = assignee_ids(after.get("assignedTo")) or assignee_ids(after.get("attendees"))
        notification = PushNotification(
            title="Calendar Event Updated",
            body=f"\"{after.get('title')}\" has been updated",
            data={"type": NotificationType.CALENDAR_UPDATE.value, "familyId": family_id, "eventId": event_id},
        )
        try:
            tokens = await self._tokens_for(sorted(recipients), family_id=family_id)
            if not tokens:
                return
            result = await self._multicast(notification, tokens, family_id=family_id, ref_id=event_id)
            self.logger.info(
                f"[on_calendar_change] Sent calendar update notifications (familyId={family_id} eventId={event_id} delivered={result.success_count})"
            )
        except INFRASTRUCTURE_ERRORS as e:
            self.logger.error(f"[on_calendar_change] Failed to notify attendees (familyId={family_id} eventId={event_id}): {e}")

    async def _notify_purchase(self, family_id: str, item_id: str, item_name: Optional[str]) -> None:
        notification = PushNotification(
            title="Shopping Item Purchased",
            body=f"{item_name} has been purchased and needs approval",
            data={"type": NotificationType.SHOPPING_APPROVAL.value, "familyId": family_id, "itemId": item_id},
        )
        try:
            family = await asyncio.to_thread(self.datastore.get_family, family_id)
            member_uids = (family or {}).get("memberUids") or []
            tokens = await self._tokens_for(member_uids, family_id=family_id, predicate=lambda user: user.is_parent)
            if not tokens:
                return
            result = await self._multicast(notification, tokens, family_id=family_id, ref_id=item_id)
            self.logger.info(
                f"[_notify_purchase] Sent shopping approval notifications (familyId={family_id} itemName={item_name} delivered={result.success_count})"
            )
        except INFRASTRUCTURE_ERRORS as e:
            self.logger.error(f"[_notify_purchase] Failed to notify parents (familyId={family_id} itemId={item_id}): {e}")

    async def _tokens_for(
        self,
        user_ids: List[str],
        family_id: Optional[str] = None,
        predicate: Optional[Callable[[User], bool]] = None,
    ) -> List[str]:
        """Resolve push tokens of the given users concurrently; unknown users and users without a token are skipped."""
        documents = await asyncio.gather(
            *[asyncio.to_thread(self.datastore.get_user, uid) for uid in user_ids],
            return_exceptions=True,
        )

        tokens = []
        for uid, document in zip(user_ids, documents):
            if isinstance(document, BaseException):
                self.logger.warning(f"[_tokens_for] Lookup of user {uid} failed (familyId={family_id}): {document}")
                continue
            if not document:
                continue
            try:
                user = User.model_validate(document)
            except ValidationError as e:
                self.logger.warning(f"[_tokens_for] Skipping malformed user {uid}: {e.error_count()} errors")
                continue
            if predicate is not None and not predicate(user):
                continue
            if user.fcm_token and user.fcm_token not in tokens:
                tokens.append(user.fcm_token)
        return tokens

    async def _multicast(self, notification: PushNotification, tokens: List[str], family_id: str, ref_id: str) -> MulticastResult:
        """Send to every token in chunks of at most `MAX_MULTICAST_TOKENS`, concurrently; failed chunks are logged."""
        chunks = [tokens[i:i + MAX_MULTICAST_TOKENS] for i in range(0, len(tokens), MAX_MULTICAST_TOKENS)]
        results = await asyncio.gather(
            *[asyncio.to_thread(self.messenger.send_multicast, notification, chunk) for chunk in chunks],
            return_exceptions=True,
        )

        total = MulticastResult()
        for chunk, result in zip(chunks, results):
            if isinstance(result, BaseException):
                self.logger.error(
                    f"[_multicast] Delivery of {len(chunk)} notifications failed (familyId={family_id} refId={ref_id}): {result}"
                )
                total = total.merge(MulticastResult(failure_count=len(chunk), failed_tokens=chunk))
                continue
            total = total.merge(result)
        return total


def build_router(service: NotificationService, logger: Optional[logging.Logger] = None) -> TriggerRouter:
    """Register every FamilySync trigger on a new router."""
    router = TriggerRouter(logger)
    router.register("users/{userId}", DocumentEventType.CREATED, service.on_user_create)
    router.register("families/{familyId}/shopping/{itemId}", DocumentEventType.UPDATED, service.on_shopping_complete)
    router.register("families/{familyId}/shoppingLists/{listId}", DocumentEventType.UPDATED, service.on_shopping_list_update)
    router.register("families/{familyId}/tasks/{taskId}", DocumentEventType.CREATED, service.on_task_assign)
    router.register("families/{familyId}/calendar/{eventId}", DocumentEventType.UPDATED, service.on_calendar_change)
    return router
