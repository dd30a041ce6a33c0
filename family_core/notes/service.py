"""
'notes/service.py': Family notes board for one member.

The board keeps a local copy of the family's notes. Dismissing and liking a
note change the local copy first and write to the datastore afterwards; when
the write fails the local change is reverted.
"""
import copy
import logging
from typing import Any, Dict, List, Optional

from google.api_core.exceptions import GoogleAPIError

from family_core.datastore.base import BaseDatastore
from family_core.datastore.firestore.exceptions import DatastoreError
from family_core.datastore.firestore.schemas import Note
from family_core.utils import utcnow

MISSING_IDS = "Missing familyId or userId"


class FamilyNotesService:
    def __init__(
        self,
        datastore: BaseDatastore,
        family_id: Optional[str],
        user_id: Optional[str],
        logger: Optional[logging.Logger] = None,
    ):
        self.datastore = datastore
        self.family_id = family_id
        self.user_id = user_id
        self.logger = logger or logging.getLogger(__name__)
        self.notes: List[Dict[str, Any]] = []

    def _require_ids(self) -> None:
        if not self.family_id or not self.user_id:
            raise ValueError(MISSING_IDS)

    def _find(self, note_id: str) -> Optional[Dict[str, Any]]:
        return next((note for note in self.notes if note.get("id") == note_id), None)

    def refresh(self) -> List[Dict[str, Any]]:
        """Reload the family's notes, newest first."""
        if not self.family_id:
            self.notes = []
            return self.notes
        self.notes = self.datastore.list_notes(self.family_id)
        return self.notes

    def visible_notes(self) -> List[Dict[str, Any]]:
        """Notes the current user has not dismissed."""
        if not self.user_id:
            return []
        return [note for note in self.notes if self.user_id not in (note.get("dismissedBy") or [])]

    def unread_count(self) -> int:
        if not self.user_id:
            return 0
        return sum(1 for note in self.visible_notes() if self.user_id not in (note.get("readBy") or []))

    def create_note(self, note_data: Dict[str, Any]) -> str:
        """
        Create a note authored by the current user, who has read it already.

        Returns:
            str: The new note ID.

        Raises:
            ValueError: If the family or user is not set.
        """
        self._require_ids()
        note = Note.model_validate({
            **{key: value for key, value in note_data.items() if key != "id"},
            "familyId": self.family_id,
            "createdBy": self.user_id,
            "dismissedBy": [],
            "readBy": [self.user_id],
            "likedBy": [],
            "isActive": True,
        })
        try:
            return self.datastore.add_note(self.family_id, note.to_firestore())
        except (DatastoreError, GoogleAPIError) as e:
            self.logger.error(f"[create_note] Failed to create note in family {self.family_id}: {e}")
            raise

    def edit_note(self, note_id: str, updated_data: Dict[str, Any]) -> None:
        """Overwrite note fields; every dismissal is cleared and the editor counts as a reader."""
        self._require_ids()
        fields = {
            **updated_data,
            "editedAt": utcnow(),
            "editedBy": self.user_id,
            "dismissedBy": [],
        }
        try:
            self.datastore.update_note(self.family_id, note_id, fields=fields, array_union={"readBy": [self.user_id]})
        except (DatastoreError, GoogleAPIError) as e:
            self.logger.error(f"[edit_note] Failed to edit note {note_id}: {e}")
            raise

    def delete_note(self, note_id: str) -> None:
        if not self.family_id:
            raise ValueError("Missing familyId")
        try:
            self.datastore.delete_note(self.family_id, note_id)
        except (DatastoreError, GoogleAPIError) as e:
            self.logger.error(f"[delete_note] Failed to delete note {note_id}: {e}")
            raise

    def dismiss_note(self, note_id: str) -> None:
        """
        Hide a note for the current user and mark it read.

        The local board is updated before the write; if the write fails the user
        is removed from the note's local `dismissedBy` again and the error is re-raised.
        """
        self._require_ids()
        for note in self.notes:
            if note.get("id") == note_id:
                note["dismissedBy"] = list(note.get("dismissedBy") or []) + [self.user_id]

        try:
            self.datastore.update_note(
                self.family_id, note_id, array_union={"dismissedBy": [self.user_id], "readBy": [self.user_id]}
            )
        except (DatastoreError, GoogleAPIError) as e:
            self.logger.error(f"[dismiss_note] Failed to dismiss note {note_id}: {e}")
            for note in self.notes:
                if note.get("id") == note_id:
                    note["dismissedBy"] = [uid for uid in note.get("dismissedBy") or [] if uid != self.user_id]
            raise

    def toggle_like(self, note_id: str) -> None:
        """Like or unlike a note; liking also marks it read. Failures are logged and the local note restored."""
        if not self.family_id or not self.user_id:
            self.logger.error(f"[toggle_like] {MISSING_IDS}")
            return

        note = self._find(note_id)
        if note is None:
            self.logger.error(f"[toggle_like] Note not found: {note_id}")
            return

        original = copy.deepcopy(note)
        liked_by = list(note.get("likedBy") or [])
        read_by = list(note.get("readBy") or [])
        is_liked = self.user_id in liked_by

        note["likedBy"] = [uid for uid in liked_by if uid != self.user_id] if is_liked else liked_by + [self.user_id]
        note["readBy"] = read_by if self.user_id in read_by else read_by + [self.user_id]

        try:
            if is_liked:
                self.datastore.update_note(self.family_id, note_id, array_remove={"likedBy": [self.user_id]})
            else:
                self.datastore.update_note(
                    self.family_id, note_id, array_union={"likedBy": [self.user_id], "readBy": [self.user_id]}
                )
        except (DatastoreError, GoogleAPIError) as e:
            self.logger.error(f"[toggle_like] Failed to toggle like on note {note_id}: {e}")
            self.notes = [original if n.get("id") == note_id else n for n in self.notes]

    def mark_as_read(self, note_id: str) -> None:
        self._require_ids()
        try:
            self.datastore.update_note(self.family_id, note_id, array_union={"readBy": [self.user_id]})
        except (DatastoreError, GoogleAPIError) as e:
            self.logger.error(f"[mark_as_read] Failed to mark note {note_id} as read: {e}")
            raise
