import copy
import itertools
import threading
import uuid
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional

from google.api_core.exceptions import NotFound

from family_core.utils import to_datetime, utcnow
from ..base import BaseDatastore
from ..firestore.config import (
    USERS_COLLECTION,
    FAMILIES_COLLECTION,
    CHILDREN_COLLECTION,
    TASKS_COLLECTION,
    CALENDAR_COLLECTION,
    SHOPPING_LISTS_COLLECTION,
    NOTES_COLLECTION,
    CREATED_AT_FIELD,
    UPDATED_AT_FIELD,
)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class InMemoryDatastore(BaseDatastore):
    """
    In-process datastore implementation.
    Documents are kept in a dict keyed by their slash-separated Firestore path
    (e.g. "families/f1/tasks/t1"), which makes this class a drop-in substitute
    for Firestore in tests and local runs. Server timestamps are the current UTC time.
    """

    def __init__(self, documents: Optional[Dict[str, Dict[str, Any]]] = None):
        """
        Initialize the datastore, optionally seeded with documents.

        Args:
            documents (Optional[Dict[str, Dict[str, Any]]]): Initial documents keyed by path.
        """
        self._documents: Dict[str, Dict[str, Any]] = {}
        self._sequence: Dict[str, int] = {}
        self._counter = itertools.count()
        self._lock = threading.RLock()
        for path, data in (documents or {}).items():
            self.set_document(path, data)

    def set_document(self, path: str, data: Dict[str, Any]) -> None:
        """Create or overwrite the document at `path`."""
        with self._lock:
            self._documents[path] = copy.deepcopy(data)
            self._sequence.setdefault(path, next(self._counter))

    def get_document(self, path: str) -> Optional[Dict[str, Any]]:
        """Return a copy of the document at `path` (with `id`), or None."""
        with self._lock:
            if path not in self._documents:
                return None
            return {"id": path.rsplit("/", 1)[-1], **copy.deepcopy(self._documents[path])}

    def _children(self, collection_path: str) -> List[Dict[str, Any]]:
        prefix = f"{collection_path}/"
        with self._lock:
            paths = [
                path for path in self._documents
                if path.startswith(prefix) and "/" not in path[len(prefix):]
            ]
            paths.sort(key=lambda path: self._sequence[path])
            return [self.get_document(path) for path in paths]

    def _add(self, collection_path: str, data: Dict[str, Any], stamps=(CREATED_AT_FIELD, UPDATED_AT_FIELD)) -> str:
        document_id = uuid.uuid4().hex[:20]
        now = utcnow()
        self.set_document(f"{collection_path}/{document_id}", {**data, **{field: now for field in stamps}})
        return document_id

    def _update(self, path: str, fields: Dict[str, Any]) -> None:
        with self._lock:
            if path not in self._documents:
                raise NotFound(f"No document to update: {path}")
            self._documents[path].update(copy.deepcopy(fields))

    def get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        return self.get_document(f"{USERS_COLLECTION}/{user_id}")

    def get_family(self, family_id: str) -> Optional[Dict[str, Any]]:
        return self.get_document(f"{FAMILIES_COLLECTION}/{family_id}")

    def update_user_profile(self, user_id: str, fields: Dict[str, Any]) -> None:
        self._update(f"{USERS_COLLECTION}/{user_id}", {**fields, UPDATED_AT_FIELD: utcnow()})

    def add_child(self, data: Dict[str, Any]) -> str:
        return self._add(CHILDREN_COLLECTION, data)

    def add_task(self, family_id: str, data: Dict[str, Any]) -> str:
        return self._add(f"{FAMILIES_COLLECTION}/{family_id}/{TASKS_COLLECTION}", data)

    def complete_task(self, family_id: str, task_id: str, user_id: str, notes: str = "") -> Dict[str, Any]:
        path = f"{FAMILIES_COLLECTION}/{family_id}/{TASKS_COLLECTION}/{task_id}"
        with self._lock:
            task = self.get_document(path)
            if task is None:
                raise NotFound(f"No document to update: {path}")
            if task.get("completed"):
                return task

            now = utcnow()
            self._update(path, {
                "completed": True,
                "completedBy": user_id,
                "completedAt": now,
                "completionNotes": notes,
                UPDATED_AT_FIELD: now,
            })
            return self.get_document(path)

    def add_calendar_event(self, family_id: str, data: Dict[str, Any]) -> str:
        return self._add(f"{FAMILIES_COLLECTION}/{family_id}/{CALENDAR_COLLECTION}", data)

    def list_calendar_events(self, family_id: str) -> List[Dict[str, Any]]:
        return self._children(f"{FAMILIES_COLLECTION}/{family_id}/{CALENDAR_COLLECTION}")

    def add_shopping_item(self, family_id: str, list_id: str, item: Dict[str, Any]) -> str:
        path = f"{FAMILIES_COLLECTION}/{family_id}/{SHOPPING_LISTS_COLLECTION}/{list_id}"
        item_id = uuid.uuid4().hex
        now = utcnow()
        with self._lock:
            if path not in self._documents:
                raise NotFound(f"No document to update: {path}")
            items = self._documents[path].setdefault("items", {})
            items[item_id] = {**copy.deepcopy(item), "id": item_id, "addedAt": now}
            self._documents[path][UPDATED_AT_FIELD] = now
        return item_id

    def create_family_for_user(self, user_id: str, family: Dict[str, Any], role: str) -> Optional[str]:
        user_path = f"{USERS_COLLECTION}/{user_id}"
        with self._lock:
            user = self.get_document(user_path)
            if user is None or user.get("familyId"):
                return None

            family_id = self._add(FAMILIES_COLLECTION, family, stamps=(CREATED_AT_FIELD,))
            self._update(user_path, {"familyId": family_id, "role": role, "joinedAt": utcnow()})
            return family_id

    def list_notes(self, family_id: str) -> List[Dict[str, Any]]:
        notes = self._children(f"{FAMILIES_COLLECTION}/{family_id}/{NOTES_COLLECTION}")
        # children come back in insertion order; reverse first so ties stay newest-first
        notes.reverse()
        notes.sort(key=lambda note: to_datetime(note.get(CREATED_AT_FIELD)) or EPOCH, reverse=True)
        return notes

    def add_note(self, family_id: str, data: Dict[str, Any]) -> str:
        return self._add(f"{FAMILIES_COLLECTION}/{family_id}/{NOTES_COLLECTION}", data, stamps=(CREATED_AT_FIELD,))

    def update_note(
        self,
        family_id: str,
        note_id: str,
        fields: Optional[Dict[str, Any]] = None,
        array_union: Optional[Dict[str, List[Any]]] = None,
        array_remove: Optional[Dict[str, List[Any]]] = None,
    ) -> None:
        path = f"{FAMILIES_COLLECTION}/{family_id}/{NOTES_COLLECTION}/{note_id}"
        with self._lock:
            note = self.get_document(path)
            if note is None:
                raise NotFound(f"No document to update: {path}")

            update = dict(fields or {})
            for field_name, values in (array_union or {}).items():
                current = list(update.get(field_name, note.get(field_name)) or [])
                update[field_name] = current + [value for value in values if value not in current]
            for field_name, values in (array_remove or {}).items():
                current = list(update.get(field_name, note.get(field_name)) or [])
                update[field_name] = [value for value in current if value not in values]
            self._update(path, update)

    def delete_note(self, family_id: str, note_id: str) -> None:
        with self._lock:
            self._documents.pop(f"{FAMILIES_COLLECTION}/{family_id}/{NOTES_COLLECTION}/{note_id}", None)
