"""
'firestore/service.py': FirestoreService handles reads and validated writes of FamilySync documents in Firestore.
"""
import logging
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import List, Dict, Any, Optional

from google.cloud import firestore
from google.cloud.firestore_v1 import SERVER_TIMESTAMP, ArrayRemove, ArrayUnion, DocumentSnapshot
from google.api_core.exceptions import DeadlineExceeded, GoogleAPIError, NotFound, ServiceUnavailable
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from ..base import BaseDatastore
from .config import CREATED_AT_FIELD, UPDATED_AT_FIELD
from .exceptions import DatastoreError
from . import paths


ERROR_MESSAGES = {
    "document_not_found": "Document not found.",
    "service_unavailable": "Firestore service unavailable.",
    "invalid_input": "Invalid inputs",
    "unexpected_error": "Unexpected error",
}

logger = logging.getLogger("family_core.datastore")


def _snapshot_to_dict(doc: DocumentSnapshot) -> Dict[str, Any]:
    return {"id": doc.id, **(doc.to_dict() or {})}


class FirestoreService(BaseDatastore):
    def __init__(
        self,
        config: Optional[Dict] = None,
        credentials_path: Optional[str] = None,
        client: Optional[firestore.Client] = None,
    ):
        """Initialize Firestore.

        Use exactly one:
        - ADC -> pass `config` as the **database block** (e.g. {"type":"firestore","project_id":"..."}).
        - Service account -> pass `credentials_path` (path to JSON).
        - An existing `client` (emulator sessions, tests).
        """
        if sum(option is not None and option != {} for option in (config, credentials_path, client)) != 1:
            raise ValueError("Provide exactly one of `config` (ADC), `credentials_path` or `client`.")

        if client is not None:
            self._firestore_client = client
            return

        if config:
            project_id = config.get("project_id")
            if not project_id:
                raise ValueError("`project_id` is required in config for ADC.")
            self._firestore_client = firestore.Client(project=project_id)
            return

        p = Path(credentials_path)
        if not p.exists():
            raise FileNotFoundError(f"Service-account key not found: {p}")
        self._firestore_client = firestore.Client.from_service_account_json(str(p))

    @contextmanager
    def _translate_errors(self, operation: str):
        """Re-raise Firestore failures as `DatastoreError`; `NotFound` passes through."""
        try:
            yield
        except NotFound:
            logger.warning(f"[{operation}] {ERROR_MESSAGES['document_not_found']}")
            raise
        except GoogleAPIError as e:
            logger.error(f"[{operation}] Firestore API error: {e}")
            raise DatastoreError(ERROR_MESSAGES["service_unavailable"], operation=operation, cause=e)
        except DatastoreError:
            raise
        except Exception as e:
            logger.error(f"[{operation}] Unexpected error: {e}")
            raise DatastoreError(ERROR_MESSAGES["unexpected_error"], operation=operation, cause=e)

    def get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        with self._translate_errors("get_user"):
            doc = paths.user_path(self._firestore_client, user_id).get()
            return _snapshot_to_dict(doc) if doc.exists else None

    def get_family(self, family_id: str) -> Optional[Dict[str, Any]]:
        with self._translate_errors("get_family"):
            doc = paths.family_path(self._firestore_client, family_id).get()
            return _snapshot_to_dict(doc) if doc.exists else None

    def update_user_profile(self, user_id: str, fields: Dict[str, Any]) -> None:
        with self._translate_errors("update_user_profile"):
            paths.user_path(self._firestore_client, user_id).update(
                {**fields, UPDATED_AT_FIELD: SERVER_TIMESTAMP}
            )
            logger.info(f"[update_user_profile] Updated profile of user {user_id}")

    def add_child(self, data: Dict[str, Any]) -> str:
        with self._translate_errors("add_child"):
            _, child_ref = paths.children_collection(self._firestore_client).add(
                {**data, CREATED_AT_FIELD: SERVER_TIMESTAMP, UPDATED_AT_FIELD: SERVER_TIMESTAMP}
            )
            logger.info(f"[add_child] Created child {child_ref.id}")
            return child_ref.id

    def add_task(self, family_id: str, data: Dict[str, Any]) -> str:
        with self._translate_errors("add_task"):
            _, task_ref = paths.tasks_collection(self._firestore_client, family_id).add(
                {**data, CREATED_AT_FIELD: SERVER_TIMESTAMP, UPDATED_AT_FIELD: SERVER_TIMESTAMP}
            )
            logger.info(f"[add_task] Created task {task_ref.id} in family {family_id}")
            return task_ref.id

    def complete_task(self, family_id: str, task_id: str, user_id: str, notes: str = "") -> Dict[str, Any]:
        task_ref = paths.tasks_collection(self._firestore_client, family_id).document(task_id)

        @firestore.transactional
        def _complete(transaction) -> Dict[str, Any]:
            snapshot = task_ref.get(transaction=transaction)
            if not snapshot.exists:
                raise NotFound(ERROR_MESSAGES["document_not_found"])

            task = _snapshot_to_dict(snapshot)
            if task.get("completed"):
                return task

            update = {
                "completed": True,
                "completedBy": user_id,
                "completedAt": SERVER_TIMESTAMP,
                "completionNotes": notes,
                UPDATED_AT_FIELD: SERVER_TIMESTAMP,
            }
            transaction.update(task_ref, update)
            return {**task, **update}

        with self._translate_errors("complete_task"):
            return _complete(self._firestore_client.transaction())

    def add_calendar_event(self, family_id: str, data: Dict[str, Any]) -> str:
        with self._translate_errors("add_calendar_event"):
            _, event_ref = paths.calendar_collection(self._firestore_client, family_id).add(
                {**data, CREATED_AT_FIELD: SERVER_TIMESTAMP, UPDATED_AT_FIELD: SERVER_TIMESTAMP}
            )
            logger.info(f"[add_calendar_event] Created event {event_ref.id} in family {family_id}")
            return event_ref.id

    def list_calendar_events(self, family_id: str) -> List[Dict[str, Any]]:
        with self._translate_errors("list_calendar_events"):
            docs = paths.calendar_collection(self._firestore_client, family_id).stream()
            return [_snapshot_to_dict(doc) for doc in docs]

    def add_shopping_item(self, family_id: str, list_id: str, item: Dict[str, Any]) -> str:
        item_id = uuid.uuid4().hex
        with self._translate_errors("add_shopping_item"):
            # update() fails with NotFound when the list does not exist
            paths.shopping_list_path(self._firestore_client, family_id, list_id).update({
                f"items.{item_id}": {**item, "id": item_id, "addedAt": SERVER_TIMESTAMP},
                UPDATED_AT_FIELD: SERVER_TIMESTAMP,
            })
            logger.info(f"[add_shopping_item] Added item {item_id} to list {list_id}")
            return item_id

    @retry(
        retry=retry_if_exception_type((ServiceUnavailable, DeadlineExceeded)),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, max=4),
        reraise=True,
    )
    def _link_new_family(self, user_id: str, family: Dict[str, Any], role: str) -> Optional[str]:
        user_ref = paths.user_path(self._firestore_client, user_id)
        family_ref = paths.families_collection(self._firestore_client).document()

        @firestore.transactional
        def _link(transaction) -> Optional[str]:
            snapshot = user_ref.get(transaction=transaction)
            if not snapshot.exists or (snapshot.to_dict() or {}).get("familyId"):
                return None

            transaction.set(family_ref, {**family, CREATED_AT_FIELD: SERVER_TIMESTAMP})
            transaction.update(user_ref, {
                "familyId": family_ref.id,
                "role": role,
                "joinedAt": SERVER_TIMESTAMP,
            })
            return family_ref.id

        return _link(self._firestore_client.transaction())

    def create_family_for_user(self, user_id: str, family: Dict[str, Any], role: str) -> Optional[str]:
        with self._translate_errors("create_family_for_user"):
            family_id = self._link_new_family(user_id, family, role)
            if family_id:
                logger.info(f"[create_family_for_user] Created family {family_id} for user {user_id}")
            return family_id

    def list_notes(self, family_id: str) -> List[Dict[str, Any]]:
        with self._translate_errors("list_notes"):
            query = paths.notes_collection(self._firestore_client, family_id).order_by(
                CREATED_AT_FIELD, direction=firestore.Query.DESCENDING
            )
            return [_snapshot_to_dict(doc) for doc in query.stream()]

    def add_note(self, family_id: str, data: Dict[str, Any]) -> str:
        with self._translate_errors("add_note"):
            _, note_ref = paths.notes_collection(self._firestore_client, family_id).add(
                {**data, CREATED_AT_FIELD: SERVER_TIMESTAMP}
            )
            return note_ref.id

    def update_note(
        self,
        family_id: str,
        note_id: str,
        fields: Optional[Dict[str, Any]] = None,
        array_union: Optional[Dict[str, List[Any]]] = None,
        array_remove: Optional[Dict[str, List[Any]]] = None,
    ) -> None:
        update: Dict[str, Any] = dict(fields or {})
        for field_name, values in (array_union or {}).items():
            update[field_name] = ArrayUnion(values)
        for field_name, values in (array_remove or {}).items():
            update[field_name] = ArrayRemove(values)
        if not update:
            raise ValueError(ERROR_MESSAGES["invalid_input"])

        with self._translate_errors("update_note"):
            paths.notes_collection(self._firestore_client, family_id).document(note_id).update(update)

    def delete_note(self, family_id: str, note_id: str) -> None:
        with self._translate_errors("delete_note"):
            paths.notes_collection(self._firestore_client, family_id).document(note_id).delete()
