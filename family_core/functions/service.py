"""
'functions/service.py': Callable endpoints of FamilySync.

Every write runs the same steps in order and stops at the first failure:
authentication, sanitizing, validation, authorization, persistence. The cheap
checks run before the membership lookup, and all of them before the write.
"""
import logging
from typing import Any, Callable, Dict, Optional

from google.api_core.exceptions import GoogleAPIError, NotFound
from pydantic import BaseModel, ValidationError

from family_core.datastore.base import BaseDatastore
from family_core.datastore.firestore.exceptions import DatastoreError
from family_core.datastore.firestore.schemas import CalendarEvent, Child, ShoppingItem, Task
from family_core.scheduling.service import ScheduleOptimizer
from family_core.utils import to_datetime
from family_core.validators import (
    ValidationResult,
    sanitize_input,
    validate_calendar_event,
    validate_child_profile,
    validate_shopping_item,
    validate_task,
    validate_user_profile,
)
from .errors import CallableError, FunctionsErrorCode
from .membership import MembershipGuard
from .schemas import CallableRequest

ERROR_MESSAGES = {
    "unauthenticated": "User must be authenticated",
    "not_own_profile": "Cannot update other users profiles",
    "not_member": "Not a member of this family",
    "list_required": "Shopping list ID is required",
    "family_required": "familyId is required",
    "task_required": "taskId is required",
    "task_not_found": "Task not found",
    "invalid_fields": "Invalid {entity} fields",
    "profile_failed": "Failed to update profile",
    "child_failed": "Failed to create child profile",
    "task_failed": "Failed to create task",
    "event_failed": "Failed to create event",
    "item_failed": "Failed to add shopping item",
    "complete_failed": "Failed to complete task",
    "schedule_failed": "Schedule optimization failed",
}

PERSISTENCE_ERRORS = (DatastoreError, GoogleAPIError)


class CallableService:
    """Validated-write endpoints plus the on-demand schedule scan."""

    def __init__(
        self,
        datastore: BaseDatastore,
        membership: Optional[MembershipGuard] = None,
        optimizer: Optional[ScheduleOptimizer] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.datastore = datastore
        self.logger = logger or logging.getLogger(__name__)
        self.membership = membership or MembershipGuard(datastore, self.logger)
        self.optimizer = optimizer or ScheduleOptimizer(datastore, self.logger)

        self.handlers: Dict[str, Callable[[CallableRequest], Dict[str, Any]]] = {
            "updateUserProfile": self.update_user_profile,
            "createChild": self.create_child,
            "createTask": self.create_task,
            "createCalendarEvent": self.create_calendar_event,
            "createShoppingItem": self.create_shopping_item,
            "completeTask": self.complete_task,
            "optimizeFamilySchedule": self.optimize_family_schedule,
        }

    def _require_auth(self, request: CallableRequest) -> str:
        if request.auth is None or not request.auth.uid:
            raise CallableError(FunctionsErrorCode.UNAUTHENTICATED, ERROR_MESSAGES["unauthenticated"])
        return request.auth.uid

    @staticmethod
    def _sanitized(request: CallableRequest) -> Dict[str, Any]:
        data = sanitize_input(request.data)
        return data if isinstance(data, dict) else {}

    @staticmethod
    def _raise_if_invalid(result: ValidationResult) -> None:
        if not result.is_valid:
            raise CallableError(FunctionsErrorCode.INVALID_ARGUMENT, ", ".join(result.errors))

    def _require_member(self, uid: str, family_id: str) -> None:
        if not self.membership.is_member(uid, family_id):
            raise CallableError(FunctionsErrorCode.PERMISSION_DENIED, ERROR_MESSAGES["not_member"])

    @staticmethod
    def _build(model: type, **fields) -> BaseModel:
        """Build the document model, reporting field types the validators do not cover as `invalid-argument`."""
        try:
            return model(**fields)
        except ValidationError as e:
            details = ", ".join(f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in e.errors())
            message = ERROR_MESSAGES["invalid_fields"].format(entity=model.__name__)
            raise CallableError(FunctionsErrorCode.INVALID_ARGUMENT, f"{message} ({details})")

    def _internal(self, operation: str, error: Exception, message_key: str, **context) -> CallableError:
        details = " ".join(f"{key}={value}" for key, value in context.items())
        self.logger.error(f"[{operation}] {ERROR_MESSAGES[message_key]} ({details}): {error}")
        return CallableError(FunctionsErrorCode.INTERNAL, ERROR_MESSAGES[message_key])

    def update_user_profile(self, request: CallableRequest) -> Dict[str, Any]:
        uid = self._require_auth(request)
        data = self._sanitized(request)
        self._raise_if_invalid(validate_user_profile(data))

        if uid != data.get("userId"):
            raise CallableError(FunctionsErrorCode.PERMISSION_DENIED, ERROR_MESSAGES["not_own_profile"])

        fields = {
            "name": data["name"],
            "email": data["email"],
            "phone": data.get("phone") or None,
            "role": data["role"],
            "updatedBy": uid,
        }
        try:
            self.datastore.update_user_profile(uid, fields)
        except PERSISTENCE_ERRORS as e:
            raise self._internal("update_user_profile", e, "profile_failed", userId=uid)

        self.logger.info(f"[update_user_profile] Updated profile of user {uid}")
        return {"success": True}

    def create_child(self, request: CallableRequest) -> Dict[str, Any]:
        uid = self._require_auth(request)
        data = self._sanitized(request)
        self._raise_if_invalid(validate_child_profile(data))
        self._require_member(uid, data["familyId"])

        child = self._build(
            Child,
            name=data["name"],
            family_id=data["familyId"],
            birth_date=to_datetime(data.get("birthDate")),
            medical_conditions=data.get("medicalConditions"),
            emergency_contacts=data.get("emergencyContacts") or [],
            created_by=uid,
        )
        try:
            child_id = self.datastore.add_child(child.to_firestore())
        except PERSISTENCE_ERRORS as e:
            raise self._internal("create_child", e, "child_failed", familyId=data["familyId"])

        self.logger.info(f"[create_child] Created child {child_id} in family {data['familyId']}")
        return {"success": True, "childId": child_id}

    def create_task(self, request: CallableRequest) -> Dict[str, Any]:
        uid = self._require_auth(request)
        data = self._sanitized(request)
        self._raise_if_invalid(validate_task(data))
        self._require_member(uid, data["familyId"])

        task = self._build(
            Task,
            title=data["title"],
            description=data.get("description") or "",
            family_id=data["familyId"],
            assigned_to=data["assignedTo"],
            due_date=to_datetime(data.get("dueDate")),
            priority=data.get("priority") or "medium",
            completed=False,
            created_by=uid,
        )
        try:
            task_id = self.datastore.add_task(data["familyId"], task.to_firestore())
        except PERSISTENCE_ERRORS as e:
            raise self._internal("create_task", e, "task_failed", familyId=data["familyId"])

        self.logger.info(f"[create_task] Created task {task_id} in family {data['familyId']}")
        return {"success": True, "taskId": task_id}

    def create_calendar_event(self, request: CallableRequest) -> Dict[str, Any]:
        uid = self._require_auth(request)
        data = self._sanitized(request)
        self._raise_if_invalid(validate_calendar_event(data))
        self._require_member(uid, data["familyId"])

        event = self._build(
            CalendarEvent,
            title=data["title"],
            description=data.get("description") or "",
            family_id=data["familyId"],
            start_time=to_datetime(data["startTime"]),
            end_time=to_datetime(data["endTime"]),
            attendees=data.get("attendees") or [],
            location=data.get("location") or "",
            created_by=uid,
        )
        try:
            event_id = self.datastore.add_calendar_event(data["familyId"], event.to_firestore())
        except PERSISTENCE_ERRORS as e:
            raise self._internal("create_calendar_event", e, "event_failed", familyId=data["familyId"])

        self.logger.info(f"[create_calendar_event] Created event {event_id} in family {data['familyId']}")
        return {"success": True, "eventId": event_id}

    def create_shopping_item(self, request: CallableRequest) -> Dict[str, Any]:
        uid = self._require_auth(request)
        data = self._sanitized(request)
        self._raise_if_invalid(validate_shopping_item(data))

        list_id = data.get("listId")
        if not isinstance(list_id, str) or not list_id:
            raise CallableError(FunctionsErrorCode.INVALID_ARGUMENT, ERROR_MESSAGES["list_required"])

        self._require_member(uid, data["familyId"])

        item = self._build(
            ShoppingItem,
            name=data["name"],
            quantity=data.get("quantity") or 1,
            category=data.get("category") or "Other",
            purchased=False,
            added_by=uid,
        )
        try:
            item_id = self.datastore.add_shopping_item(data["familyId"], list_id, item.to_firestore())
        except PERSISTENCE_ERRORS as e:
            raise self._internal("create_shopping_item", e, "item_failed", familyId=data["familyId"], listId=list_id)

        self.logger.info(f"[create_shopping_item] Added item {item_id} to list {list_id}")
        return {"success": True, "itemId": item_id}

    def complete_task(self, request: CallableRequest) -> Dict[str, Any]:
        uid = self._require_auth(request)
        data = self._sanitized(request)

        errors = []
        if not isinstance(data.get("familyId"), str) or not data.get("familyId"):
            errors.append(ERROR_MESSAGES["family_required"])
        if not isinstance(data.get("taskId"), str) or not data.get("taskId"):
            errors.append(ERROR_MESSAGES["task_required"])
        if errors:
            raise CallableError(FunctionsErrorCode.INVALID_ARGUMENT, ", ".join(errors))

        family_id, task_id = data["familyId"], data["taskId"]
        self._require_member(uid, family_id)

        notes = data.get("completionNotes")
        try:
            task = self.datastore.complete_task(family_id, task_id, uid, notes if isinstance(notes, str) else "")
        except NotFound:
            raise CallableError(FunctionsErrorCode.NOT_FOUND, ERROR_MESSAGES["task_not_found"])
        except PERSISTENCE_ERRORS as e:
            raise self._internal("complete_task", e, "complete_failed", familyId=family_id, taskId=task_id)

        self.logger.info(f"[complete_task] Task {task_id} completed by {task.get('completedBy')}")
        return {"success": True, "taskId": task_id, "completed": bool(task.get("completed"))}

    def optimize_family_schedule(self, request: CallableRequest) -> Dict[str, Any]:
        uid = self._require_auth(request)
        data = self._sanitized(request)

        family_id = data.get("familyId")
        if not isinstance(family_id, str) or not family_id:
            raise CallableError(FunctionsErrorCode.INVALID_ARGUMENT, ERROR_MESSAGES["family_required"])

        self._require_member(uid, family_id)

        try:
            report = self.optimizer.optimize_family_schedule(family_id)
        except PERSISTENCE_ERRORS as e:
            raise self._internal("optimize_family_schedule", e, "schedule_failed", familyId=family_id)
        return report.to_dict()

    def call(self, name: str, request: CallableRequest) -> Dict[str, Any]:
        """
        Invoke the callable registered under `name`.

        Raises:
            CallableError: The protocol error to return to the caller.
            KeyError: If no callable is registered under `name`.
        """
        return self.handlers[name](request)
