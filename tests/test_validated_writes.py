"""
Tests for the validated-write callables and task completion.
"""

from unittest.mock import patch

import pytest
from google.api_core.exceptions import ServiceUnavailable

from family_core.datastore.firestore.exceptions import DatastoreError
from family_core.functions import CallableError, FunctionsErrorCode
from family_core.validators import ValidationResult

VALID_TASK = {"title": "Laundry", "familyId": "family123", "assignedTo": "aupair1", "priority": "low"}
VALID_EVENT = {
    "title": "Dentist",
    "familyId": "family123",
    "startTime": "2024-12-25T10:00:00Z",
    "endTime": "2024-12-25T11:00:00Z",
    "attendees": ["parent1"],
}


def expect_error(call, code, message=None):
    with pytest.raises(CallableError) as excinfo:
        call()
    assert excinfo.value.code == code
    if message is not None:
        assert excinfo.value.message == message
    return excinfo.value


class TestEndpointOrdering:
    def test_unauthenticated_before_validation(self, callables, as_user):
        # the payload is invalid too, but authentication is checked first
        expect_error(
            lambda: callables.create_task(as_user(None, {"title": ""})),
            FunctionsErrorCode.UNAUTHENTICATED,
            "User must be authenticated",
        )

    def test_unauthenticated_with_valid_payload(self, callables, as_user, datastore):
        expect_error(
            lambda: callables.create_task(as_user(None, VALID_TASK)),
            FunctionsErrorCode.UNAUTHENTICATED,
        )
        assert len(datastore._children("families/family123/tasks")) == 1

    def test_validation_before_membership(self, callables, as_user):
        # an outsider with an invalid payload sees the validation error
        expect_error(
            lambda: callables.create_task(as_user("outsider", {"familyId": "family123"})),
            FunctionsErrorCode.INVALID_ARGUMENT,
            "Task title is required, Task must be assigned to someone",
        )

    def test_sanitized_before_validation(self, callables, as_user):
        result = callables.create_child(as_user("parent1", {"name": " <Emma> ", "familyId": "family123"}))
        assert result["success"] is True


class TestUpdateUserProfile:
    PROFILE = {"userId": "parent1", "name": "Jane Smith", "email": "jane@example.com", "role": "parent", "familyId": "family123"}

    def test_updates_own_profile(self, callables, as_user, datastore):
        assert callables.update_user_profile(as_user("parent1", self.PROFILE)) == {"success": True}

        user = datastore.get_user("parent1")
        assert user["name"] == "Jane Smith"
        assert user["phone"] is None
        assert user["updatedBy"] == "parent1"
        assert "updatedAt" in user
        # untouched fields survive
        assert user["fcmToken"] == "token-parent1"

    def test_cannot_update_other_profile(self, callables, as_user, datastore):
        expect_error(
            lambda: callables.update_user_profile(as_user("parent2", self.PROFILE)),
            FunctionsErrorCode.PERMISSION_DENIED,
            "Cannot update other users profiles",
        )
        assert datastore.get_user("parent1")["name"] == "Jane Doe"

    def test_invalid_profile_lists_all_errors(self, callables, as_user):
        expect_error(
            lambda: callables.update_user_profile(as_user("parent1", {"userId": "parent1", "email": "x"})),
            FunctionsErrorCode.INVALID_ARGUMENT,
            "Name is required, Valid email is required, Invalid role specified, Family ID is required",
        )

    def test_missing_user_document_is_internal(self, callables, as_user):
        profile = {**self.PROFILE, "userId": "ghost"}
        expect_error(
            lambda: callables.update_user_profile(as_user("ghost", profile)),
            FunctionsErrorCode.INTERNAL,
            "Failed to update profile",
        )


class TestCreateChild:
    def test_creates_child(self, callables, as_user, datastore):
        result = callables.create_child(as_user("aupair1", {
            "name": "Emma",
            "familyId": "family123",
            "birthDate": "2018-04-02",
            "emergencyContacts": [{"name": "Gran", "phone": "+4915112345678"}],
            "createdBy": "someone-else",
        }))

        child = datastore.get_document(f"children/{result['childId']}")
        assert child["name"] == "Emma"
        assert child["familyId"] == "family123"
        assert child["createdBy"] == "aupair1"
        assert child["emergencyContacts"] == [{"name": "Gran", "phone": "+4915112345678"}]
        assert child["birthDate"].year == 2018

    def test_non_member(self, callables, as_user, datastore):
        expect_error(
            lambda: callables.create_child(as_user("outsider", {"name": "Emma", "familyId": "family123"})),
            FunctionsErrorCode.PERMISSION_DENIED,
            "Not a member of this family",
        )
        assert datastore._children("children") == []


class TestCreateTask:
    def test_creates_task(self, callables, as_user, datastore):
        result = callables.create_task(as_user("parent1", {**VALID_TASK, "dueDate": "2024-12-24T18:00:00Z"}))

        assert result["success"] is True
        task = datastore.get_document(f"families/family123/tasks/{result['taskId']}")
        assert task["title"] == "Laundry"
        assert task["assignedTo"] == "aupair1"
        assert task["priority"] == "low"
        assert task["completed"] is False
        assert task["createdBy"] == "parent1"
        assert task["description"] == ""
        assert task["dueDate"].isoformat() == "2024-12-24T18:00:00+00:00"

    def test_default_priority(self, callables, as_user, datastore):
        payload = {key: value for key, value in VALID_TASK.items() if key != "priority"}
        result = callables.create_task(as_user("parent1", payload))
        assert datastore.get_document(f"families/family123/tasks/{result['taskId']}")["priority"] == "medium"

    def test_non_member_writes_nothing(self, callables, as_user, datastore):
        expect_error(
            lambda: callables.create_task(as_user("outsider", VALID_TASK)),
            FunctionsErrorCode.PERMISSION_DENIED,
            "Not a member of this family",
        )
        assert len(datastore._children("families/family123/tasks")) == 1

    def test_persistence_failure_is_internal(self, callables, as_user, datastore):
        with patch.object(datastore, "add_task", side_effect=DatastoreError("down", cause=ServiceUnavailable("x"))):
            error = expect_error(
                lambda: callables.create_task(as_user("parent1", VALID_TASK)),
                FunctionsErrorCode.INTERNAL,
                "Failed to create task",
            )
        assert "down" not in error.message

    def test_non_string_description_is_invalid(self, callables, as_user, datastore):
        expect_error(
            lambda: callables.create_task(as_user("parent1", {**VALID_TASK, "description": 5})),
            FunctionsErrorCode.INVALID_ARGUMENT,
            "Description must be a string",
        )
        assert len(datastore._children("families/family123/tasks")) == 1

    def test_unmodelled_field_type_is_invalid_argument(self, callables, as_user, datastore):
        # the document model still rejects types no validator rule covers
        with patch("family_core.functions.service.validate_task", return_value=ValidationResult(is_valid=True, errors=[])):
            error = expect_error(
                lambda: callables.create_task(as_user("parent1", {**VALID_TASK, "description": {"text": "x"}})),
                FunctionsErrorCode.INVALID_ARGUMENT,
            )
        assert error.message.startswith("Invalid Task fields (")
        assert len(datastore._children("families/family123/tasks")) == 1


class TestCreateCalendarEvent:
    def test_creates_event(self, callables, as_user, datastore):
        result = callables.create_calendar_event(as_user("parent2", VALID_EVENT))

        event = datastore.get_document(f"families/family123/calendar/{result['eventId']}")
        assert event["title"] == "Dentist"
        assert event["attendees"] == ["parent1"]
        assert event["location"] == ""
        assert event["createdBy"] == "parent2"
        assert event["endTime"] > event["startTime"]

    def test_end_before_start(self, callables, as_user):
        expect_error(
            lambda: callables.create_calendar_event(as_user("parent1", {**VALID_EVENT, "endTime": "2024-12-25T09:00:00Z"})),
            FunctionsErrorCode.INVALID_ARGUMENT,
            "End time must be after start time",
        )

    def test_structured_location_is_invalid(self, callables, as_user, datastore):
        expect_error(
            lambda: callables.create_calendar_event(as_user("parent1", {**VALID_EVENT, "location": {"lat": 1, "lng": 2}})),
            FunctionsErrorCode.INVALID_ARGUMENT,
            "Location must be a string",
        )
        assert datastore.list_calendar_events("family123") == []

    def test_null_description_and_location_are_accepted(self, callables, as_user, datastore):
        result = callables.create_calendar_event(
            as_user("parent1", {**VALID_EVENT, "description": None, "location": None})
        )

        event = datastore.get_document(f"families/family123/calendar/{result['eventId']}")
        assert event["description"] == ""
        assert event["location"] == ""


class TestCreateShoppingItem:
    ITEM = {"familyId": "family123", "listId": "list1", "name": "Milk", "quantity": 2}

    def test_adds_item_to_list(self, callables, as_user, datastore):
        result = callables.create_shopping_item(as_user("aupair1", self.ITEM))

        assert result["success"] is True
        items = datastore.get_document("families/family123/shoppingLists/list1")["items"]
        item = items[result["itemId"]]
        assert item["name"] == "Milk"
        assert item["quantity"] == 2
        assert item["category"] == "Other"
        assert item["purchased"] is False
        assert item["addedBy"] == "aupair1"
        assert "addedAt" in item

    def test_list_id_required(self, callables, as_user):
        payload = {key: value for key, value in self.ITEM.items() if key != "listId"}
        expect_error(
            lambda: callables.create_shopping_item(as_user("aupair1", payload)),
            FunctionsErrorCode.INVALID_ARGUMENT,
            "Shopping list ID is required",
        )

    def test_unknown_list_is_internal(self, callables, as_user):
        expect_error(
            lambda: callables.create_shopping_item(as_user("aupair1", {**self.ITEM, "listId": "missing"})),
            FunctionsErrorCode.INTERNAL,
            "Failed to add shopping item",
        )

    def test_invalid_quantity(self, callables, as_user):
        expect_error(
            lambda: callables.create_shopping_item(as_user("aupair1", {**self.ITEM, "quantity": 0})),
            FunctionsErrorCode.INVALID_ARGUMENT,
            "Quantity must be a positive number",
        )


class TestCompleteTask:
    def test_completes_task(self, callables, as_user, datastore):
        result = callables.complete_task(as_user("aupair1", {
            "familyId": "family123",
            "taskId": "task1",
            "completionNotes": "Done <early>",
        }))

        assert result == {"success": True, "taskId": "task1", "completed": True}
        task = datastore.get_document("families/family123/tasks/task1")
        assert task["completedBy"] == "aupair1"
        assert task["completionNotes"] == "Done early"

    def test_completion_is_monotonic(self, callables, as_user, datastore):
        callables.complete_task(as_user("aupair1", {"familyId": "family123", "taskId": "task1"}))
        first = datastore.get_document("families/family123/tasks/task1")

        callables.complete_task(as_user("parent1", {"familyId": "family123", "taskId": "task1"}))
        second = datastore.get_document("families/family123/tasks/task1")

        assert second["completedBy"] == "aupair1"
        assert second["completedAt"] == first["completedAt"]

    def test_required_ids(self, callables, as_user):
        expect_error(
            lambda: callables.complete_task(as_user("aupair1", {})),
            FunctionsErrorCode.INVALID_ARGUMENT,
            "familyId is required, taskId is required",
        )

    def test_unknown_task(self, callables, as_user):
        expect_error(
            lambda: callables.complete_task(as_user("aupair1", {"familyId": "family123", "taskId": "nope"})),
            FunctionsErrorCode.NOT_FOUND,
            "Task not found",
        )

    def test_non_member(self, callables, as_user):
        expect_error(
            lambda: callables.complete_task(as_user("outsider", {"familyId": "family123", "taskId": "task1"})),
            FunctionsErrorCode.PERMISSION_DENIED,
        )


class TestCallDispatch:
    def test_call_by_name(self, callables, as_user):
        result = callables.call("createTask", as_user("parent1", VALID_TASK))
        assert result["success"] is True

    def test_unknown_name(self, callables, as_user):
        with pytest.raises(KeyError):
            callables.call("dropDatabase", as_user("parent1", {}))
