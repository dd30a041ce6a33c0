"""
'validators/service.py': Entity validators for user profiles, children, tasks, calendar events and shopping items.
"""
from collections.abc import Mapping
from typing import Any, Dict, List

from family_core.utils import to_datetime, utcnow
from .base import BaseValidator
from .constants import (
    ALLOWED_PRIORITIES,
    ALLOWED_ROLES,
    EMAIL_REGEX,
    MESSAGES,
    NAME_REGEX,
    PHONE_REGEX,
)
from .schemas import EntityKind, ValidationResult


class UserProfileValidator(BaseValidator):
    kind = EntityKind.USER_PROFILE

    def check(self, record: Mapping, errors: List[str]) -> None:
        name = record.get("name")
        if self.is_blank(name):
            errors.append(MESSAGES["name_required"])
        elif not NAME_REGEX.fullmatch(name.strip()):
            errors.append(MESSAGES["name_invalid"])

        email = record.get("email")
        if not isinstance(email, str) or not EMAIL_REGEX.fullmatch(email):
            errors.append(MESSAGES["email_invalid"])

        phone = record.get("phone")
        if self.present(phone) and not (isinstance(phone, str) and PHONE_REGEX.fullmatch(phone)):
            errors.append(MESSAGES["phone_invalid"])

        if record.get("role") not in ALLOWED_ROLES:
            errors.append(MESSAGES["role_invalid"])

        if not self.is_identifier(record.get("familyId")):
            errors.append(MESSAGES["family_required"])


class ChildProfileValidator(BaseValidator):
    kind = EntityKind.CHILD

    def check(self, record: Mapping, errors: List[str]) -> None:
        name = record.get("name")
        if self.is_blank(name):
            errors.append(MESSAGES["child_name_required"])
        elif not NAME_REGEX.fullmatch(name.strip()):
            errors.append(MESSAGES["child_name_invalid"])

        if not self.is_identifier(record.get("familyId")):
            errors.append(MESSAGES["family_required"])

        birth_date = record.get("birthDate")
        if self.present(birth_date):
            parsed = to_datetime(birth_date)
            if parsed is None or parsed > utcnow():
                errors.append(MESSAGES["birth_date_invalid"])

        medical = record.get("medicalConditions")
        if self.present(medical) and not isinstance(medical, str):
            errors.append(MESSAGES["medical_conditions_invalid"])

        contacts = record.get("emergencyContacts")
        if contacts is not None and not isinstance(contacts, list):
            errors.append(MESSAGES["emergency_contacts_invalid"])


class TaskValidator(BaseValidator):
    kind = EntityKind.TASK

    def check(self, record: Mapping, errors: List[str]) -> None:
        if self.is_blank(record.get("title")):
            errors.append(MESSAGES["task_title_required"])

        if not self.is_identifier(record.get("familyId")):
            errors.append(MESSAGES["family_required"])

        if not self.is_identifier(record.get("assignedTo")):
            errors.append(MESSAGES["task_assignee_required"])

        due_date = record.get("dueDate")
        if self.present(due_date) and to_datetime(due_date) is None:
            errors.append(MESSAGES["due_date_invalid"])

        priority = record.get("priority")
        if self.present(priority) and priority not in ALLOWED_PRIORITIES:
            errors.append(MESSAGES["priority_invalid"])

        if not self.is_optional_text(record.get("description")):
            errors.append(MESSAGES["description_invalid"])


class CalendarEventValidator(BaseValidator):
    kind = EntityKind.CALENDAR_EVENT

    def check(self, record: Mapping, errors: List[str]) -> None:
        if self.is_blank(record.get("title")):
            errors.append(MESSAGES["event_title_required"])

        if not self.is_identifier(record.get("familyId")):
            errors.append(MESSAGES["family_required"])

        start, end = record.get("startTime"), record.get("endTime")
        if not self.present(start) or not self.present(end):
            errors.append(MESSAGES["event_times_required"])
        else:
            start_time, end_time = to_datetime(start), to_datetime(end)
            if start_time is None or end_time is None:
                errors.append(MESSAGES["event_date_format"])
            elif end_time <= start_time:
                errors.append(MESSAGES["event_end_before_start"])

        attendees = record.get("attendees")
        if attendees is not None and not isinstance(attendees, list):
            errors.append(MESSAGES["attendees_invalid"])

        if not self.is_optional_text(record.get("description")):
            errors.append(MESSAGES["description_invalid"])

        if not self.is_optional_text(record.get("location")):
            errors.append(MESSAGES["location_invalid"])


class ShoppingItemValidator(BaseValidator):
    kind = EntityKind.SHOPPING_ITEM

    def check(self, record: Mapping, errors: List[str]) -> None:
        if self.is_blank(record.get("name")):
            errors.append(MESSAGES["item_name_required"])

        if not self.is_identifier(record.get("familyId")):
            errors.append(MESSAGES["family_required"])

        quantity = record.get("quantity")
        if quantity is not None and (
            isinstance(quantity, bool) or not isinstance(quantity, (int, float)) or quantity <= 0
        ):
            errors.append(MESSAGES["quantity_invalid"])

        category = record.get("category")
        if self.present(category) and not isinstance(category, str):
            errors.append(MESSAGES["category_invalid"])


VALIDATORS: Dict[EntityKind, BaseValidator] = {
    validator.kind: validator
    for validator in (
        UserProfileValidator(),
        ChildProfileValidator(),
        TaskValidator(),
        CalendarEventValidator(),
        ShoppingItemValidator(),
    )
}


def validate(kind: EntityKind, data: Any) -> ValidationResult:
    """Validate `data` with the validator registered for `kind`."""
    return VALIDATORS[kind].validate(data)


def validate_user_profile(data: Any) -> ValidationResult:
    return validate(EntityKind.USER_PROFILE, data)


def validate_child_profile(data: Any) -> ValidationResult:
    return validate(EntityKind.CHILD, data)


def validate_task(data: Any) -> ValidationResult:
    return validate(EntityKind.TASK, data)


def validate_calendar_event(data: Any) -> ValidationResult:
    return validate(EntityKind.CALENDAR_EVENT, data)


def validate_shopping_item(data: Any) -> ValidationResult:
    return validate(EntityKind.SHOPPING_ITEM, data)
