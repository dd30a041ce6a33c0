from .sanitizer import sanitize_input
from .schemas import EntityKind, ValidationResult
from .service import (
    validate,
    validate_user_profile,
    validate_child_profile,
    validate_task,
    validate_calendar_event,
    validate_shopping_item,
)

__all__ = [
    "sanitize_input",
    "EntityKind",
    "ValidationResult",
    "validate",
    "validate_user_profile",
    "validate_child_profile",
    "validate_task",
    "validate_calendar_event",
    "validate_shopping_item",
]
