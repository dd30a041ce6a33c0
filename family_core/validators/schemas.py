"""
validators/schemas.py: Result and entity-kind models for record validation.
"""
from enum import Enum
from typing import Dict, Any, List

from pydantic import BaseModel, ConfigDict, Field


class EntityKind(str, Enum):
    """Entity kinds that carry a validator."""
    USER_PROFILE = "user_profile"
    CHILD = "child"
    TASK = "task"
    CALENDAR_EVENT = "calendar_event"
    SHOPPING_ITEM = "shopping_item"


class ValidationResult(BaseModel):
    """Outcome of validating one record: every violated rule, in rule order."""
    model_config = ConfigDict(populate_by_name=True)

    is_valid: bool = Field(..., alias="isValid")
    errors: List[str] = Field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)
