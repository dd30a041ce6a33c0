"""
messaging/schemas.py: Push-notification payloads and delivery results.
"""
from enum import Enum
from typing import Dict, List

from pydantic import BaseModel, Field, field_validator


class NotificationType(str, Enum):
    SHOPPING_APPROVAL = "shopping_approval"
    TASK_ASSIGNMENT = "task_assignment"
    CALENDAR_UPDATE = "calendar_update"


class PushNotification(BaseModel):
    """Ephemeral notification payload; never persisted."""
    title: str
    body: str
    data: Dict[str, str] = Field(default_factory=dict)

    @field_validator("data", mode="before")
    @classmethod
    def stringify_data(cls, value):
        # FCM data payloads only carry string values
        return {str(key): str(item) for key, item in (value or {}).items() if item is not None}


class MulticastResult(BaseModel):
    success_count: int = 0
    failure_count: int = 0
    failed_tokens: List[str] = Field(default_factory=list)

    def merge(self, other: "MulticastResult") -> "MulticastResult":
        return MulticastResult(
            success_count=self.success_count + other.success_count,
            failure_count=self.failure_count + other.failure_count,
            failed_tokens=self.failed_tokens + other.failed_tokens,
        )
