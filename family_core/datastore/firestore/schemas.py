"""
'firestore/schemas.py': Defines Pydantic models for FamilySync Firestore documents.

Field names are snake_case in Python and camelCase in Firestore; dump with
`by_alias=True` before writing. Unknown fields are kept so partially-known
client documents survive a parse/dump round trip.
"""
from enum import Enum
from typing import Optional, Dict, Any, List, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class UserRole(str, Enum):
    PARENT = "parent"
    AUPAIR = "aupair"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class FamilySyncDocument(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        use_enum_values=True,
        validate_default=True,
    )

    id: Optional[str] = None

    def to_firestore(self) -> Dict[str, Any]:
        """Dump as a Firestore payload (camelCase keys, unset optionals and the id dropped)."""
        return self.model_dump(by_alias=True, exclude_none=True, exclude={"id"})


class UserPreferences(FamilySyncDocument):
    language: str = "en"
    theme: str = "light"
    notifications: bool = True
    default_view: str = "dashboard"


class User(FamilySyncDocument):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[str] = None
    family_id: Optional[str] = None
    fcm_token: Optional[str] = None
    preferences: Optional[UserPreferences] = None
    created_at: Optional[Any] = None

    @property
    def is_parent(self) -> bool:
        # signup documents from older clients store "Parent"
        return (self.role or "").lower() == UserRole.PARENT.value


class FamilySettings(FamilySyncDocument):
    language: str = "en"
    timezone: str = "UTC"
    notifications: bool = True


class Family(FamilySyncDocument):
    name: str = "Family"
    member_uids: List[str] = Field(default_factory=list)
    settings: FamilySettings = Field(default_factory=FamilySettings)
    supermarkets: List[Any] = Field(default_factory=list)
    created_at: Optional[Any] = None

    @classmethod
    def for_founder(cls, user_id: str, user_name: Optional[str]) -> "Family":
        """Build the family created for a user who signs up without one."""
        surname = user_name.split(" ")[-1] if user_name and user_name.strip() else ""
        return cls(name=f"The {surname or 'Family'} Family", member_uids=[user_id])


class Child(FamilySyncDocument):
    name: str
    family_id: str
    birth_date: Optional[Any] = None
    medical_conditions: Optional[str] = None
    emergency_contacts: List[Any] = Field(default_factory=list)
    created_by: Optional[str] = None


class Task(FamilySyncDocument):
    title: str = ""
    description: Optional[str] = None
    family_id: Optional[str] = None
    assigned_to: Optional[str] = None
    due_date: Optional[Any] = None
    priority: Priority = Priority.MEDIUM
    completed: bool = False
    completed_by: Optional[str] = None
    completed_at: Optional[Any] = None
    completion_notes: Optional[str] = None
    created_by: Optional[str] = None


class CalendarEvent(FamilySyncDocument):
    title: Optional[str] = None
    description: Optional[str] = None
    family_id: Optional[str] = None
    start_time: Optional[Any] = None
    end_time: Optional[Any] = None
    # client-authored events carry `datetime` and `assignedTo` instead
    scheduled_at: Optional[Any] = Field(default=None, alias="datetime")
    assigned_to: Optional[Any] = None
    attendees: Optional[List[Any]] = None
    location: Optional[str] = None
    created_by: Optional[str] = None


class ShoppingItem(FamilySyncDocument):
    name: str = ""
    quantity: Union[int, float] = 1
    category: str = "Other"
    purchased: bool = Field(default=False, validation_alias=AliasChoices("purchased", "isPurchased"))
    added_by: Optional[str] = None
    added_at: Optional[Any] = None


class Note(FamilySyncDocument):
    title: Optional[str] = None
    content: Optional[str] = None
    family_id: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[Any] = None
    dismissed_by: List[str] = Field(default_factory=list)
    read_by: List[str] = Field(default_factory=list)
    liked_by: List[str] = Field(default_factory=list)
    is_active: bool = True
