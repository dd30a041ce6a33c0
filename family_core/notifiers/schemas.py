from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class DocumentEventType(str, Enum):
    CREATED = "created"
    UPDATED = "updated"


class DocumentEvent(BaseModel):
    """A document change delivered to the trigger endpoint."""
    model_config = ConfigDict(populate_by_name=True)

    document: str
    event_type: DocumentEventType = Field(..., alias="eventType")
    before: Optional[Dict[str, Any]] = None
    after: Optional[Dict[str, Any]] = None
    # path wildcards, filled in by the router
    params: Dict[str, str] = Field(default_factory=dict)

    @property
    def data(self) -> Dict[str, Any]:
        """Document data after the change (empty when it was deleted)."""
        return self.after or {}

    @property
    def previous(self) -> Dict[str, Any]:
        return self.before or {}
