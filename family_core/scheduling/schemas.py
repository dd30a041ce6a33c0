from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field


class Conflict(BaseModel):
    event1: str
    event2: str


class ScheduleReport(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    conflicts: List[Conflict] = Field(default_factory=list)
    optimized_events: List[Dict[str, Any]] = Field(default_factory=list, alias="optimizedEvents")
    suggestions: List[str] = Field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)
