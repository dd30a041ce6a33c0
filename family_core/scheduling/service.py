"""
'scheduling/service.py': Calendar conflict scan for a family.

Every event is assumed to last one hour from its start, whatever end time is
stored; two events conflict when those windows overlap and they share an
assignee. The scan compares every pair once, so it is quadratic in the number
of events.
"""
import logging
from datetime import datetime, timedelta
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional

from family_core.datastore.base import BaseDatastore
from family_core.utils import to_datetime
from .schemas import Conflict, ScheduleReport

ASSUMED_EVENT_DURATION = timedelta(hours=1)
RESCHEDULE_SUGGESTION = "Consider rescheduling conflicting events"


def check_time_overlap(start1: Optional[datetime], start2: Optional[datetime]) -> bool:
    """Return whether two one-hour windows starting at `start1` and `start2` overlap."""
    if start1 is None or start2 is None:
        return False
    return start1 < start2 + ASSUMED_EVENT_DURATION and start2 < start1 + ASSUMED_EVENT_DURATION


@dataclass(frozen=True)
class ScheduledEvent:
    """The parts of a stored calendar event the scan looks at."""
    id: str
    start: Optional[datetime] = None
    assignees: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "ScheduledEvent":
        # client-authored events carry `datetime`, callable-created ones `startTime`
        start = document.get("datetime")
        if start is None:
            start = document.get("startTime")

        people = document.get("assignedTo")
        if not people:
            people = document.get("attendees")
        if isinstance(people, str):
            people = [people]
        if not isinstance(people, (list, tuple)):
            people = []

        return cls(
            id=document.get("id") or "",
            start=to_datetime(start),
            assignees=frozenset(uid for uid in people if isinstance(uid, str) and uid),
        )


def events_conflict(event1: ScheduledEvent, event2: ScheduledEvent) -> bool:
    if not event1.assignees & event2.assignees:
        return False
    return check_time_overlap(event1.start, event2.start)


class ScheduleOptimizer:
    def __init__(self, datastore: BaseDatastore, logger: Optional[logging.Logger] = None):
        self.datastore = datastore
        self.logger = logger or logging.getLogger(__name__)

    def find_conflicts(self, events: List[Dict[str, Any]]) -> List[Conflict]:
        parsed = [ScheduledEvent.from_document(event) for event in events if isinstance(event, dict)]
        conflicts = []
        for i in range(len(parsed)):
            for j in range(i + 1, len(parsed)):
                if events_conflict(parsed[i], parsed[j]):
                    conflicts.append(Conflict(event1=parsed[i].id, event2=parsed[j].id))
        return conflicts

    def optimize_family_schedule(self, family_id: str) -> ScheduleReport:
        """
        Report pairwise conflicts among the family's calendar events.

        No event is moved: `optimizedEvents` is always empty and the only
        suggestion is a generic reschedule hint when conflicts exist.

        Args:
            family_id (str): ID of the family.

        Returns:
            ScheduleReport: Conflicting event-id pairs and suggestions.

        Raises:
            DatastoreError: If the events cannot be loaded.
        """
        events = self.datastore.list_calendar_events(family_id)
        conflicts = self.find_conflicts(events)

        self.logger.info(
            f"[optimize_family_schedule] family={family_id} events={len(events)} conflicts={len(conflicts)}"
        )
        return ScheduleReport(
            conflicts=conflicts,
            optimized_events=[],
            suggestions=[RESCHEDULE_SUGGESTION] if conflicts else [],
        )
