from .schemas import Conflict, ScheduleReport
from .service import ScheduledEvent, ScheduleOptimizer, check_time_overlap

__all__ = ["Conflict", "ScheduleReport", "ScheduledEvent", "ScheduleOptimizer", "check_time_overlap"]
