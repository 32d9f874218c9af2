"""Services for scheduling logic."""

from .analytics import compute_schedule_analytics, summarize_schedule
from .conflicts import detect_conflicts
from .timeplan import find_next_available_time_slot, is_restricted_time, is_within_working_hours
from .validator import validate_schedule

__all__ = [
    "compute_schedule_analytics",
    "summarize_schedule",
    "detect_conflicts",
    "find_next_available_time_slot",
    "is_restricted_time",
    "is_within_working_hours",
    "validate_schedule",
]
