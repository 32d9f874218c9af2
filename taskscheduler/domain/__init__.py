"""Domain types, result values and the task store."""

from .models import Base, TaskRecord
from .repositories import InMemoryTaskStore, SqlTaskStore, TaskRepository, TaskStore
from .results import Failure, FailureCode, Infeasible, Invalid, NotFound, Ok
from .types import (
    ConflictSeverity,
    ConflictType,
    RestrictionType,
    ScheduleAnalytics,
    ScheduledTimeSlot,
    SchedulingConflict,
    SchedulingConstraints,
    SchedulingStage,
    Task,
    TaskPriority,
    TaskSchedule,
    TimeRange,
    TimeRestriction,
)

__all__ = [
    "Base",
    "TaskRecord",
    "TaskRepository",
    "TaskStore",
    "InMemoryTaskStore",
    "SqlTaskStore",
    "Ok",
    "Failure",
    "FailureCode",
    "NotFound",
    "Infeasible",
    "Invalid",
    "Task",
    "TaskPriority",
    "TimeRange",
    "TimeRestriction",
    "RestrictionType",
    "SchedulingConstraints",
    "ScheduledTimeSlot",
    "TaskSchedule",
    "SchedulingConflict",
    "ConflictType",
    "ConflictSeverity",
    "ScheduleAnalytics",
    "SchedulingStage",
]
