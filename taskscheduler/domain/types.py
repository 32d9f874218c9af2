"""Value types shared by the scheduling engine.

Tasks are read-only snapshots handed over by the task store; everything else
is produced per scheduling request and never mutated afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, time, timedelta
from enum import Enum, IntEnum
from typing import Dict, FrozenSet, Iterable, Optional, Tuple


WEEKDAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


class TaskPriority(IntEnum):
    """Task priority, ordered from least to most pressing."""

    LOW = 1
    NORMAL = 2
    HIGH = 3
    URGENT = 4
    CRITICAL = 5

    @classmethod
    def parse(cls, value: "str | int | TaskPriority") -> "TaskPriority":
        if isinstance(value, TaskPriority):
            return value
        if isinstance(value, int):
            return cls(value)
        text = str(value).strip()
        if text.isdigit():
            return cls(int(text))
        try:
            return cls[text.upper()]
        except KeyError:
            raise ValueError(f"Unknown task priority: {value!r}") from None


class RestrictionType(str, Enum):
    UNAVAILABLE = "UNAVAILABLE"
    PREFERRED = "PREFERRED"
    DEADLINE = "DEADLINE"


class ConflictType(str, Enum):
    TIME_OVERLAP = "TIME_OVERLAP"
    DEADLINE_MISS = "DEADLINE_MISS"
    DEPENDENCY_VIOLATION = "DEPENDENCY_VIOLATION"


class ConflictSeverity(IntEnum):
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4


class SchedulingStage(str, Enum):
    """Stages a single scheduling request moves through."""

    COLLECTING = "collecting"
    ORDERING = "ordering"
    ALLOCATING = "allocating"
    VALIDATING = "validating"
    COMPLETED = "completed"
    FAILED = "failed"


def parse_time_string(hm: str) -> time:
    """Parse a wall-clock "HH:MM" string."""
    try:
        hours, minutes = [int(x) for x in str(hm).strip().split(":")]
        return time(hours, minutes)
    except ValueError:
        raise ValueError(f"Invalid time string {hm!r}, expected HH:MM") from None


def parse_weekdays(days: Iterable["str | int"]) -> FrozenSet[int]:
    """Normalize day names or numbers (Monday = 0) to weekday numbers."""
    parsed = set()
    for day in days:
        if isinstance(day, int):
            if not 0 <= day <= 6:
                raise ValueError(f"Weekday out of range: {day}")
            parsed.add(day)
            continue
        name = str(day).strip().lower()
        matches = [i for i, full in enumerate(WEEKDAY_NAMES) if full.startswith(name[:3])]
        if len(name) < 3 or not matches:
            raise ValueError(f"Unknown weekday: {day!r}")
        parsed.add(matches[0])
    return frozenset(parsed)


@dataclass(frozen=True)
class Task:
    """Read-only view of a task record supplied by the task store."""

    id: str
    priority: TaskPriority = TaskPriority.NORMAL
    estimated_duration: Optional[timedelta] = None
    due_date: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    dependencies: Tuple[str, ...] = ()
    title: str = ""

    def __post_init__(self):
        object.__setattr__(self, "dependencies", tuple(self.dependencies))
        object.__setattr__(self, "priority", TaskPriority.parse(self.priority))

    @property
    def display_name(self) -> str:
        return self.title or self.id


@dataclass(frozen=True)
class TimeRange:
    """Daily wall-clock window, e.g. working hours 09:00-17:00."""

    start: time
    end: time

    def __post_init__(self):
        if self.end <= self.start:
            raise ValueError(f"Time range end {self.end} must be after start {self.start}")

    @classmethod
    def parse(cls, start_hm: str, end_hm: str) -> "TimeRange":
        return cls(parse_time_string(start_hm), parse_time_string(end_hm))

    def __str__(self) -> str:
        return f"{self.start:%H:%M}-{self.end:%H:%M}"


@dataclass(frozen=True)
class TimeRestriction:
    """Named daily interval; only UNAVAILABLE restrictions block allocation."""

    type: RestrictionType
    start: time
    end: time
    days_of_week: FrozenSet[int] = frozenset()  # empty = every day

    def __post_init__(self):
        object.__setattr__(self, "type", RestrictionType(self.type))
        object.__setattr__(self, "days_of_week", frozenset(self.days_of_week))
        if self.end <= self.start:
            raise ValueError(f"Restriction end {self.end} must be after start {self.start}")

    def applies_on(self, moment: datetime) -> bool:
        return not self.days_of_week or moment.weekday() in self.days_of_week


@dataclass(frozen=True)
class SchedulingConstraints:
    working_hours: TimeRange
    time_restrictions: Tuple[TimeRestriction, ...] = ()
    break_duration: timedelta = timedelta(minutes=15)
    # Restriction avoidance advances by this fixed step, at most this many times.
    search_step: timedelta = timedelta(hours=1)
    max_search_iterations: int = 2000

    def __post_init__(self):
        object.__setattr__(self, "time_restrictions", tuple(self.time_restrictions))
        if self.search_step <= timedelta(0):
            raise ValueError("search_step must be positive")
        if self.max_search_iterations < 1:
            raise ValueError("max_search_iterations must be at least 1")
        if self.break_duration < timedelta(0):
            raise ValueError("break_duration cannot be negative")


@dataclass(frozen=True)
class ScheduledTimeSlot:
    task_id: str
    start_time: datetime
    end_time: datetime
    duration: timedelta
    is_flexible: bool = False

    def __post_init__(self):
        if self.end_time <= self.start_time:
            raise ValueError(
                f"Slot for task {self.task_id} ends ({self.end_time}) before it starts ({self.start_time})"
            )

    @classmethod
    def starting_at(cls, task_id: str, start: datetime, duration: timedelta, is_flexible: bool = False):
        return cls(task_id, start, start + duration, duration, is_flexible)

    @property
    def duration_minutes(self) -> int:
        return int(self.duration.total_seconds() // 60)

    def to_dict(self) -> Dict:
        return {
            "task_id": self.task_id,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "duration_minutes": self.duration_minutes,
            "is_flexible": self.is_flexible,
        }


@dataclass(frozen=True)
class SchedulingConflict:
    type: ConflictType
    task_id: str
    description: str
    severity: ConflictSeverity

    @property
    def is_blocking(self) -> bool:
        return self.severity == ConflictSeverity.CRITICAL

    def to_dict(self) -> Dict:
        return {
            "type": self.type.value,
            "task_id": self.task_id,
            "description": self.description,
            "severity": self.severity.name,
        }


@dataclass(frozen=True)
class TaskSchedule:
    id: str
    task_slots: Tuple[ScheduledTimeSlot, ...]
    constraints: SchedulingConstraints
    generated_at: datetime
    total_estimated_duration: int  # minutes
    conflicts: Tuple[SchedulingConflict, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "task_slots", tuple(self.task_slots))
        object.__setattr__(self, "conflicts", tuple(self.conflicts))
        seen = set()
        for slot in self.task_slots:
            if slot.task_id in seen:
                raise ValueError(f"Task {slot.task_id} appears more than once in schedule {self.id}")
            seen.add(slot.task_id)

    @property
    def task_ids(self) -> Tuple[str, ...]:
        return tuple(slot.task_id for slot in self.task_slots)

    def slot_for(self, task_id: str) -> Optional[ScheduledTimeSlot]:
        for slot in self.task_slots:
            if slot.task_id == task_id:
                return slot
        return None

    def slots_by_task(self) -> Dict[str, ScheduledTimeSlot]:
        return {slot.task_id: slot for slot in self.task_slots}


@dataclass(frozen=True)
class ScheduleAnalytics:
    total_tasks: int
    total_scheduled_minutes: int
    average_task_duration: float
    buffer_time_minutes: int
    priority_distribution: Dict[TaskPriority, int] = field(default_factory=dict)
    time_distribution: Dict[str, int] = field(default_factory=dict)
    conflicts: Tuple[SchedulingConflict, ...] = ()
    utilization: float = 0.0
