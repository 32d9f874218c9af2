"""Result values returned across the public scheduling API.

Every fallible operation returns ``Ok`` or one of the failure variants below
instead of raising, so callers always get either a usable value or a specific
message they can show.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Generic, Optional, Tuple, TypeVar, Union

from .types import SchedulingConflict

T = TypeVar("T")


class FailureCode(Enum):
    NOT_FOUND = "NOT_FOUND"
    INFEASIBLE = "INFEASIBLE"
    INVALID = "INVALID"


NO_VALID_TASKS = "No valid tasks found"
TASK_NOT_FOUND = "Task not found"
DEADLINE_INFEASIBLE = "Cannot schedule task before deadline"
SEARCH_LIMIT_REACHED = "No available time slot within search limit"
CRITICAL_CONFLICTS = "Critical conflicts detected in schedule"
OUTSIDE_WORKING_HOURS = "Tasks scheduled outside working hours"


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    """Base for all failure variants."""

    message: str
    task_id: Optional[str] = None

    code = None  # set by subclasses

    @property
    def ok(self) -> bool:
        return False

    def to_dict(self) -> Dict:
        result = {
            "error_code": self.code.value,
            "message": self.message,
        }
        if self.task_id is not None:
            result["task_id"] = self.task_id
        return result


@dataclass(frozen=True)
class NotFound(Failure):
    message: str = NO_VALID_TASKS
    code = FailureCode.NOT_FOUND


@dataclass(frozen=True)
class Infeasible(Failure):
    message: str = DEADLINE_INFEASIBLE
    code = FailureCode.INFEASIBLE


@dataclass(frozen=True)
class Invalid(Failure):
    message: str = CRITICAL_CONFLICTS
    conflicts: Tuple[SchedulingConflict, ...] = ()
    code = FailureCode.INVALID

    def to_dict(self) -> Dict:
        result = super().to_dict()
        if self.conflicts:
            result["conflicts"] = [c.to_dict() for c in self.conflicts]
        return result


Result = Union[Ok[T], NotFound, Infeasible, Invalid]
