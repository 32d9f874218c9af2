"""Acceptance gate for computed schedules."""

from __future__ import annotations

from typing import Sequence, Union

from taskscheduler.domain.results import CRITICAL_CONFLICTS, OUTSIDE_WORKING_HOURS, Invalid, Ok
from taskscheduler.domain.types import ScheduledTimeSlot, SchedulingConflict, TimeRange

from .timeplan import is_within_working_hours


def validate_schedule(
    slots: Sequence[ScheduledTimeSlot],
    conflicts: Sequence[SchedulingConflict],
    working_hours: TimeRange,
) -> Union[Ok[None], Invalid]:
    """
    Decide whether a slot list can be accepted.

    Only CRITICAL conflicts (deadline misses) and starts outside working hours
    reject the schedule. Overlaps and dependency violations are HIGH and are
    carried on the accepted schedule as warnings.
    """
    critical = tuple(c for c in conflicts if c.is_blocking)
    if critical:
        return Invalid(CRITICAL_CONFLICTS, conflicts=critical)

    outside = [slot for slot in slots if not is_within_working_hours(slot.start_time, working_hours)]
    if outside:
        return Invalid(OUTSIDE_WORKING_HOURS, task_id=outside[0].task_id)

    return Ok(None)
