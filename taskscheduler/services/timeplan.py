"""Working-hours and restriction rules for placing tasks on the calendar."""

from __future__ import annotations

from datetime import datetime, time, timedelta
from typing import Iterable, Union

from taskscheduler.domain.results import SEARCH_LIMIT_REACHED, Infeasible, Ok
from taskscheduler.domain.types import RestrictionType, TimeRange, TimeRestriction


def _at(moment: datetime, wall_clock: time) -> datetime:
    return datetime.combine(moment.date(), wall_clock, tzinfo=moment.tzinfo)


def is_within_working_hours(moment: datetime, working_hours: TimeRange) -> bool:
    """Check the moment's HH:MM against the window, inclusive at both ends."""
    current = time(moment.hour, moment.minute)
    return working_hours.start <= current <= working_hours.end


def next_working_start(moment: datetime, working_hours: TimeRange) -> datetime:
    """Start of the next working window after ``moment``."""
    today_start = _at(moment, working_hours.start)
    if moment < today_start:
        return today_start
    return today_start + timedelta(days=1)


def find_next_available_start_time(moment: datetime, working_hours: TimeRange) -> datetime:
    if is_within_working_hours(moment, working_hours):
        return moment
    return next_working_start(moment, working_hours)


def is_restricted_time(
    start: datetime,
    duration: timedelta,
    restrictions: Iterable[TimeRestriction],
) -> bool:
    """
    Check whether ``[start, start + duration)`` overlaps an UNAVAILABLE restriction.

    Restrictions are daily intervals evaluated on the start's calendar day.
    """
    end = start + duration
    for restriction in restrictions:
        if restriction.type != RestrictionType.UNAVAILABLE:
            continue
        if not restriction.applies_on(start):
            continue
        blocked_start = _at(start, restriction.start)
        blocked_end = _at(start, restriction.end)
        if start < blocked_end and end > blocked_start:
            return True
    return False


def is_time_slot_available(
    start: datetime,
    duration: timedelta,
    working_hours: TimeRange,
    restrictions: Iterable[TimeRestriction],
) -> bool:
    return is_within_working_hours(start, working_hours) and not is_restricted_time(
        start, duration, restrictions
    )


def find_next_available_time_slot(
    start_from: datetime,
    duration: timedelta,
    working_hours: TimeRange,
    restrictions: Iterable[TimeRestriction],
    step: timedelta = timedelta(hours=1),
    max_iterations: int = 2000,
) -> Union[Ok[datetime], Infeasible]:
    """
    Walk forward from ``start_from`` to the first usable start time.

    Outside working hours the cursor jumps to the next window start. Inside a
    restriction it moves by the fixed ``step``, never directly to the
    restriction's end, so results land on the step grid.

    Returns:
        Ok(start) or Infeasible once ``max_iterations`` moves are used up.
    """
    restrictions = tuple(restrictions)
    current = start_from
    for _ in range(max_iterations):
        if not is_within_working_hours(current, working_hours):
            current = next_working_start(current, working_hours)
            continue
        if is_restricted_time(current, duration, restrictions):
            current = current + step
            continue
        return Ok(current)
    return Infeasible(SEARCH_LIMIT_REACHED)
