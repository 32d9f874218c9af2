"""Greedy time-slot allocation along a dependency-ordered task list."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import List, Mapping, Optional, Sequence, Union

from taskscheduler.domain.results import Infeasible, Invalid, Ok
from taskscheduler.domain.types import ScheduledTimeSlot, SchedulingConstraints, Task
from taskscheduler.services.timeplan import find_next_available_start_time, find_next_available_time_slot

DEFAULT_TASK_DURATION = timedelta(hours=1)

logger = logging.getLogger(__name__)


def resolve_duration(task: Task, default: timedelta = DEFAULT_TASK_DURATION) -> timedelta:
    if task.estimated_duration is None or task.estimated_duration <= timedelta(0):
        return default
    return task.estimated_duration


def allocate_time_slots(
    order: Sequence[str],
    tasks: Mapping[str, Task],
    constraints: SchedulingConstraints,
    start_at: datetime,
    existing_schedule: Optional[Mapping[str, ScheduledTimeSlot]] = None,
    default_duration: timedelta = DEFAULT_TASK_DURATION,
) -> Union[Ok[List[ScheduledTimeSlot]], Infeasible, Invalid]:
    """
    Assign a slot to each task in ``order``.

    Slots already present in ``existing_schedule`` are reused verbatim and do
    not move the cursor. Every other task gets the first available start at or
    after the cursor, and the cursor then moves past the slot plus the break.
    Due dates are not consulted here; deadline misses are reported by the
    conflict detector.

    Args:
        order: Task ids, dependencies first
        tasks: Task lookup by id; ids without a task are skipped
        constraints: Working hours, restrictions, break and search bounds
        start_at: Earliest moment to schedule from (normally "now")
        existing_schedule: Slots to carry forward, keyed by task id
        default_duration: Duration for tasks without a usable estimate

    Returns:
        Ok(slots) in allocation order, Infeasible if a task cannot be
        placed within the search limit, or Invalid if an existing slot is
        keyed under a different task id
    """
    existing_schedule = existing_schedule or {}
    slots: List[ScheduledTimeSlot] = []
    cursor = find_next_available_start_time(start_at, constraints.working_hours)

    for task_id in order:
        task = tasks.get(task_id)
        if task is None:
            logger.warning("Skipping unknown task %s during allocation", task_id)
            continue

        if task_id in existing_schedule:
            kept = existing_schedule[task_id]
            if kept.task_id != task_id:
                return Invalid(f"Existing slot for task {task_id} belongs to task {kept.task_id}", task_id=task_id)
            slots.append(kept)
            continue

        duration = resolve_duration(task, default_duration)
        found = find_next_available_time_slot(
            cursor,
            duration,
            constraints.working_hours,
            constraints.time_restrictions,
            step=constraints.search_step,
            max_iterations=constraints.max_search_iterations,
        )
        if not isinstance(found, Ok):
            return Infeasible(found.message, task_id=task_id)

        slot = ScheduledTimeSlot.starting_at(
            task_id, found.value, duration, is_flexible=task.due_date is None
        )
        slots.append(slot)
        cursor = slot.end_time + constraints.break_duration

    return Ok(slots)
