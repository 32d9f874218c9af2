"""Conflict detection over a finished list of time slots."""

from __future__ import annotations

from typing import List, Mapping, Sequence

from taskscheduler.domain.types import (
    ConflictSeverity,
    ConflictType,
    ScheduledTimeSlot,
    SchedulingConflict,
    Task,
)


def find_time_overlaps(slots: Sequence[ScheduledTimeSlot]) -> List[SchedulingConflict]:
    """Compare each slot with the next one in start order; name the later task."""
    conflicts = []
    ordered = sorted(slots, key=lambda s: s.start_time)
    for current, following in zip(ordered, ordered[1:]):
        if current.end_time > following.start_time:
            conflicts.append(
                SchedulingConflict(
                    type=ConflictType.TIME_OVERLAP,
                    task_id=following.task_id,
                    description=f"Task '{current.task_id}' overlaps with task '{following.task_id}'",
                    severity=ConflictSeverity.HIGH,
                )
            )
    return conflicts


def find_deadline_misses(
    slots: Sequence[ScheduledTimeSlot],
    tasks: Mapping[str, Task],
) -> List[SchedulingConflict]:
    conflicts = []
    for slot in slots:
        task = tasks.get(slot.task_id)
        if task is None or task.due_date is None:
            continue
        if slot.end_time > task.due_date:
            conflicts.append(
                SchedulingConflict(
                    type=ConflictType.DEADLINE_MISS,
                    task_id=slot.task_id,
                    description=f"Task '{task.display_name}' scheduled after deadline",
                    severity=ConflictSeverity.CRITICAL,
                )
            )
    return conflicts


def find_dependency_violations(
    slots: Sequence[ScheduledTimeSlot],
    tasks: Mapping[str, Task],
) -> List[SchedulingConflict]:
    """One conflict per (task, dependency) pair whose dependency ends after the task starts."""
    conflicts = []
    slot_by_task = {slot.task_id: slot for slot in slots}
    for slot in slots:
        task = tasks.get(slot.task_id)
        if task is None:
            continue
        for dependency_id in task.dependencies:
            dependency_slot = slot_by_task.get(dependency_id)
            if dependency_slot is not None and dependency_slot.end_time > slot.start_time:
                conflicts.append(
                    SchedulingConflict(
                        type=ConflictType.DEPENDENCY_VIOLATION,
                        task_id=slot.task_id,
                        description=(
                            f"Task '{task.display_name}' scheduled before dependency "
                            f"'{dependency_id}' completes"
                        ),
                        severity=ConflictSeverity.HIGH,
                    )
                )
    return conflicts


def detect_conflicts(
    slots: Sequence[ScheduledTimeSlot],
    tasks: Mapping[str, Task],
) -> List[SchedulingConflict]:
    """
    Collect every conflict in the slot list.

    Args:
        slots: Finished slots, in any order
        tasks: Task lookup by id; slots whose task is missing skip the
            deadline and dependency checks

    Returns:
        Overlaps, then deadline misses, then dependency violations
    """
    return (
        find_time_overlaps(slots)
        + find_deadline_misses(slots, tasks)
        + find_dependency_violations(slots, tasks)
    )
