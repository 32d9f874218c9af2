"""Scheduling engine: dependency sequencing, slot allocation and the TaskScheduler façade."""

from .allocator import DEFAULT_TASK_DURATION, allocate_time_slots
from .graph import (
    CycleDetected,
    CyclePolicy,
    Ordered,
    build_dependency_graph,
    resolve_dependency_order,
    sequence_tasks,
)
from .orchestrator import TaskScheduler, evaluate_slots

__all__ = [
    "DEFAULT_TASK_DURATION",
    "allocate_time_slots",
    "CycleDetected",
    "CyclePolicy",
    "Ordered",
    "build_dependency_graph",
    "resolve_dependency_order",
    "sequence_tasks",
    "TaskScheduler",
    "evaluate_slots",
]
