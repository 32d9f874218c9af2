"""TaskScheduler - coordinates ordering, allocation and validation for a scheduling request."""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from taskscheduler.domain.repositories import TaskStore
from taskscheduler.domain.results import (
    DEADLINE_INFEASIBLE,
    NO_VALID_TASKS,
    TASK_NOT_FOUND,
    Failure,
    Infeasible,
    Invalid,
    NotFound,
    Ok,
    Result,
)
from taskscheduler.domain.types import (
    ScheduleAnalytics,
    ScheduledTimeSlot,
    SchedulingConflict,
    SchedulingConstraints,
    SchedulingStage,
    Task,
    TaskSchedule,
)
from taskscheduler.services.analytics import DEFAULT_WORKDAY_MINUTES, compute_schedule_analytics
from taskscheduler.services.conflicts import detect_conflicts
from taskscheduler.services.timeplan import find_next_available_time_slot, is_time_slot_available
from taskscheduler.services.validator import validate_schedule

from .allocator import DEFAULT_TASK_DURATION, allocate_time_slots, resolve_duration
from .graph import CycleDetected, CyclePolicy, SequenceResult, collect_dependents, sequence_tasks

logger = logging.getLogger(__name__)


def generate_schedule_id() -> str:
    return f"schedule_{uuid.uuid4().hex[:12]}"


def evaluate_slots(
    slots: Sequence[ScheduledTimeSlot],
    tasks: Mapping[str, Task],
    constraints: SchedulingConstraints,
    generated_at: datetime,
    schedule_id: Optional[str] = None,
) -> Union[Ok[TaskSchedule], Invalid]:
    """
    Run conflict detection and validation over a slot list and build the schedule.

    Returns:
        Ok(TaskSchedule) carrying any non-blocking conflicts, or Invalid
    """
    conflicts = detect_conflicts(slots, tasks)
    verdict = validate_schedule(slots, conflicts, constraints.working_hours)
    if not isinstance(verdict, Ok):
        return verdict
    return Ok(
        TaskSchedule(
            id=schedule_id or generate_schedule_id(),
            task_slots=tuple(slots),
            constraints=constraints,
            generated_at=generated_at,
            total_estimated_duration=sum(slot.duration_minutes for slot in slots),
            conflicts=tuple(conflicts),
        )
    )


class TaskScheduler:
    """
    Scheduling façade over a task store.

    Task lookups are the only awaited calls. Ordering, allocation, conflict
    detection and validation run synchronously on the fetched snapshot, so
    concurrent requests share no state.
    """

    def __init__(
        self,
        store: TaskStore,
        clock: Callable[[], datetime] = datetime.now,
        cycle_policy: CyclePolicy = CyclePolicy.TOLERATE,
        default_task_duration: timedelta = DEFAULT_TASK_DURATION,
        workday_minutes: float = DEFAULT_WORKDAY_MINUTES,
    ):
        """
        Initialize the scheduler.

        Args:
            store: Task store used for all lookups
            clock: Source of "now" (allocation starts from it)
            cycle_policy: Whether dependency cycles are truncated or rejected
            default_task_duration: Duration for tasks without an estimate
            workday_minutes: Assumed workday length for utilization
        """
        self.store = store
        self.clock = clock
        self.cycle_policy = CyclePolicy(cycle_policy)
        self.default_task_duration = default_task_duration
        self.workday_minutes = workday_minutes

    @classmethod
    def from_config(cls, store: TaskStore, cfg, clock: Callable[[], datetime] = datetime.now) -> "TaskScheduler":
        return cls(
            store,
            clock=clock,
            cycle_policy=cfg.policy(),
            default_task_duration=cfg.default_task_duration,
            workday_minutes=cfg.workday_minutes,
        )

    # -- public operations -------------------------------------------------

    async def generate_schedule(
        self,
        task_ids: Iterable[str],
        constraints: SchedulingConstraints,
        existing_schedule: Optional[Mapping[str, ScheduledTimeSlot]] = None,
    ) -> Result[TaskSchedule]:
        """
        Build a schedule for the given task ids.

        Args:
            task_ids: Tasks to schedule; duplicates and unknown ids are skipped
            constraints: Working hours, restrictions and break duration
            existing_schedule: Slots to keep as they are, keyed by task id;
                only used for ids that are part of this request

        Returns:
            Ok(TaskSchedule), NotFound, Infeasible or Invalid
        """
        schedule_id = generate_schedule_id()
        self._enter(schedule_id, SchedulingStage.COLLECTING)
        tasks = await self._collect_tasks(task_ids)
        return self._build(schedule_id, tasks, constraints, existing_schedule or {})

    async def reschedule_tasks(
        self,
        schedule: TaskSchedule,
        changed_task_ids: Iterable[str],
    ) -> Result[TaskSchedule]:
        """
        Re-allocate changed tasks and everything that depends on them.

        Slots of unaffected tasks are carried forward unchanged. With no
        changed ids the input schedule is returned as is.
        """
        changed = list(dict.fromkeys(changed_task_ids))
        if not changed:
            return Ok(schedule)

        scheduled_ids = schedule.task_ids
        all_ids = list(scheduled_ids) + [tid for tid in changed if tid not in scheduled_ids]

        schedule_id = generate_schedule_id()
        self._enter(schedule_id, SchedulingStage.COLLECTING)
        tasks = await self._collect_tasks(all_ids)
        affected = collect_dependents(changed, tasks.values())
        carried = {slot.task_id: slot for slot in schedule.task_slots if slot.task_id not in affected}
        logger.info(
            "Rescheduling %d of %d tasks (%d carried forward)",
            len(affected & set(tasks)), len(tasks), len(carried),
        )
        return self._build(schedule_id, tasks, schedule.constraints, carried)

    async def get_optimal_start_time(
        self,
        task_id: str,
        constraints: SchedulingConstraints,
        preferred_start: Optional[datetime] = None,
    ) -> Union[Ok[datetime], NotFound, Infeasible]:
        """
        Earliest usable start for one task after its dependencies complete.

        A dependency counts as complete at its completion time, else at its
        due date, else now. The preferred start wins when it is a usable slot
        no earlier than that point and still meets the deadline.
        """
        fetched = await self.store.fetch_task(task_id)
        if not isinstance(fetched, Ok):
            return NotFound(TASK_NOT_FOUND, task_id=task_id)
        task = fetched.value
        dependencies = await self.store.fetch_dependencies(task_id)

        now = self.clock()
        earliest = max([now] + [dep.completed_at or dep.due_date or now for dep in dependencies])
        duration = resolve_duration(task, self.default_task_duration)

        found = find_next_available_time_slot(
            earliest,
            duration,
            constraints.working_hours,
            constraints.time_restrictions,
            step=constraints.search_step,
            max_iterations=constraints.max_search_iterations,
        )
        if not isinstance(found, Ok):
            return Infeasible(found.message, task_id=task_id)

        latest_start = task.due_date - duration if task.due_date is not None else None
        if latest_start is not None and found.value > latest_start:
            return Infeasible(DEADLINE_INFEASIBLE, task_id=task_id)

        if (
            preferred_start is not None
            and preferred_start >= earliest
            and (latest_start is None or preferred_start <= latest_start)
            and is_time_slot_available(
                preferred_start, duration, constraints.working_hours, constraints.time_restrictions
            )
        ):
            return Ok(preferred_start)
        return Ok(found.value)

    async def detect_scheduling_conflicts(self, schedule: TaskSchedule) -> List[SchedulingConflict]:
        tasks = await self._collect_tasks(schedule.task_ids)
        return detect_conflicts(schedule.task_slots, tasks)

    async def get_schedule_analytics(
        self,
        schedule: TaskSchedule,
        workday_minutes: Optional[float] = None,
    ) -> Ok[ScheduleAnalytics]:
        tasks = await self._collect_tasks(schedule.task_ids)
        return Ok(compute_schedule_analytics(schedule, tasks, workday_minutes or self.workday_minutes))

    def order_tasks(self, tasks: Iterable[Task]) -> SequenceResult:
        return sequence_tasks(list(tasks))

    # -- internals ---------------------------------------------------------

    async def _collect_tasks(self, task_ids: Iterable[str]) -> Dict[str, Task]:
        """Fetch tasks concurrently, keeping request order and skipping failures."""
        unique_ids = list(dict.fromkeys(task_ids))
        results = await asyncio.gather(*(self.store.fetch_task(tid) for tid in unique_ids))
        tasks: Dict[str, Task] = {}
        for task_id, result in zip(unique_ids, results):
            if isinstance(result, Ok):
                tasks[result.value.id] = result.value
            else:
                logger.warning("Skipping task %s: %s", task_id, result.message)
        return tasks

    def _build(
        self,
        schedule_id: str,
        tasks: Dict[str, Task],
        constraints: SchedulingConstraints,
        existing_schedule: Mapping[str, ScheduledTimeSlot],
    ) -> Result[TaskSchedule]:
        if not tasks:
            return self._fail(schedule_id, NotFound(NO_VALID_TASKS))

        self._enter(schedule_id, SchedulingStage.ORDERING)
        sequenced = self.order_tasks(tasks.values())
        if isinstance(sequenced, CycleDetected) and self.cycle_policy == CyclePolicy.FAIL:
            return self._fail(
                schedule_id,
                Invalid(f"Cyclic dependency detected: {sequenced.describe()}", task_id=sequenced.cycle_ids[0]),
            )

        self._enter(schedule_id, SchedulingStage.ALLOCATING)
        allocated = allocate_time_slots(
            sequenced.order,
            tasks,
            constraints,
            start_at=self.clock(),
            existing_schedule=existing_schedule,
            default_duration=self.default_task_duration,
        )
        if not isinstance(allocated, Ok):
            return self._fail(schedule_id, allocated)

        self._enter(schedule_id, SchedulingStage.VALIDATING)
        evaluated = evaluate_slots(allocated.value, tasks, constraints, self.clock(), schedule_id)
        if not isinstance(evaluated, Ok):
            return self._fail(schedule_id, evaluated)

        self._enter(schedule_id, SchedulingStage.COMPLETED)
        schedule = evaluated.value
        logger.info(
            "Schedule %s: %d slots, %d min, %d conflicts",
            schedule.id, len(schedule.task_slots), schedule.total_estimated_duration, len(schedule.conflicts),
        )
        return evaluated

    def _enter(self, schedule_id: str, stage: SchedulingStage) -> None:
        logger.debug("%s -> %s", schedule_id, stage.value)

    def _fail(self, schedule_id: str, failure: Failure) -> Failure:
        self._enter(schedule_id, SchedulingStage.FAILED)
        logger.info("Schedule %s failed: %s", schedule_id, failure.message)
        return failure
