"""Summary statistics for accepted schedules."""

from __future__ import annotations

from typing import Dict, Mapping

import pandas as pd

from taskscheduler.domain.types import ScheduleAnalytics, Task, TaskPriority, TaskSchedule

DEFAULT_WORKDAY_MINUTES = 8 * 60

TIME_PERIODS = ("Morning", "Afternoon", "Evening", "Night")


def time_period_for_hour(hour: int) -> str:
    if 6 <= hour <= 11:
        return "Morning"
    if 12 <= hour <= 17:
        return "Afternoon"
    if 18 <= hour <= 23:
        return "Evening"
    return "Night"


def calculate_utilization(scheduled_minutes: float, workday_minutes: float = DEFAULT_WORKDAY_MINUTES) -> float:
    if workday_minutes <= 0:
        raise ValueError("workday_minutes must be positive")
    return scheduled_minutes / workday_minutes * 100


def _slots_frame(schedule: TaskSchedule) -> pd.DataFrame:
    df = pd.DataFrame([slot.to_dict() for slot in schedule.task_slots])
    # UTC instants for ordering and gaps; wall-clock fields stay in each slot's own offset
    df["start_time"] = pd.to_datetime([slot.start_time for slot in schedule.task_slots], utc=True)
    df["end_time"] = pd.to_datetime([slot.end_time for slot in schedule.task_slots], utc=True)
    df["start"] = [f"{slot.start_time:%Y-%m-%d %H:%M}" for slot in schedule.task_slots]
    df["end"] = [f"{slot.end_time:%Y-%m-%d %H:%M}" for slot in schedule.task_slots]
    df["date"] = [f"{slot.start_time:%Y-%m-%d}" for slot in schedule.task_slots]
    df["hour"] = [slot.start_time.hour for slot in schedule.task_slots]
    return df


def calculate_buffer_minutes(df: pd.DataFrame) -> int:
    """Idle minutes between consecutive slots in start order. Overlaps count as zero."""
    if len(df) < 2:
        return 0
    ordered = df.sort_values("start_time", kind="stable")
    gaps = ordered["start_time"].shift(-1) - ordered["end_time"]
    gap_minutes = gaps.dropna().dt.total_seconds() / 60
    return int(gap_minutes.clip(lower=0).sum())


def compute_schedule_analytics(
    schedule: TaskSchedule,
    tasks: Mapping[str, Task],
    workday_minutes: float = DEFAULT_WORKDAY_MINUTES,
) -> ScheduleAnalytics:
    """
    Derive read-only statistics for a schedule.

    Args:
        schedule: Accepted schedule
        tasks: Task lookup for the priority distribution; slots whose task is
            missing are left out of that distribution only
        workday_minutes: Minutes in the assumed workday for utilization

    Returns:
        ScheduleAnalytics
    """
    if not schedule.task_slots:
        return ScheduleAnalytics(
            total_tasks=0,
            total_scheduled_minutes=0,
            average_task_duration=0.0,
            buffer_time_minutes=0,
            conflicts=schedule.conflicts,
            utilization=0.0,
        )

    df = _slots_frame(schedule)
    total_minutes = int(df["duration_minutes"].sum())
    total_tasks = len(df)

    df["priority"] = df["task_id"].map(lambda tid: tasks[tid].priority if tid in tasks else None)
    priority_counts = df["priority"].dropna().value_counts()
    priority_distribution: Dict[TaskPriority, int] = {
        TaskPriority(int(p)): int(n) for p, n in sorted(priority_counts.items(), key=lambda kv: kv[0])
    }

    df["period"] = df["hour"].map(time_period_for_hour)
    period_counts = df["period"].value_counts()
    time_distribution = {period: int(period_counts[period]) for period in TIME_PERIODS if period in period_counts}

    return ScheduleAnalytics(
        total_tasks=total_tasks,
        total_scheduled_minutes=total_minutes,
        average_task_duration=total_minutes / total_tasks,
        buffer_time_minutes=calculate_buffer_minutes(df),
        priority_distribution=priority_distribution,
        time_distribution=time_distribution,
        conflicts=schedule.conflicts,
        utilization=calculate_utilization(total_minutes, workday_minutes),
    )


def summarize_schedule(schedule: TaskSchedule, analytics: ScheduleAnalytics | None = None) -> str:
    if not schedule.task_slots:
        return "No scheduled tasks."
    df = _slots_frame(schedule)
    df = df.sort_values("start_time", kind="stable")

    lines = [f"Schedule {schedule.id} ({len(df)} tasks, {schedule.total_estimated_duration} min):"]
    lines.append(df[["task_id", "start", "end", "duration_minutes", "is_flexible"]].to_string(index=False))
    lines.append("")
    lines.append("Minutes per day:")
    lines.append(df.groupby("date")["duration_minutes"].sum().to_string())

    if schedule.conflicts:
        lines.append("")
        lines.append(f"Conflicts ({len(schedule.conflicts)}):")
        for conflict in schedule.conflicts:
            lines.append(f"  [{conflict.severity.name}] {conflict.type.value}: {conflict.description}")

    if analytics is not None:
        lines.append("")
        lines.append("Analytics:")
        lines.append(f"  Average task duration: {analytics.average_task_duration:.1f} min")
        lines.append(f"  Buffer time: {analytics.buffer_time_minutes} min")
        lines.append(f"  Utilization: {analytics.utilization:.1f}%")
        if analytics.priority_distribution:
            parts = ", ".join(f"{p.name}={n}" for p, n in analytics.priority_distribution.items())
            lines.append(f"  By priority: {parts}")
        if analytics.time_distribution:
            parts = ", ".join(f"{k}={v}" for k, v in analytics.time_distribution.items())
            lines.append(f"  By time of day: {parts}")
    return "\n".join(lines)
