"""CSV export utilities for generated schedules."""

from __future__ import annotations

from pathlib import Path

import pandas as pd

from taskscheduler.domain.types import TaskSchedule

SLOT_COLUMNS = ["task_id", "start_time", "end_time", "duration_minutes", "is_flexible"]
CONFLICT_COLUMNS = ["type", "task_id", "severity", "description"]


def export_schedule_csv(csv_path: str | Path, schedule: TaskSchedule) -> int:
    """
    Export a schedule's slots to CSV, one row per task.

    Args:
        csv_path: Output CSV path
        schedule: Schedule to export

    Returns:
        Number of slots exported
    """
    rows = [slot.to_dict() for slot in schedule.task_slots]
    df = pd.DataFrame(rows, columns=SLOT_COLUMNS)
    df.to_csv(csv_path, index=False)
    return len(df)


def export_conflicts_csv(csv_path: str | Path, schedule: TaskSchedule) -> int:
    """Export a schedule's conflicts to CSV. Returns number of rows written."""
    rows = [conflict.to_dict() for conflict in schedule.conflicts]
    df = pd.DataFrame(rows, columns=CONFLICT_COLUMNS)
    df.to_csv(csv_path, index=False)
    return len(df)
