"""CSV import utilities to load tasks into the database."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List

import pandas as pd
from sqlalchemy.orm import Session

from taskscheduler.domain.models import TaskRecord
from taskscheduler.domain.repositories import TaskRepository
from taskscheduler.domain.types import TaskPriority

TASK_COLUMNS = ["id", "title", "priority", "estimated_minutes", "due_date", "completed_at", "dependencies"]

logger = logging.getLogger(__name__)


def _split_dependencies(value) -> List[str]:
    if pd.isna(value):
        return []
    return [dep.strip() for dep in str(value).split(";") if dep.strip()]


def _optional_datetime(value):
    if pd.isna(value):
        return None
    return pd.Timestamp(value).to_pydatetime()


def import_tasks_csv(session: Session, csv_path: str | Path) -> int:
    """
    Import tasks and their dependency edges from CSV into database.

    Only ``id`` is required. Dependencies are ``;``-separated task ids and are
    linked after all rows are inserted, so a task may reference one that
    appears later in the file. Ids already in the database are skipped.

    Args:
        session: Database session
        csv_path: Path to tasks CSV

    Returns:
        Number of tasks imported
    """
    df = pd.read_csv(csv_path, dtype=str)

    # Normalize column names
    df.columns = df.columns.str.lower().str.strip()
    if "id" not in df.columns:
        raise ValueError(f"Tasks CSV is missing the 'id' column: {csv_path}")
    for column in TASK_COLUMNS:
        if column not in df.columns:
            df[column] = pd.NA

    df["id"] = df["id"].str.strip()
    df = df[df["id"].notna() & (df["id"] != "")]
    df = df.drop_duplicates(subset="id", keep="first").copy()
    df["due_date"] = pd.to_datetime(df["due_date"])
    df["completed_at"] = pd.to_datetime(df["completed_at"])
    df["estimated_minutes"] = pd.to_numeric(df["estimated_minutes"])

    records: List[TaskRecord] = []
    edges: Dict[str, List[str]] = {}
    for _, row in df.iterrows():
        task_id = row["id"]
        if TaskRepository.get_by_id(session, task_id) is not None:
            logger.warning("Task %s already exists, skipping", task_id)
            continue
        priority = TaskPriority.parse(row["priority"]) if pd.notna(row["priority"]) else TaskPriority.NORMAL
        records.append(
            TaskRecord(
                id=task_id,
                title=str(row["title"]) if pd.notna(row["title"]) else "",
                priority=priority.name,
                estimated_minutes=int(row["estimated_minutes"]) if pd.notna(row["estimated_minutes"]) else None,
                due_date=_optional_datetime(row["due_date"]),
                completed_at=_optional_datetime(row["completed_at"]),
            )
        )
        edges[task_id] = _split_dependencies(row["dependencies"])

    # Bulk insert, then wire dependency edges
    TaskRepository.bulk_create(session, records)
    for task_id, dependency_ids in edges.items():
        linked = TaskRepository.link_dependencies(session, task_id, dependency_ids)
        if linked < len(dependency_ids):
            logger.warning("Task %s: %d unknown dependencies ignored", task_id, len(dependency_ids) - linked)

    logger.info("Imported %d tasks from %s", len(records), csv_path)
    return len(records)
