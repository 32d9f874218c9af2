"""Tests for CSV import/export functionality."""

import datetime as dt

import pandas as pd
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from taskscheduler.domain.models import Base, TaskRecord
from taskscheduler.domain.repositories import TaskRepository
from taskscheduler.domain.types import (
    ConflictSeverity,
    ConflictType,
    ScheduledTimeSlot,
    SchedulingConflict,
    TaskSchedule,
)
from taskscheduler.io.export_csv import export_conflicts_csv, export_schedule_csv
from taskscheduler.io.import_csv import import_tasks_csv


@pytest.fixture
def db_session():
    """Create in-memory database session for testing."""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()
    yield session
    session.close()


def test_import_tasks_csv(db_session, tmp_path):
    """Test importing tasks with dependencies from CSV."""
    csv_content = """id,title,priority,estimated_minutes,due_date,completed_at,dependencies
deploy,Deploy service,CRITICAL,30,2025-03-07 17:00,,build;test
build,Build image,3,45,,,
test,Run tests,normal,,,2025-03-01 10:00,build
"""
    csv_file = tmp_path / "tasks.csv"
    csv_file.write_text(csv_content)

    count = import_tasks_csv(db_session, csv_file)
    assert count == 3

    deploy = TaskRepository.get_by_id(db_session, "deploy").to_task()
    assert deploy.priority.name == "CRITICAL"
    assert deploy.estimated_duration == dt.timedelta(minutes=30)
    assert deploy.due_date == dt.datetime(2025, 3, 7, 17, 0)
    assert set(deploy.dependencies) == {"build", "test"}

    build = TaskRepository.get_by_id(db_session, "build")
    assert build.priority == "HIGH"
    assert build.due_date is None

    test = TaskRepository.get_by_id(db_session, "test").to_task()
    assert test.estimated_duration is None
    assert test.completed_at == dt.datetime(2025, 3, 1, 10, 0)
    assert test.dependencies == ("build",)


def test_import_minimal_columns_and_unknown_dependency(db_session, tmp_path):
    csv_file = tmp_path / "tasks.csv"
    csv_file.write_text("id,dependencies\n a ,missing\nb,a\nb,a\n")

    assert import_tasks_csv(db_session, csv_file) == 2
    a = TaskRepository.get_by_id(db_session, "a")
    assert a.priority == "NORMAL"
    assert list(a.dependencies) == []
    assert [d.id for d in TaskRepository.get_by_id(db_session, "b").dependencies] == ["a"]


def test_import_capitalized_headers_and_numeric_ids(db_session, tmp_path):
    csv_file = tmp_path / "tasks.csv"
    csv_file.write_text("ID,Title,Estimated_Minutes,Dependencies\n1,First,30,\n2,Second,45,1\n")

    assert import_tasks_csv(db_session, csv_file) == 2
    second = TaskRepository.get_by_id(db_session, "2").to_task()
    assert second.title == "Second"
    assert second.estimated_duration == dt.timedelta(minutes=45)
    assert second.dependencies == ("1",)


def test_import_skips_existing_ids(db_session, tmp_path):
    TaskRepository.create(db_session, TaskRecord(id="a", title="Original"))
    csv_file = tmp_path / "tasks.csv"
    csv_file.write_text("id,title\na,Replacement\nb,New\n")

    assert import_tasks_csv(db_session, csv_file) == 1
    assert TaskRepository.get_by_id(db_session, "a").title == "Original"


def test_import_requires_id_column(db_session, tmp_path):
    csv_file = tmp_path / "tasks.csv"
    csv_file.write_text("title\nNo id\n")
    with pytest.raises(ValueError):
        import_tasks_csv(db_session, csv_file)


@pytest.fixture
def schedule(monday, constraints):
    slots = (
        ScheduledTimeSlot.starting_at("a", monday.replace(hour=9), dt.timedelta(minutes=60), is_flexible=True),
        ScheduledTimeSlot.starting_at("b", monday.replace(hour=9, minute=30), dt.timedelta(minutes=45)),
    )
    conflict = SchedulingConflict(ConflictType.TIME_OVERLAP, "b", "Task 'a' overlaps with task 'b'", ConflictSeverity.HIGH)
    return TaskSchedule(
        id="schedule_csv",
        task_slots=slots,
        constraints=constraints,
        generated_at=monday,
        total_estimated_duration=105,
        conflicts=(conflict,),
    )


def test_export_schedule_csv(tmp_path, schedule):
    out = tmp_path / "schedule.csv"
    assert export_schedule_csv(out, schedule) == 2

    df = pd.read_csv(out)
    assert list(df.columns) == ["task_id", "start_time", "end_time", "duration_minutes", "is_flexible"]
    assert df["task_id"].tolist() == ["a", "b"]
    assert df["duration_minutes"].tolist() == [60, 45]
    assert df.loc[0, "start_time"] == "2025-03-03T09:00:00"


def test_export_conflicts_csv(tmp_path, schedule):
    out = tmp_path / "conflicts.csv"
    assert export_conflicts_csv(out, schedule) == 1

    df = pd.read_csv(out)
    assert df.loc[0, "type"] == "TIME_OVERLAP"
    assert df.loc[0, "severity"] == "HIGH"
    assert df.loc[0, "task_id"] == "b"
