"""Tests for the SQLAlchemy task store and repository helpers."""

import asyncio
import datetime as dt

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from taskscheduler.domain.db import get_session, init_database
from taskscheduler.domain.models import Base, TaskRecord
from taskscheduler.domain.repositories import SqlTaskStore, TaskRepository
from taskscheduler.domain.results import TASK_NOT_FOUND, NotFound, Ok
from taskscheduler.domain.types import SchedulingConstraints, TaskPriority, TimeRange
from taskscheduler.engine.orchestrator import TaskScheduler


@pytest.fixture
def db_session():
    """Create in-memory database session for testing."""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def sample_tasks(db_session):
    """Three tasks: design <- impl <- release."""
    records = [
        TaskRecord(id="design", title="Draft design", priority="HIGH", estimated_minutes=45),
        TaskRecord(id="impl", title="Implement", priority="NORMAL", estimated_minutes=120),
        TaskRecord(
            id="release",
            title="Release",
            priority="CRITICAL",
            estimated_minutes=0,
            due_date=dt.datetime(2025, 3, 7, 17, 0),
        ),
    ]
    TaskRepository.bulk_create(db_session, records)
    TaskRepository.link_dependencies(db_session, "impl", ["design"])
    TaskRepository.link_dependencies(db_session, "release", ["impl"])
    return records


def test_get_all_and_get_by_id(db_session, sample_tasks):
    assert [r.id for r in TaskRepository.get_all(db_session)] == ["design", "impl", "release"]
    assert TaskRepository.get_by_id(db_session, "design").title == "Draft design"
    assert TaskRepository.get_by_id(db_session, "missing") is None


def test_dependencies(db_session, sample_tasks):
    assert [r.id for r in TaskRepository.get_dependencies(db_session, "release")] == ["impl"]
    assert TaskRepository.get_dependencies(db_session, "design") == []
    assert TaskRepository.get_dependencies(db_session, "missing") == []


def test_link_dependencies_skips_unknown_and_duplicates(db_session, sample_tasks):
    assert TaskRepository.link_dependencies(db_session, "release", ["impl", "design", "nope"]) == 1
    assert TaskRepository.link_dependencies(db_session, "nope", ["design"]) == 0


def test_create_single(db_session):
    record = TaskRepository.create(db_session, TaskRecord(id="solo", title="Solo"))
    assert record.priority == "NORMAL"


def test_task_table_columns():
    assert set(TaskRecord.__table__.columns.keys()) == {
        "id",
        "title",
        "priority",
        "due_date",
        "completed_at",
        "estimated_minutes",
    }


def test_delete_all(db_session, sample_tasks):
    assert TaskRepository.delete_all(db_session) == 3
    assert TaskRepository.get_all(db_session) == []


def test_to_task_mapping(db_session, sample_tasks):
    release = TaskRepository.get_by_id(db_session, "release").to_task()

    assert release.priority == TaskPriority.CRITICAL
    assert release.estimated_duration is None  # zero minutes counts as no estimate
    assert release.due_date == dt.datetime(2025, 3, 7, 17, 0)
    assert release.dependencies == ("impl",)
    assert release.display_name == "Release"


@pytest.mark.asyncio
async def test_sql_store_fetch(db_session, sample_tasks):
    store = SqlTaskStore(db_session)

    found = await store.fetch_task("impl")
    assert isinstance(found, Ok)
    assert found.value.estimated_duration == dt.timedelta(minutes=120)

    missing = await store.fetch_task("missing")
    assert isinstance(missing, NotFound)
    assert missing.message == TASK_NOT_FOUND

    deps = await store.fetch_dependencies("impl")
    assert [t.id for t in deps] == ["design"]


@pytest.mark.asyncio
async def test_sql_store_errors_become_not_found(db_session, monkeypatch):
    def broken(session, task_id):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(TaskRepository, "get_by_id", staticmethod(broken))
    store = SqlTaskStore(db_session)

    result = await store.fetch_task("design")
    assert isinstance(result, NotFound)
    assert "database is locked" in result.message
    assert await store.fetch_dependencies("design") == []


def test_init_database_and_session(tmp_path):
    db_url = f"sqlite:///{tmp_path / 'tasks.db'}"
    init_database(db_url)
    session = get_session(db_url)
    try:
        TaskRepository.create(session, TaskRecord(id="t1", title="First"))
        assert len(TaskRepository.get_all(session)) == 1
    finally:
        session.close()


@pytest.mark.integration
@pytest.mark.asyncio
async def test_schedule_from_database(db_session, sample_tasks):
    constraints = SchedulingConstraints(working_hours=TimeRange.parse("09:00", "17:00"))
    scheduler = TaskScheduler(SqlTaskStore(db_session), clock=lambda: dt.datetime(2025, 3, 3, 8, 0))

    result = await scheduler.generate_schedule(["release", "impl", "design"], constraints)

    assert isinstance(result, Ok)
    slots = result.value.slots_by_task()
    assert slots["design"].end_time <= slots["impl"].start_time
    assert slots["impl"].end_time <= slots["release"].start_time
    assert slots["release"].duration_minutes == 60


@pytest.mark.asyncio
async def test_sql_store_gathered_lookups_share_one_session(db_session, sample_tasks):
    store = SqlTaskStore(db_session)
    ids = ["release", "missing", "design", "impl"]

    results = await asyncio.gather(*(store.fetch_task(task_id) for task_id in ids))

    assert [type(r) for r in results] == [Ok, NotFound, Ok, Ok]
    assert [r.value.id for r in results if isinstance(r, Ok)] == ["release", "design", "impl"]
