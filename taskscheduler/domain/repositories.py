"""Task store interface and its reference implementations."""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Protocol, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .models import TaskRecord
from .results import TASK_NOT_FOUND, NotFound, Ok
from .types import Task

logger = logging.getLogger(__name__)

FetchResult = Union[Ok[Task], NotFound]


class TaskStore(Protocol):
    """Read-only view of the external task store used by the scheduler."""

    async def fetch_task(self, task_id: str) -> FetchResult:
        ...

    async def fetch_dependencies(self, task_id: str) -> List[Task]:
        ...


class TaskRepository:
    """Repository for task data access."""

    @staticmethod
    def get_all(session: Session) -> List[TaskRecord]:
        """Get all tasks."""
        return session.query(TaskRecord).order_by(TaskRecord.id).all()

    @staticmethod
    def get_by_id(session: Session, task_id: str) -> Optional[TaskRecord]:
        """Get task by ID."""
        return session.query(TaskRecord).filter(TaskRecord.id == task_id).first()

    @staticmethod
    def get_dependencies(session: Session, task_id: str) -> List[TaskRecord]:
        """Get the tasks a task depends on (empty if the task is unknown)."""
        record = TaskRepository.get_by_id(session, task_id)
        if record is None:
            return []
        return list(record.dependencies)

    @staticmethod
    def create(session: Session, record: TaskRecord) -> TaskRecord:
        """Create a new task."""
        session.add(record)
        session.commit()
        session.refresh(record)
        return record

    @staticmethod
    def bulk_create(session: Session, records: List[TaskRecord]) -> None:
        """Create multiple tasks."""
        session.add_all(records)
        session.commit()

    @staticmethod
    def link_dependencies(session: Session, task_id: str, dependency_ids: Iterable[str]) -> int:
        """Attach dependency edges to an existing task. Unknown ids are skipped."""
        record = TaskRepository.get_by_id(session, task_id)
        if record is None:
            return 0
        linked = 0
        for dep_id in dependency_ids:
            dep = TaskRepository.get_by_id(session, dep_id)
            if dep is not None and dep not in record.dependencies:
                record.dependencies.append(dep)
                linked += 1
        session.commit()
        return linked

    @staticmethod
    def delete_all(session: Session) -> int:
        """Delete every task. Returns number of deleted rows."""
        records = session.query(TaskRecord).all()
        for record in records:
            record.dependencies.clear()
        session.flush()
        count = session.query(TaskRecord).delete(synchronize_session=False)
        session.commit()
        return count


class InMemoryTaskStore:
    """Task store backed by a plain dict, for tests and embedding."""

    def __init__(self, tasks: Iterable[Task] = ()):
        self._tasks: Dict[str, Task] = {task.id: task for task in tasks}

    def add(self, task: Task) -> None:
        self._tasks[task.id] = task

    async def fetch_task(self, task_id: str) -> FetchResult:
        task = self._tasks.get(task_id)
        if task is None:
            return NotFound(TASK_NOT_FOUND, task_id=task_id)
        return Ok(task)

    async def fetch_dependencies(self, task_id: str) -> List[Task]:
        task = self._tasks.get(task_id)
        if task is None:
            return []
        return [self._tasks[dep_id] for dep_id in task.dependencies if dep_id in self._tasks]


class SqlTaskStore:
    """
    Task store reading through a SQLAlchemy session.

    Queries run synchronously on the calling thread, so lookups gathered
    concurrently still complete one after another. A Session is not
    thread-safe and is never handed to worker threads.
    """

    def __init__(self, session: Session):
        self.session = session

    async def fetch_task(self, task_id: str) -> FetchResult:
        try:
            record = TaskRepository.get_by_id(self.session, task_id)
            if record is None:
                return NotFound(TASK_NOT_FOUND, task_id=task_id)
            return Ok(record.to_task())
        except SQLAlchemyError as e:
            logger.warning("Task lookup failed for %s: %s", task_id, e)
            self.session.rollback()
            return NotFound(f"Task lookup failed: {e}", task_id=task_id)

    async def fetch_dependencies(self, task_id: str) -> List[Task]:
        try:
            return [record.to_task() for record in TaskRepository.get_dependencies(self.session, task_id)]
        except SQLAlchemyError as e:
            logger.warning("Dependency lookup failed for %s: %s", task_id, e)
            self.session.rollback()
            return []
