"""SQLAlchemy models for the reference task store."""

from __future__ import annotations

from datetime import timedelta

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Table
from sqlalchemy.orm import DeclarativeBase, relationship

from .types import Task, TaskPriority


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


task_dependencies = Table(
    "task_dependencies",
    Base.metadata,
    Column("task_id", String(64), ForeignKey("tasks.id"), primary_key=True),
    Column("depends_on_id", String(64), ForeignKey("tasks.id"), primary_key=True),
)


class TaskRecord(Base):
    """Persisted task with its dependency edges."""

    __tablename__ = "tasks"

    id = Column(String(64), primary_key=True)
    title = Column(String(200), nullable=False, default="")
    priority = Column(String(20), nullable=False, default="NORMAL")  # LOW .. CRITICAL
    due_date = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    estimated_minutes = Column(Integer, nullable=True)

    # Tasks this task depends on
    dependencies = relationship(
        "TaskRecord",
        secondary=task_dependencies,
        primaryjoin=id == task_dependencies.c.task_id,
        secondaryjoin=id == task_dependencies.c.depends_on_id,
        order_by="TaskRecord.id",
    )

    def to_task(self) -> Task:
        """Snapshot this row as the read-only Task the engine consumes."""
        duration = None
        if self.estimated_minutes is not None and self.estimated_minutes > 0:
            duration = timedelta(minutes=self.estimated_minutes)
        return Task(
            id=self.id,
            title=self.title or "",
            priority=TaskPriority.parse(self.priority or "NORMAL"),
            estimated_duration=duration,
            due_date=self.due_date,
            completed_at=self.completed_at,
            dependencies=tuple(dep.id for dep in self.dependencies),
        )

    def __repr__(self) -> str:
        return f"<TaskRecord(id='{self.id}', title='{self.title}', priority='{self.priority}')>"
