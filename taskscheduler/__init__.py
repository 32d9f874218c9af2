"""Task scheduling and conflict-resolution engine.

Modules:
- domain: task/slot/schedule value types, result values, SQLAlchemy task store
- services: working-hour predicates, conflict detection, validation, analytics
- engine: dependency sequencing, greedy slot allocation, TaskScheduler façade
- io: CSV import of tasks and CSV export of schedules
- config: load and validate configuration (YAML or JSON)
- cli: command-line interface entrypoints
"""

__all__ = [
    "domain",
    "services",
    "engine",
    "io",
    "config",
    "cli",
]
