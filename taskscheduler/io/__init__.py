"""I/O utilities for CSV import/export."""

from .export_csv import export_conflicts_csv, export_schedule_csv
from .import_csv import import_tasks_csv

__all__ = [
    "import_tasks_csv",
    "export_schedule_csv",
    "export_conflicts_csv",
]
