"""Command-line interface for the task scheduler."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import datetime

from taskscheduler.config import load_config
from taskscheduler.domain.db import DEFAULT_DB_URL, get_session, init_database
from taskscheduler.domain.repositories import SqlTaskStore, TaskRepository
from taskscheduler.domain.results import Ok
from taskscheduler.engine.orchestrator import TaskScheduler
from taskscheduler.io.export_csv import export_conflicts_csv, export_schedule_csv
from taskscheduler.io.import_csv import import_tasks_csv
from taskscheduler.services.analytics import summarize_schedule


def _cmd_init_db(args: argparse.Namespace) -> int:
    """Initialize the database."""
    db_url = args.db or DEFAULT_DB_URL
    init_database(db_url)
    print(f"[OK] Database initialized: {db_url}")
    return 0


def _cmd_import_csv(args: argparse.Namespace) -> int:
    """Import tasks CSV into database."""
    db_url = args.db or DEFAULT_DB_URL
    session = get_session(db_url)

    try:
        count = import_tasks_csv(session, args.tasks)
        session.close()
        print(f"[OK] Imported {count} tasks from {args.tasks}")
        return 0

    except Exception as e:
        session.rollback()
        session.close()
        print(f"[ERROR] Import failed: {e}")
        raise


def _cmd_generate(args: argparse.Namespace) -> int:
    """Generate a schedule for the requested tasks (all tasks by default)."""
    db_url = args.db or DEFAULT_DB_URL
    session = get_session(db_url)

    try:
        cfg = load_config(args.config)
        task_ids = args.task or [record.id for record in TaskRepository.get_all(session)]
        print(f"[INFO] Scheduling {len(task_ids)} tasks")

        scheduler = TaskScheduler.from_config(SqlTaskStore(session), cfg)
        result = asyncio.run(scheduler.generate_schedule(task_ids, cfg.to_constraints()))
        if not isinstance(result, Ok):
            session.close()
            print(f"[ERROR] {result.message}")
            for conflict in getattr(result, "conflicts", ()):
                print(f"[ERROR]   {conflict.type.value}: {conflict.description}")
            return 1

        schedule = result.value
        analytics = asyncio.run(scheduler.get_schedule_analytics(schedule)).value
        print(summarize_schedule(schedule, analytics))
        for conflict in schedule.conflicts:
            print(f"[WARN] {conflict.type.value} on {conflict.task_id}: {conflict.description}")

        # Export to CSV if requested
        if args.out:
            count = export_schedule_csv(args.out, schedule)
            print(f"[OK] Exported {count} slots to {args.out}")
        if args.conflicts_out:
            count = export_conflicts_csv(args.conflicts_out, schedule)
            print(f"[OK] Exported {count} conflicts to {args.conflicts_out}")

        session.close()
        print(f"[OK] Generated schedule {schedule.id} with {len(schedule.task_slots)} slots")
        return 0

    except Exception as e:
        session.rollback()
        session.close()
        print(f"[ERROR] Generation failed: {e}")
        raise


def _cmd_optimal_start(args: argparse.Namespace) -> int:
    """Find the earliest usable start for one task."""
    db_url = args.db or DEFAULT_DB_URL
    session = get_session(db_url)

    try:
        cfg = load_config(args.config)
        preferred = datetime.fromisoformat(args.preferred) if args.preferred else None

        scheduler = TaskScheduler.from_config(SqlTaskStore(session), cfg)
        result = asyncio.run(scheduler.get_optimal_start_time(args.task, cfg.to_constraints(), preferred))
        session.close()
        if not isinstance(result, Ok):
            print(f"[ERROR] {args.task}: {result.message}")
            return 1
        print(f"[OK] {args.task} can start at {result.value:%Y-%m-%d %H:%M}")
        return 0

    except Exception as e:
        session.rollback()
        session.close()
        print(f"[ERROR] Lookup failed: {e}")
        raise


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="taskscheduler",
        description="Task scheduling and conflict-resolution engine",
    )

    # Global options
    parser.add_argument("--db", help=f"Database URL (default: {DEFAULT_DB_URL})")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    # init-db command
    init = sub.add_parser("init-db", help="Initialize database")
    init.set_defaults(func=_cmd_init_db)

    # import-csv command
    imp = sub.add_parser("import-csv", help="Import tasks CSV into database")
    imp.add_argument("--tasks", required=True, help="Path to tasks CSV")
    imp.set_defaults(func=_cmd_import_csv)

    # generate command
    gen = sub.add_parser("generate", help="Generate a schedule")
    gen.add_argument("--config", required=True, help="Path to config YAML")
    gen.add_argument("--task", action="append", help="Task ID to schedule (repeatable; default: all tasks)")
    gen.add_argument("--out", help="Optional: export slots to CSV")
    gen.add_argument("--conflicts-out", help="Optional: export conflicts to CSV")
    gen.set_defaults(func=_cmd_generate)

    # optimal-start command
    opt = sub.add_parser("optimal-start", help="Find the earliest start time for a task")
    opt.add_argument("--task", required=True, help="Task ID")
    opt.add_argument("--config", required=True, help="Path to config YAML")
    opt.add_argument("--preferred", help="Preferred start (ISO format, e.g. 2025-03-03T10:00)")
    opt.set_defaults(func=_cmd_optimal_start)

    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
