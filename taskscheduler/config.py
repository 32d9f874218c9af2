"""Load and validate scheduler configuration (YAML or JSON)."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, List

import yaml

from taskscheduler.domain.types import (
    RestrictionType,
    SchedulingConstraints,
    TimeRange,
    TimeRestriction,
    parse_time_string,
    parse_weekdays,
)
from taskscheduler.engine.graph import CyclePolicy


def _hm(value: Any) -> str:
    # YAML 1.1 reads unquoted 12:00 as the sexagesimal integer 720
    if isinstance(value, int) and not isinstance(value, bool):
        return f"{value // 60:02d}:{value % 60:02d}"
    return str(value)


@dataclass
class WorkingHours:
    start: str = "09:00"
    end: str = "17:00"


@dataclass
class RestrictionConfig:
    type: str = "UNAVAILABLE"
    start: str = "12:00"
    end: str = "13:00"
    days: List[str] = field(default_factory=list)


@dataclass
class SchedulerConfig:
    working_hours: WorkingHours = field(default_factory=WorkingHours)
    break_minutes: int = 15
    restrictions: List[RestrictionConfig] = field(default_factory=list)
    search_step_minutes: int = 60
    max_search_iterations: int = 2000
    default_task_minutes: int = 60
    workday_minutes: int = 8 * 60
    cycle_policy: str = CyclePolicy.TOLERATE.value

    def validate(self) -> None:
        """Raise ValueError on any invalid setting."""
        self.working_range()
        for restriction in self.restrictions:
            self._build_restriction(restriction)
        if self.break_minutes < 0:
            raise ValueError("break_minutes cannot be negative")
        if self.search_step_minutes <= 0:
            raise ValueError("search_step_minutes must be positive")
        if self.max_search_iterations < 1:
            raise ValueError("max_search_iterations must be at least 1")
        if self.default_task_minutes <= 0:
            raise ValueError("default_task_minutes must be positive")
        if self.workday_minutes <= 0:
            raise ValueError("workday_minutes must be positive")
        self.policy()

    def working_range(self) -> TimeRange:
        return TimeRange.parse(_hm(self.working_hours.start), _hm(self.working_hours.end))

    def policy(self) -> CyclePolicy:
        try:
            return CyclePolicy(str(self.cycle_policy).lower())
        except ValueError:
            raise ValueError(f"Unknown cycle_policy: {self.cycle_policy!r}") from None

    @property
    def default_task_duration(self) -> timedelta:
        return timedelta(minutes=self.default_task_minutes)

    @staticmethod
    def _build_restriction(rc: RestrictionConfig) -> TimeRestriction:
        try:
            kind = RestrictionType(str(rc.type).upper())
        except ValueError:
            raise ValueError(f"Unknown restriction type: {rc.type!r}") from None
        return TimeRestriction(
            type=kind,
            start=parse_time_string(_hm(rc.start)),
            end=parse_time_string(_hm(rc.end)),
            days_of_week=parse_weekdays(rc.days or []),
        )

    def to_constraints(self) -> SchedulingConstraints:
        return SchedulingConstraints(
            working_hours=self.working_range(),
            time_restrictions=tuple(self._build_restriction(rc) for rc in self.restrictions),
            break_duration=timedelta(minutes=self.break_minutes),
            search_step=timedelta(minutes=self.search_step_minutes),
            max_search_iterations=self.max_search_iterations,
        )


def _read_raw(path: Path) -> Dict[str, Any]:
    text = path.read_text()
    if path.suffix.lower() == ".json":
        data = json.loads(text)
    else:
        data = yaml.safe_load(text)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config root must be a mapping: {path}")
    return data


def config_from_dict(data: Dict[str, Any]) -> SchedulerConfig:
    data = dict(data)
    known = set(SchedulerConfig.__dataclass_fields__)
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"Unknown config keys: {', '.join(sorted(unknown))}")

    working_hours = WorkingHours(**(data.pop("working_hours", None) or {}))
    restrictions = [RestrictionConfig(**item) for item in data.pop("restrictions", None) or []]
    cfg = SchedulerConfig(working_hours=working_hours, restrictions=restrictions, **data)
    cfg.validate()
    return cfg


def load_config(path: str | Path) -> SchedulerConfig:
    """
    Load configuration from a YAML or JSON file.

    Args:
        path: Config file; ``.json`` is parsed as JSON, anything else as YAML

    Returns:
        Validated SchedulerConfig
    """
    return config_from_dict(_read_raw(Path(path)))
