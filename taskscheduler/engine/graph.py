"""Dependency graph construction and topological sequencing."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Sequence, Set, Tuple, Union

from taskscheduler.domain.types import Task

logger = logging.getLogger(__name__)

_UNVISITED, _VISITING, _VISITED = 0, 1, 2


class CyclePolicy(str, Enum):
    TOLERATE = "tolerate"  # truncate cycles and keep going
    FAIL = "fail"  # reject the request


@dataclass(frozen=True)
class Ordered:
    """Acyclic graph: dependencies precede dependents."""

    order: Tuple[str, ...]


@dataclass(frozen=True)
class CycleDetected:
    """
    At least one cycle was found.

    ``order`` is still a complete order with every id exactly once; each back
    edge listed in ``cycles`` was dropped to produce it.
    """

    order: Tuple[str, ...]
    cycles: Tuple[Tuple[str, ...], ...] = field(default_factory=tuple)

    @property
    def cycle_ids(self) -> Tuple[str, ...]:
        seen: Dict[str, None] = {}
        for cycle in self.cycles:
            for task_id in cycle:
                seen.setdefault(task_id, None)
        return tuple(seen)

    def describe(self) -> str:
        return "; ".join(" -> ".join(cycle + (cycle[0],)) for cycle in self.cycles)


SequenceResult = Union[Ordered, CycleDetected]


def sort_by_priority(tasks: Iterable[Task]) -> List[Task]:
    """Highest priority first; equal priorities keep their input order."""
    return sorted(tasks, key=lambda t: t.priority, reverse=True)


def build_dependency_graph(tasks: Sequence[Task]) -> Dict[str, List[str]]:
    """
    Map each task id to its dependency ids inside this batch.

    Dependencies outside the batch are treated as already satisfied and
    dropped. Key order follows ``tasks``.
    """
    batch = {task.id for task in tasks}
    return {task.id: [dep for dep in task.dependencies if dep in batch] for task in tasks}


def resolve_dependency_order(graph: Dict[str, List[str]]) -> SequenceResult:
    """
    Depth-first ordering with an explicit stack.

    Roots are taken in the graph's key order and dependencies in list order,
    so the result equals a recursive visiting/visited traversal. Re-entering a
    node that is still being visited truncates that branch and records the
    cycle instead of recursing.
    """
    ids = list(graph)
    index = {task_id: i for i, task_id in enumerate(ids)}
    edges = [[index[dep] for dep in graph[task_id] if dep in index] for task_id in ids]
    state = [_UNVISITED] * len(ids)
    stack_pos = [-1] * len(ids)

    order: List[str] = []
    cycles: List[Tuple[str, ...]] = []

    for root in range(len(ids)):
        if state[root] != _UNVISITED:
            continue
        # (node, next edge to follow)
        stack: List[List[int]] = [[root, 0]]
        state[root] = _VISITING
        stack_pos[root] = 0
        while stack:
            frame = stack[-1]
            node, cursor = frame
            if cursor < len(edges[node]):
                frame[1] += 1
                dep = edges[node][cursor]
                if state[dep] == _VISITING:
                    cycles.append(tuple(ids[f[0]] for f in stack[stack_pos[dep]:]))
                elif state[dep] == _UNVISITED:
                    state[dep] = _VISITING
                    stack_pos[dep] = len(stack)
                    stack.append([dep, 0])
                continue
            stack.pop()
            state[node] = _VISITED
            stack_pos[node] = -1
            order.append(ids[node])

    if cycles:
        return CycleDetected(order=tuple(order), cycles=tuple(cycles))
    return Ordered(order=tuple(order))


def collect_dependents(seed_ids: Iterable[str], tasks: Iterable[Task]) -> Set[str]:
    """Seed ids plus every task that transitively depends on one of them."""
    dependents: Dict[str, List[str]] = {}
    for task in tasks:
        for dep in task.dependencies:
            dependents.setdefault(dep, []).append(task.id)

    affected = set()
    pending = list(seed_ids)
    while pending:
        task_id = pending.pop()
        if task_id in affected:
            continue
        affected.add(task_id)
        pending.extend(dependents.get(task_id, ()))
    return affected


def sequence_tasks(tasks: Sequence[Task]) -> SequenceResult:
    """Priority pre-sort, graph build and dependency ordering in one call."""
    graph = build_dependency_graph(sort_by_priority(tasks))
    result = resolve_dependency_order(graph)
    if isinstance(result, CycleDetected):
        logger.warning("Dependency cycle truncated: %s", result.describe())
    return result
