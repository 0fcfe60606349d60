# src/taskgate/engine/graph.py

from __future__ import annotations

"""
TaskGraph: id-indexed snapshot of tasks and their blocker/dependent edges.

Built once per pass from a full list() of the system of record. The graph
trusts the backend for edge consistency and never rewrites edges; the only
mutation it supports is replacing a task's state on a private copy.
"""

import logging
from collections.abc import Iterable, Iterator
from dataclasses import replace

from ..core.models import Task, TaskState

logger = logging.getLogger(__name__)

_EMPTY: frozenset[int] = frozenset()


class TaskGraph:
    def __init__(self, tasks: Iterable[Task] = ()) -> None:
        self._tasks: dict[int, Task] = {}
        for task in tasks:
            if task.id in self._tasks:
                logger.warning("Duplicate task id=%s in snapshot; keeping the last row", task.id)
            self._tasks[task.id] = task

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._tasks

    def __iter__(self) -> Iterator[Task]:
        return iter(self._tasks.values())

    def get(self, task_id: int) -> Task | None:
        return self._tasks.get(task_id)

    def ids(self) -> list[int]:
        return list(self._tasks)

    def tasks(self) -> list[Task]:
        return list(self._tasks.values())

    def blockers_of(self, task_id: int) -> frozenset[int]:
        """Blocker ids as stored; may reference deleted tasks."""
        task = self._tasks.get(task_id)
        return task.blockers if task is not None else _EMPTY

    def dependents_of(self, task_id: int) -> frozenset[int]:
        task = self._tasks.get(task_id)
        return task.dependents if task is not None else _EMPTY

    def ids_in_state(self, *states: TaskState) -> list[int]:
        wanted = set(states)
        return [t.id for t in self._tasks.values() if t.state in wanted]

    def counts_by_state(self) -> dict[TaskState, int]:
        out = {state: 0 for state in TaskState}
        for task in self._tasks.values():
            out[task.state] += 1
        return out

    def copy(self) -> TaskGraph:
        """Shallow copy; Task rows are frozen, so sharing them is safe."""
        clone = TaskGraph()
        clone._tasks = dict(self._tasks)
        return clone

    def set_state(self, task_id: int, state: TaskState) -> Task:
        task = self._tasks[task_id]
        updated = replace(task, state=state)
        self._tasks[task_id] = updated
        return updated
