# src/taskgate/backends/memory_backend.py

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import replace
from datetime import UTC, datetime

from ..core.errors import IllegalTransitionError, InvalidEdgeError, TaskNotFoundError
from ..core.models import Task, TaskPatch, TaskState
from ..engine.transitions import CREATABLE_STATES, check_user_transition

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(UTC)


class InMemoryTaskBackend:
    """
    In-process system of record, used for offline runs and tests.

    Behaves like the task service:
    - ids are assigned here (monotonic, never reused),
    - blockers/dependents are kept as mutual inverses,
    - delete cleans up edges on both sides,
    - patch_task enforces the user transition rules,
    - write_state is the engine path and may write any state (BLOCKED included).

    list_tasks returns copies, so callers can never mutate stored rows.
    """

    def __init__(self, tasks: Iterable[Task] = ()) -> None:
        self._tasks: dict[int, Task] = {}
        self._next_id = 1
        for task in tasks:
            self._tasks[task.id] = task
            self._next_id = max(self._next_id, task.id + 1)
        logger.debug("InMemoryTaskBackend ready total=%d", len(self._tasks))

    async def aclose(self) -> None:
        """Compatibility hook for shutdown (nothing to close)."""
        return

    # ---- low-level helpers ----

    def _require(self, task_id: int) -> Task:
        task = self._tasks.get(int(task_id))
        if task is None:
            raise TaskNotFoundError(int(task_id))
        return task

    def _store(self, task: Task) -> Task:
        self._tasks[task.id] = task
        return task

    @staticmethod
    def _with_state(task: Task, state: TaskState, now: datetime) -> Task:
        completed_at = task.completed_at
        if state == TaskState.DONE and task.state != TaskState.DONE:
            completed_at = now
        elif state != TaskState.DONE:
            completed_at = None
        return replace(task, state=state, updated_at=now, completed_at=completed_at)

    # ---- read ----

    async def list_tasks(self) -> list[Task]:
        return [replace(t) for t in self._tasks.values()]

    def get_task(self, task_id: int) -> Task | None:
        task = self._tasks.get(int(task_id))
        return replace(task) if task is not None else None

    # ---- user mutations ----

    async def create_task(
        self,
        *,
        title: str,
        description: str | None = None,
        due_date: datetime | None = None,
        state: TaskState | None = None,
    ) -> Task:
        if not title or not title.strip():
            raise ValueError("title is required")

        state = state or TaskState.TODO
        if state not in CREATABLE_STATES:
            raise IllegalTransitionError(self._next_id, None, state.value, f"cannot create a task in {state.value}")

        now = _now()
        task = Task(
            id=self._next_id,
            title=title.strip(),
            state=state,
            description=description,
            due_date=due_date,
            created_at=now,
            updated_at=now,
        )
        self._next_id += 1
        self._store(task)
        logger.debug("Task created id=%s state=%s", task.id, task.state.value)
        return replace(task)

    async def patch_task(self, task_id: int, patch: TaskPatch) -> Task:
        task = self._require(task_id)
        if patch.state is not None:
            check_user_transition(task.id, task.state, patch.state)

        now = _now()
        updated = task
        if patch.state is not None and patch.state != task.state:
            updated = self._with_state(updated, patch.state, now)
        if patch.title is not None:
            if not patch.title.strip():
                raise ValueError("title must not be empty")
            updated = replace(updated, title=patch.title.strip(), updated_at=now)
        if patch.description is not None:
            updated = replace(updated, description=patch.description, updated_at=now)
        if patch.due_date is not None:
            updated = replace(updated, due_date=patch.due_date, updated_at=now)

        self._store(updated)
        return replace(updated)

    async def delete_task(self, task_id: int) -> None:
        task = self._require(task_id)
        now = _now()

        for blocker_id in task.blockers:
            blocker = self._tasks.get(blocker_id)
            if blocker is not None:
                self._store(replace(blocker, dependents=blocker.dependents - {task.id}, updated_at=now))
        for dep_id in task.dependents:
            dep = self._tasks.get(dep_id)
            if dep is not None:
                self._store(replace(dep, blockers=dep.blockers - {task.id}, updated_at=now))

        del self._tasks[task.id]
        logger.debug("Task deleted id=%s", task.id)

    async def add_edge(self, task_id: int, blocker_id: int) -> None:
        if int(task_id) == int(blocker_id):
            raise InvalidEdgeError(task_id, blocker_id, "A task cannot depend on itself")
        task = self._require(task_id)
        blocker = self._require(blocker_id)
        if blocker.id in task.blockers:
            return

        now = _now()
        self._store(replace(task, blockers=task.blockers | {blocker.id}, updated_at=now))
        self._store(replace(blocker, dependents=blocker.dependents | {task.id}, updated_at=now))

    async def remove_edge(self, task_id: int, blocker_id: int) -> None:
        task = self._require(task_id)
        now = _now()
        if blocker_id in task.blockers:
            self._store(replace(task, blockers=task.blockers - {blocker_id}, updated_at=now))
        blocker = self._tasks.get(int(blocker_id))
        if blocker is not None and task.id in blocker.dependents:
            self._store(replace(blocker, dependents=blocker.dependents - {task.id}, updated_at=now))

    # ---- engine write path ----

    async def write_state(self, task_id: int, state: TaskState) -> None:
        task = self._require(task_id)
        if task.state == state:
            return
        self._store(self._with_state(task, state, _now()))
