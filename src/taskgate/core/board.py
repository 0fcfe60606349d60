# src/taskgate/core/board.py

from __future__ import annotations

"""
Task board: what the presentation layer talks to.

Every user intent follows the same flow:
  mutation call -> re-list from the system of record -> converge from a seed
  set -> apply the converged snapshot locally -> sync the changes back.

Error surfaces:
- mutation failure: nothing local is applied; `error` is set and the
  exception propagates to the caller.
- sync failure: reported in `last_sync`; the converged local view is kept.

Passes are not serialized against each other; two overlapping intents can
race and the later sync may apply an older snapshot. The next refresh heals it.
"""

import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from datetime import datetime

from ..engine.graph import TaskGraph
from ..engine.propagation import ConvergenceResult, PropagationEngine
from ..sync.coordinator import SyncCoordinator, SyncReport
from .errors import IllegalTransitionError
from .models import Task, TaskPatch, TaskState
from .ports import TaskBackend

logger = logging.getLogger(__name__)

SeedSelector = Callable[[TaskGraph], Iterable[int]]


def _all_tasks(graph: TaskGraph) -> Iterable[int]:
    return graph.ids()


def _blocked_tasks(graph: TaskGraph) -> Iterable[int]:
    return graph.ids_in_state(TaskState.BLOCKED)


def _only(*task_ids: int) -> SeedSelector:
    def _select(graph: TaskGraph) -> Iterable[int]:
        return list(task_ids)

    return _select


@dataclass(slots=True, frozen=True)
class PassOutcome:
    convergence: ConvergenceResult
    sync: SyncReport


class TaskBoard:
    def __init__(
        self,
        backend: TaskBackend,
        *,
        engine: PropagationEngine | None = None,
        coordinator: SyncCoordinator | None = None,
    ) -> None:
        self._backend = backend
        self._engine = engine or PropagationEngine()
        self._coordinator = coordinator or SyncCoordinator(backend)

        self._graph = TaskGraph()
        self.loading = False
        self.error: str | None = None
        self.last_sync: SyncReport | None = None

    # ---- read side ----

    @property
    def graph(self) -> TaskGraph:
        return self._graph

    @property
    def tasks(self) -> list[Task]:
        return self._graph.tasks()

    def get(self, task_id: int) -> Task | None:
        return self._graph.get(task_id)

    def filter(self, state: TaskState | None = None) -> list[Task]:
        if state is None:
            return self.tasks
        return [t for t in self._graph if t.state == state]

    def counts(self) -> dict[TaskState, int]:
        return self._graph.counts_by_state()

    # ---- convergence ----

    async def _converge(self, select_seeds: SeedSelector) -> PassOutcome:
        tasks = await self._backend.list_tasks()
        graph = TaskGraph(tasks)

        result = self._engine.run(graph, select_seeds(graph))
        self._graph = result.graph

        for change in result.changes:
            logger.info(
                "Task %s: %s -> %s",
                change.task_id,
                change.previous.value,
                change.state.value,
            )

        report = await self._coordinator.dispatch(result.changes)
        self.last_sync = report
        return PassOutcome(convergence=result, sync=report)

    async def _mutate_then_converge(
        self,
        action: str,
        mutation: Awaitable[object],
        select_seeds: SeedSelector,
    ) -> PassOutcome:
        try:
            await mutation
        except Exception as exc:
            self.error = f"Failed to {action}: {exc}"
            logger.warning("%s failed: %s", action, exc)
            raise

        try:
            outcome = await self._converge(select_seeds)
        except Exception as exc:
            self.error = f"Failed to refresh after {action}: {exc}"
            logger.exception("Refresh after %s failed", action)
            raise

        self.error = None
        return outcome

    # ---- intents ----

    async def refresh(self) -> PassOutcome:
        """Full refresh: every task is a seed."""
        self.loading = True
        try:
            outcome = await self._converge(_all_tasks)
        except Exception as exc:
            self.error = f"Failed to fetch tasks: {exc}"
            logger.exception("Task refresh failed")
            raise
        finally:
            self.loading = False
        self.error = None
        return outcome

    async def create_task(
        self,
        title: str,
        *,
        description: str | None = None,
        due_date: datetime | None = None,
        state: TaskState | None = None,
    ) -> Task:
        try:
            created = await self._backend.create_task(
                title=title,
                description=description,
                due_date=due_date,
                state=state,
            )
        except Exception as exc:
            self.error = f"Failed to create task: {exc}"
            logger.warning("create task failed: %s", exc)
            raise

        # The row exists remotely now, even if the reload fails.
        try:
            await self.refresh()
        except Exception as exc:
            self.error = f"Created task #{created.id} but refresh failed: {exc}"
            return created
        return self._graph.get(created.id) or created

    async def update_task(self, task_id: int, patch: TaskPatch) -> PassOutcome:
        if patch.is_empty():
            raise ValueError("nothing to update")
        return await self._mutate_then_converge(
            f"update task {task_id}",
            self._patch(task_id, patch),
            _only(task_id),
        )

    async def _patch(self, task_id: int, patch: TaskPatch) -> Task:
        try:
            return await self._backend.patch_task(task_id, patch)
        except IllegalTransitionError as exc:
            # Remote rejections do not say which state the task was in.
            local = self._graph.get(task_id)
            if exc.current is not None or local is None:
                raise
            raise IllegalTransitionError(task_id, local.state.value, exc.requested, str(exc)) from exc

    async def set_state(self, task_id: int, state: TaskState) -> PassOutcome:
        return await self.update_task(task_id, TaskPatch(state=state))

    async def add_dependency(self, task_id: int, blocker_id: int) -> PassOutcome:
        return await self._mutate_then_converge(
            f"add blocker {blocker_id} to task {task_id}",
            self._backend.add_edge(task_id, blocker_id),
            _only(task_id),
        )

    async def remove_dependency(self, task_id: int, blocker_id: int) -> PassOutcome:
        return await self._mutate_then_converge(
            f"remove blocker {blocker_id} from task {task_id}",
            self._backend.remove_edge(task_id, blocker_id),
            _only(task_id),
        )

    async def delete_task(self, task_id: int) -> PassOutcome:
        # The backend cleans up edges; we can't tell which tasks lost a blocker,
        # so every BLOCKED task is re-evaluated.
        return await self._mutate_then_converge(
            f"delete task {task_id}",
            self._backend.delete_task(task_id),
            _blocked_tasks,
        )
