# src/taskgate/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The board and the sync coordinator depend on Protocols instead of concrete
backends. This keeps the system of record swappable (HTTP service, in-memory)
and makes testing easier.
"""

from datetime import datetime
from typing import Protocol

from .models import Task, TaskPatch, TaskState


class StateWriter(Protocol):
    """
    Engine-side write path: persist one converged state.

    Unlike TaskBackend.patch_task this is allowed to write BLOCKED,
    because the value comes from the propagation engine, not from a user.
    """

    async def write_state(self, task_id: int, state: TaskState) -> None: ...


class TaskBackend(StateWriter, Protocol):
    """
    System of record: owns canonical task rows and dependency edges.

    Edges are maintained by the backend in both directions
    (blockers/dependents); callers must re-list after an edge mutation.
    """

    async def list_tasks(self) -> list[Task]: ...

    async def create_task(
            self,
            *,
            title: str,
            description: str | None = None,
            due_date: datetime | None = None,
            state: TaskState | None = None,
    ) -> Task: ...

    async def patch_task(self, task_id: int, patch: TaskPatch) -> Task: ...

    async def delete_task(self, task_id: int) -> None: ...

    async def add_edge(self, task_id: int, blocker_id: int) -> None: ...

    async def remove_edge(self, task_id: int, blocker_id: int) -> None: ...

    async def aclose(self) -> None: ...
