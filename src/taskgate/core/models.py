# src/taskgate/core/models.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum


class TaskState(StrEnum):
    """
    Task lifecycle state.

    Notes:
    - BLOCKED is derived: only the propagation engine sets or clears it.
    - Users move tasks among TODO / IN_PROGRESS / DONE.
    """

    BACKLOG = "BACKLOG"
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"
    BLOCKED = "BLOCKED"

    @classmethod
    def parse(cls, raw: str | None) -> TaskState:
        """Lenient parse for user input ("in progress", "done", ...)."""
        if not raw:
            raise ValueError("state is required")
        key = raw.strip().upper().replace(" ", "_").replace("-", "_")
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"unknown task state: {raw!r}") from None


@dataclass(slots=True, frozen=True)
class Task:
    """Immutable row; derive new versions with dataclasses.replace."""

    id: int
    title: str
    state: TaskState

    blockers: frozenset[int] = frozenset()
    dependents: frozenset[int] = frozenset()

    description: str | None = None
    due_date: datetime | None = None

    created_at: datetime | None = None
    updated_at: datetime | None = None
    completed_at: datetime | None = None


@dataclass(slots=True, frozen=True)
class StateChange:
    """One converged state transition produced by a propagation pass."""

    task_id: int
    previous: TaskState
    state: TaskState


@dataclass(slots=True)
class TaskPatch:
    """Partial update; None means "leave as is"."""

    title: str | None = None
    description: str | None = None
    due_date: datetime | None = None
    state: TaskState | None = None

    def is_empty(self) -> bool:
        return (
            self.title is None
            and self.description is None
            and self.due_date is None
            and self.state is None
        )

    def fields(self) -> dict[str, object]:
        out: dict[str, object] = {}
        for name in ("title", "description", "due_date", "state"):
            value = getattr(self, name)
            if value is not None:
                out[name] = value
        return out

