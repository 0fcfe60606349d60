# src/taskgate/core/errors.py

from __future__ import annotations


class TaskGateError(RuntimeError):
    """Base class for errors raised by taskgate."""


class BackendError(TaskGateError):
    """A call to the system of record failed."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class BackendUnavailableError(BackendError):
    """Transport-level failure (connection refused, timeout, ...)."""


class TaskNotFoundError(BackendError):
    def __init__(self, task_id: int, message: str | None = None) -> None:
        super().__init__(message or f"task {task_id} not found", status_code=404)
        self.task_id = task_id


class IllegalTransitionError(BackendError):
    """A user-driven state change the transition rules forbid."""

    def __init__(self, task_id: int, current: str | None, requested: str, message: str | None = None) -> None:
        super().__init__(
            message or f"task {task_id}: cannot move {current} -> {requested}",
            status_code=409,
        )
        self.task_id = task_id
        self.current = current
        self.requested = requested


class InvalidEdgeError(BackendError):
    def __init__(self, task_id: int, blocker_id: int, message: str) -> None:
        super().__init__(message, status_code=400)
        self.task_id = task_id
        self.blocker_id = blocker_id


def friendly_error_message(exc: BaseException) -> str:
    """Short, user-facing text for console output."""
    if isinstance(exc, BackendUnavailableError):
        return "Task service is unreachable. Check TASKGATE_API_BASE_URL and try /refresh."
    if isinstance(exc, TaskNotFoundError):
        return f"Task #{exc.task_id} does not exist (it may have been deleted)."
    if isinstance(exc, IllegalTransitionError):
        if exc.current == "BLOCKED":
            return f"Task #{exc.task_id} is BLOCKED; finish its blockers first."
        return f"Task #{exc.task_id} cannot be set to {exc.requested} by hand."
    if isinstance(exc, InvalidEdgeError):
        return str(exc)
    if isinstance(exc, BackendError):
        if exc.status_code:
            return f"Task service error (HTTP {exc.status_code}): {exc}"
        return f"Task service error: {exc}"
    return str(exc) or exc.__class__.__name__
