# src/taskgate/engine/transitions.py

from __future__ import annotations

from ..core.errors import IllegalTransitionError
from ..core.models import TaskState

# States a user may pick by hand. BLOCKED is engine-only; BACKLOG is creation-only.
USER_SETTABLE_STATES: frozenset[TaskState] = frozenset(
    {TaskState.TODO, TaskState.IN_PROGRESS, TaskState.DONE}
)

# States a task may be created in.
CREATABLE_STATES: frozenset[TaskState] = frozenset({TaskState.BACKLOG, TaskState.TODO})


def can_user_transition(current: TaskState, requested: TaskState) -> bool:
    if current == TaskState.BLOCKED:
        return False
    return requested in USER_SETTABLE_STATES


def check_user_transition(task_id: int, current: TaskState, requested: TaskState) -> None:
    """Raise IllegalTransitionError unless a user may move current -> requested."""
    if not can_user_transition(current, requested):
        raise IllegalTransitionError(task_id, current.value, requested.value)
