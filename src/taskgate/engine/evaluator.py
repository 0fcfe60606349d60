# src/taskgate/engine/evaluator.py

from __future__ import annotations

from ..core.models import Task, TaskState
from .graph import TaskGraph


def blocking_blockers(task: Task, graph: TaskGraph) -> list[int]:
    """
    Ids of blockers that currently hold the task back.

    A blocker missing from the graph was deleted; it never blocks.
    """
    out: list[int] = []
    for blocker_id in sorted(task.blockers):
        blocker = graph.get(blocker_id)
        if blocker is None:
            continue
        if blocker.state != TaskState.DONE:
            out.append(blocker_id)
    return out


def is_blocked(task: Task, graph: TaskGraph) -> bool:
    for blocker_id in task.blockers:
        blocker = graph.get(blocker_id)
        if blocker is not None and blocker.state != TaskState.DONE:
            return True
    return False


def evaluate(task: Task, graph: TaskGraph) -> TaskState:
    """
    Desired state for one task given its blockers' current states.

    Pure: reads the graph, never writes it.

    - blocked and not BLOCKED      -> BLOCKED (DONE included: a blocker that
      reverted forces a completed dependent back to BLOCKED)
    - not blocked and BLOCKED      -> TODO
    - anything else                -> unchanged
    """
    blocked = is_blocked(task, graph)

    if blocked and task.state != TaskState.BLOCKED:
        return TaskState.BLOCKED

    if not blocked and task.state == TaskState.BLOCKED:
        return TaskState.TODO

    return task.state
