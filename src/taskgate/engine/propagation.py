# src/taskgate/engine/propagation.py

from __future__ import annotations

"""
Propagation engine.

A breadth-first worklist over a private copy of a TaskGraph that:
- starts from a seed set of task ids,
- evaluates every reachable task (seed -> dependents -> ...) exactly once,
- records each state that has to change,
- returns the converged snapshot plus the change list.

The walk is synchronous and purely in-memory. It must finish before the
sync phase touches the network, so there is no await anywhere in here.
"""

import logging
from collections import deque
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from ..core.models import StateChange, Task, TaskState
from .evaluator import evaluate
from .graph import TaskGraph

logger = logging.getLogger(__name__)

Evaluator = Callable[[Task, TaskGraph], TaskState]


@dataclass(slots=True)
class ConvergenceResult:
    graph: TaskGraph
    changes: list[StateChange] = field(default_factory=list)
    visited: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.changes)


class PropagationEngine:
    """
    Worklist convergence.

    propagate_unchanged:
    - True (default): a visited task always enqueues its dependents, even if
      its own state did not change in this pass. A dependent may be seeing the
      upstream state for the first time (e.g. the user just patched it).
    - False: dependents are enqueued only when the task changed. Cheaper, but
      can leave dependents stale when the upstream edit happened before the pass.
    """

    def __init__(
            self,
            *,
            evaluator: Evaluator = evaluate,
            propagate_unchanged: bool = True,
    ) -> None:
        self._evaluate = evaluator
        self.propagate_unchanged = bool(propagate_unchanged)

    def run(self, graph: TaskGraph, seeds: Iterable[int]) -> ConvergenceResult:
        """Converge starting at seeds. The input graph is left untouched."""
        work = graph.copy()
        queue: deque[int] = deque(order_seeds(work, seeds))
        seed_count = len(queue)
        visited: set[int] = set()
        changes: list[StateChange] = []

        while queue:
            task_id = queue.popleft()
            if task_id in visited:
                continue
            visited.add(task_id)

            task = work.get(task_id)
            if task is None:
                continue

            desired = self._evaluate(task, work)
            changed = desired != task.state
            if changed:
                work.set_state(task_id, desired)
                changes.append(StateChange(task_id=task_id, previous=task.state, state=desired))

            if changed or self.propagate_unchanged:
                for dep_id in sorted(work.dependents_of(task_id)):
                    if dep_id not in visited:
                        queue.append(dep_id)

        logger.debug(
            "Convergence pass: seeds=%d visited=%d changes=%d",
            seed_count,
            len(visited),
            len(changes),
        )
        return ConvergenceResult(graph=work, changes=changes, visited=len(visited))


def converge(
        graph: TaskGraph,
        seeds: Iterable[int] | None = None,
        *,
        propagate_unchanged: bool = True,
) -> ConvergenceResult:
    """One-shot helper; seeds default to every task in the graph."""
    engine = PropagationEngine(propagate_unchanged=propagate_unchanged)
    return engine.run(graph, graph.ids() if seeds is None else seeds)


def order_seeds(graph: TaskGraph, seeds: Iterable[int]) -> list[int]:
    """
    De-duplicate seeds and put blockers before their dependents.

    Each task is evaluated once, at its first dequeue, so a seed must not be
    reached before a seeded blocker of it. Seeds caught in a blocker cycle keep
    their input order at the end.
    """
    unique = list(dict.fromkeys(seeds))
    if len(unique) < 2:
        return unique

    position = {task_id: i for i, task_id in enumerate(unique)}
    indegree = dict.fromkeys(unique, 0)
    for task_id in unique:
        for blocker_id in graph.blockers_of(task_id):
            if blocker_id in position and blocker_id != task_id:
                indegree[task_id] += 1

    ready: deque[int] = deque(t for t in unique if indegree[t] == 0)
    ordered: list[int] = []
    while ready:
        task_id = ready.popleft()
        ordered.append(task_id)
        for dep_id in sorted(graph.dependents_of(task_id), key=lambda d: position.get(d, -1)):
            if dep_id not in position or dep_id == task_id or task_id not in graph.blockers_of(dep_id):
                continue
            indegree[dep_id] -= 1
            if indegree[dep_id] == 0:
                ready.append(dep_id)

    if len(ordered) < len(unique):
        placed = set(ordered)
        ordered.extend(t for t in unique if t not in placed)
    return ordered
