# src/taskgate/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import cast

from ..core.board import PassOutcome
from ..core.errors import TaskGateError, friendly_error_message
from ..core.models import Task, TaskPatch, TaskState
from ..core.state import AppState
from ..engine.evaluator import blocking_blockers
from ..engine.graph import TaskGraph

CommandEmitter = Callable[[str], None]
CommandResult = str | Awaitable[str]
CommandHandler2 = Callable[[AppState, list[str]], CommandResult]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], CommandResult]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by connectors (/help, /list, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            result = cast(CommandHandler3, handler)(state, args, emit)
        else:
            result = cast(CommandHandler2, handler)(state, args)

        if inspect.isawaitable(result):
            return await result
        return result

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        lines.append("  /exit - Quit.")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- formatting ----

def _ids(ids) -> str:
    return ", ".join(f"#{i}" for i in sorted(ids)) or "-"


def format_task_line(task: Task, graph: TaskGraph) -> str:
    line = f"#{task.id} [{task.state.value}] {task.title}"
    if task.state == TaskState.BLOCKED:
        waiting = blocking_blockers(task, graph)
        if waiting:
            line += f" (waiting on: {_ids(waiting)})"
    return line


def format_task_details(task: Task, graph: TaskGraph) -> str:
    lines = [
        f"#{task.id} {task.title}",
        f"  State: {task.state.value}",
    ]
    if task.description:
        lines.append(f"  Description: {task.description}")
    if task.due_date:
        lines.append(f"  Due: {task.due_date.date().isoformat()}")
    lines.append(f"  Blocked by: {_ids(task.blockers)}")
    lines.append(f"  Blocks: {_ids(task.dependents)}")
    waiting = blocking_blockers(task, graph)
    if waiting:
        lines.append(f"  Waiting on: {_ids(waiting)}")
    if task.created_at:
        lines.append(f"  Created: {task.created_at.strftime('%Y-%m-%d %H:%M')}")
    if task.completed_at:
        lines.append(f"  Completed: {task.completed_at.strftime('%Y-%m-%d %H:%M')}")
    return "\n".join(lines)


def format_outcome(outcome: PassOutcome) -> str:
    changes = outcome.convergence.changes
    if not changes:
        return "No dependent tasks changed."
    lines = [f"{len(changes)} task(s) re-evaluated:"]
    for change in changes:
        lines.append(f"  #{change.task_id}: {change.previous.value} -> {change.state.value}")
    failed = outcome.sync.failed
    if failed:
        lines.append(
            f"  Warning: {len(failed)} update(s) could not be saved; they will be retried on /refresh."
        )
    return "\n".join(lines)


def _parse_id(raw: str) -> int:
    try:
        return int(raw.lstrip("#"))
    except ValueError:
        raise ValueError(f"not a task id: {raw!r}") from None


async def _run_intent(intent: Awaitable[PassOutcome], done: str) -> str:
    try:
        outcome = await intent
    except (TaskGateError, ValueError) as exc:
        return friendly_error_message(exc)
    return f"{done}\n{format_outcome(outcome)}"


# ---- commands ----

def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    board = state.board
    counts = board.counts()
    backend = getattr(state.settings, "backend", "?")
    lines = [
        "Status:",
        f"  Backend: {backend}",
        "  Tasks: "
        + ", ".join(f"{s.value}={counts[s]}" for s in TaskState)
        + f" (total {len(board.graph)})",
    ]
    if board.last_sync is not None:
        lines.append(
            f"  Last sync: {len(board.last_sync.succeeded)} ok, {len(board.last_sync.failed)} failed"
        )
    if board.error:
        lines.append(f"  Last error: {board.error}")
    return "\n".join(lines)


def cmd_list(state: AppState, args: list[str]) -> str:
    """
    /list          -> all tasks
    /list blocked  -> only tasks in that state
    """
    board = state.board
    wanted: TaskState | None = None
    if args:
        try:
            wanted = TaskState.parse(" ".join(args))
        except ValueError as exc:
            return f"{exc}. Use one of: {', '.join(s.value for s in TaskState)}."

    tasks = board.filter(wanted)
    if not tasks:
        return "No tasks found."
    return "\n".join(format_task_line(t, board.graph) for t in tasks)


def cmd_show(state: AppState, args: list[str]) -> str:
    if len(args) != 1:
        return "Usage: /show ID"
    try:
        task_id = _parse_id(args[0])
    except ValueError as exc:
        return str(exc)
    task = state.board.get(task_id)
    if task is None:
        return f"Task #{task_id} is not on the board. Try /refresh."
    return format_task_details(task, state.board.graph)


async def cmd_add(state: AppState, args: list[str]) -> str:
    title = " ".join(args).strip()
    if not title:
        return "Usage: /add TITLE"
    try:
        task = await state.board.create_task(title)
    except (TaskGateError, ValueError) as exc:
        return friendly_error_message(exc)
    reply = f"Created #{task.id} [{task.state.value}] {task.title}"
    if state.board.error:
        reply += f"\nWarning: {state.board.error}. The board may be stale; try /refresh."
    return reply


async def cmd_set(state: AppState, args: list[str]) -> str:
    """
    /set ID todo|in_progress|done
    """
    if len(args) < 2:
        return "Usage: /set ID todo|in_progress|done"
    try:
        task_id = _parse_id(args[0])
        new_state = TaskState.parse(" ".join(args[1:]))
    except ValueError as exc:
        return str(exc)
    return await _run_intent(
        state.board.set_state(task_id, new_state),
        f"#{task_id} -> {new_state.value}",
    )


async def cmd_rename(state: AppState, args: list[str]) -> str:
    if len(args) < 2:
        return "Usage: /rename ID TITLE"
    try:
        task_id = _parse_id(args[0])
    except ValueError as exc:
        return str(exc)
    title = " ".join(args[1:])
    return await _run_intent(
        state.board.update_task(task_id, TaskPatch(title=title)),
        f"#{task_id} renamed.",
    )


async def cmd_block(state: AppState, args: list[str]) -> str:
    if len(args) != 2:
        return "Usage: /block ID BLOCKER_ID"
    try:
        task_id, blocker_id = _parse_id(args[0]), _parse_id(args[1])
    except ValueError as exc:
        return str(exc)
    return await _run_intent(
        state.board.add_dependency(task_id, blocker_id),
        f"#{task_id} is now blocked by #{blocker_id}.",
    )


async def cmd_unblock(state: AppState, args: list[str]) -> str:
    if len(args) != 2:
        return "Usage: /unblock ID BLOCKER_ID"
    try:
        task_id, blocker_id = _parse_id(args[0]), _parse_id(args[1])
    except ValueError as exc:
        return str(exc)
    return await _run_intent(
        state.board.remove_dependency(task_id, blocker_id),
        f"#{task_id} no longer depends on #{blocker_id}.",
    )


async def cmd_delete(state: AppState, args: list[str]) -> str:
    if len(args) != 1:
        return "Usage: /delete ID"
    try:
        task_id = _parse_id(args[0])
    except ValueError as exc:
        return str(exc)
    return await _run_intent(state.board.delete_task(task_id), f"Deleted #{task_id}.")


async def cmd_refresh(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if emit:
        emit("Refreshing from the task service...")
    try:
        outcome = await state.board.refresh()
    except TaskGateError as exc:
        return friendly_error_message(exc)
    return f"Loaded {len(state.board.graph)} task(s).\n{format_outcome(outcome)}"


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show backend, state counts and last sync.")
registry.register("list", cmd_list, help_text="List tasks: /list [STATE].", aliases=["ls"])
registry.register("show", cmd_show, help_text="Show one task with its blockers: /show ID.")
registry.register("add", cmd_add, help_text="Create a task: /add TITLE.")
registry.register("set", cmd_set, help_text="Change state: /set ID todo|in_progress|done.")
registry.register("rename", cmd_rename, help_text="Rename a task: /rename ID TITLE.")
registry.register("block", cmd_block, help_text="Add a blocker: /block ID BLOCKER_ID.")
registry.register("unblock", cmd_unblock, help_text="Remove a blocker: /unblock ID BLOCKER_ID.")
registry.register("delete", cmd_delete, help_text="Delete a task: /delete ID.", aliases=["rm"])
registry.register("refresh", cmd_refresh, help_text="Reload every task and re-check all blockers.")
