# src/taskgate/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures the local (gitignored) data directory exists,
- picks the system-of-record backend (HTTP service or in-memory),
- wires engine, sync coordinator and board into AppState.
"""

from __future__ import annotations

import logging

from ..backends.http_backend import HttpTaskBackend
from ..backends.memory_backend import InMemoryTaskBackend
from ..config import BACKEND_MEMORY, get_settings
from ..core.board import TaskBoard
from ..core.ports import TaskBackend
from ..core.state import AppState
from ..engine.propagation import PropagationEngine
from ..sync.coordinator import SyncCoordinator

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)


def create_backend(settings) -> TaskBackend:
    if settings.backend == BACKEND_MEMORY:
        logger.info("Using in-memory task backend (offline mode, nothing is persisted).")
        return InMemoryTaskBackend()

    logger.info("Using task service at %s", settings.api_base_url)
    return HttpTaskBackend(settings.api_base_url, timeout=settings.api_timeout_seconds)


def create_initial_state(*, settings=None, backend: TaskBackend | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings (and the backend) injectable makes the app easier to test
    and avoids hidden global config reads. If settings is None, falls back to
    get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    if backend is None:
        backend = create_backend(settings)

    board = TaskBoard(
        backend,
        engine=PropagationEngine(propagate_unchanged=settings.propagate_unchanged),
        coordinator=SyncCoordinator(backend, max_concurrency=settings.sync_max_concurrency),
    )
    return AppState(settings=settings, backend=backend, board=board)
