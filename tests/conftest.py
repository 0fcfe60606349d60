# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from taskgate.cli.bootstrap import create_initial_state
from taskgate.core.board import TaskBoard
from taskgate.core.state import AppState

from .fakes import FlakyBackend


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and bootstrap.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="taskgate-test",
        log_level="DEBUG",
        data_dir=tmp_path / "data",
        backend="memory",
        api_base_url="http://tasks.test",
        api_timeout_seconds=5.0,
        sync_max_concurrency=4,
        propagate_unchanged=True,
    )


@pytest.fixture()
def backend() -> FlakyBackend:
    return FlakyBackend()


@pytest.fixture()
def board(backend: FlakyBackend) -> TaskBoard:
    return TaskBoard(backend)


@pytest.fixture()
def state(settings: SimpleNamespace, backend: FlakyBackend) -> AppState:
    """
    AppState wired with the in-memory backend.

    NOTE: the backend is real (not mocked) because its edge bookkeeping and
    transition checks are part of what we want to test.
    """
    return create_initial_state(settings=settings, backend=backend)
