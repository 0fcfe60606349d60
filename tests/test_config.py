# tests/test_config.py

from __future__ import annotations

from pathlib import Path

import pytest

from taskgate.config import BACKEND_HTTP, BACKEND_MEMORY, Settings

_VARS = (
    "APP_NAME",
    "LOG_LEVEL",
    "DATA_DIR",
    "BACKEND",
    "API_BASE_URL",
    "API_TIMEOUT_SECONDS",
    "SYNC_MAX_CONCURRENCY",
    "PROPAGATE_UNCHANGED",
)


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in _VARS:
        monkeypatch.delenv(f"TASKGATE_{name}", raising=False)
    return monkeypatch


def test_defaults(clean_env) -> None:
    s = Settings.from_env()

    assert s.app_name == "taskgate"
    assert s.backend == BACKEND_HTTP
    assert s.api_base_url == "http://localhost:8000"
    assert s.api_timeout_seconds == 30.0
    assert s.sync_max_concurrency == 8
    assert s.propagate_unchanged is True
    assert s.data_dir == Path(".local/taskgate")


def test_overrides(clean_env, tmp_path: Path) -> None:
    clean_env.setenv("TASKGATE_BACKEND", "Memory")
    clean_env.setenv("TASKGATE_API_BASE_URL", "http://tasks.internal:9000/")
    clean_env.setenv("TASKGATE_SYNC_MAX_CONCURRENCY", "2")
    clean_env.setenv("TASKGATE_PROPAGATE_UNCHANGED", "off")
    clean_env.setenv("TASKGATE_DATA_DIR", str(tmp_path))

    s = Settings.from_env()

    assert s.backend == BACKEND_MEMORY
    assert s.api_base_url == "http://tasks.internal:9000"
    assert s.sync_max_concurrency == 2
    assert s.propagate_unchanged is False
    assert s.data_dir == tmp_path


def test_invalid_values_fall_back(clean_env) -> None:
    clean_env.setenv("TASKGATE_BACKEND", "carrier-pigeon")
    clean_env.setenv("TASKGATE_SYNC_MAX_CONCURRENCY", "0")
    clean_env.setenv("TASKGATE_API_TIMEOUT_SECONDS", "soon")

    s = Settings.from_env()

    assert s.backend == BACKEND_HTTP
    assert s.sync_max_concurrency == 1
    assert s.api_timeout_seconds == 30.0
