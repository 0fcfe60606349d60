# src/taskgate/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets or network access required at import time.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TASKGATE"

BACKEND_HTTP = "http"
BACKEND_MEMORY = "memory"
_BACKENDS = {BACKEND_HTTP, BACKEND_MEMORY}


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    data_dir: Path

    # ---- System of record ----
    backend: str
    api_base_url: str
    api_timeout_seconds: float

    # ---- Engine / sync tuning ----
    sync_max_concurrency: int
    propagate_unchanged: bool

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "taskgate").strip() or "taskgate"
        log_level = _env(_k("LOG_LEVEL"), "INFO")
        data_dir = _env_path(_k("DATA_DIR"), Path(".local/taskgate"))

        backend = _env(_k("BACKEND"), BACKEND_HTTP).strip().lower()
        if backend not in _BACKENDS:
            backend = BACKEND_HTTP

        api_base_url = _env(_k("API_BASE_URL"), "http://localhost:8000").strip().rstrip("/")
        api_timeout_seconds = max(1.0, _env_float(_k("API_TIMEOUT_SECONDS"), 30.0))

        sync_max_concurrency = max(1, _env_int(_k("SYNC_MAX_CONCURRENCY"), 8))
        # Keep re-enqueueing dependents of unchanged tasks unless explicitly disabled.
        propagate_unchanged = _env_bool(_k("PROPAGATE_UNCHANGED"), True)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            backend=backend,
            api_base_url=api_base_url or "http://localhost:8000",
            api_timeout_seconds=api_timeout_seconds,
            sync_max_concurrency=sync_max_concurrency,
            propagate_unchanged=propagate_unchanged,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
