# src/taskgate/logging_setup.py

from __future__ import annotations

import logging
import re
import sys
from pathlib import Path

# Loggers that stay off the console below WARNING (one line per write is too chatty).
_QUIET_PREFIXES = ("taskgate.sync.",)

# Third-party loggers capped at WARNING even in the file.
_LIBRARY_LEVELS = {
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
}


class _ConsoleNoiseFilter(logging.Filter):
    """
    Console policy:
    - taskgate.* passes, except _QUIET_PREFIXES which need WARNING+
    - everything else (py.warnings, httpx, ...) needs ERROR+
    """

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if not name.startswith("taskgate."):
            return record.levelno >= logging.ERROR
        if name.startswith(_QUIET_PREFIXES):
            return record.levelno >= logging.WARNING
        return True


def log_file_name(app_name: str) -> str:
    """'My Board' -> 'my-board.log'; falls back to taskgate.log."""
    stem = re.sub(r"[^a-z0-9_.-]+", "-", app_name.strip().lower()).strip("-.")
    return f"{stem or 'taskgate'}.log"


def setup_logging(
    *,
    app_name: str = "taskgate",
    log_dir: str | Path = ".local/taskgate",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Install a filtered stderr handler and a full debug file handler on the root logger.

    Replaces whatever handlers were there, so calling it twice does not
    duplicate output. Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / log_file_name(app_name)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.addFilter(_ConsoleNoiseFilter())

    file = logging.FileHandler(log_file, encoding="utf-8")
    file.setLevel(file_level)

    for handler in (console, file):
        handler.setFormatter(fmt)
        root.addHandler(handler)

    logging.captureWarnings(True)
    for name, level in _LIBRARY_LEVELS.items():
        logging.getLogger(name).setLevel(level)

    return log_file
