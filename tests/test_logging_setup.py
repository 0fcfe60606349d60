# tests/test_logging_setup.py

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from taskgate.logging_setup import _ConsoleNoiseFilter, log_file_name, setup_logging


@pytest.fixture()
def restore_root_logger():
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    yield root
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()
    for h in saved_handlers:
        root.addHandler(h)
    root.setLevel(saved_level)
    logging.captureWarnings(False)


def _record(name: str, level: int) -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, "msg", None, None)


def test_console_filter_policy() -> None:
    f = _ConsoleNoiseFilter()

    assert f.filter(_record("taskgate.core.board", logging.DEBUG))
    assert not f.filter(_record("taskgate.sync.coordinator", logging.INFO))
    assert f.filter(_record("taskgate.sync.coordinator", logging.WARNING))
    assert not f.filter(_record("httpx", logging.WARNING))
    assert f.filter(_record("httpx", logging.ERROR))
    assert not f.filter(_record("py.warnings", logging.WARNING))


def test_log_file_name_follows_app_name() -> None:
    assert log_file_name("taskgate") == "taskgate.log"
    assert log_file_name("  Team Board ") == "team-board.log"
    assert log_file_name("///") == "taskgate.log"


def test_setup_writes_to_app_named_file(tmp_path: Path, restore_root_logger) -> None:
    log_file = setup_logging(app_name="Team Board", log_dir=tmp_path / "logs")

    logging.getLogger("taskgate.test").debug("hello file")
    for h in restore_root_logger.handlers:
        h.flush()

    assert log_file == tmp_path / "logs" / "team-board.log"
    assert "hello file" in log_file.read_text(encoding="utf-8")
    assert len(restore_root_logger.handlers) == 2

    setup_logging(app_name="Team Board", log_dir=tmp_path / "logs")
    assert len(restore_root_logger.handlers) == 2
