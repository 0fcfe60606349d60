# src/taskgate/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then runs the console connector
on an asyncio event loop until /exit, EOF or Ctrl+C.
"""

from __future__ import annotations

import asyncio
import logging

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..core.state import AppState
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


async def _shutdown(state: AppState) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    try:
        await state.backend.aclose()
    except Exception:
        logger.debug("Backend close failed.", exc_info=True)


async def _run(state: AppState) -> None:
    try:
        await run_console_loop(state)
    finally:
        await _shutdown(state)


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    app_name = str(getattr(settings, "app_name", "taskgate"))
    log_dir = getattr(settings, "data_dir", ".local/taskgate")
    log_file = setup_logging(app_name=app_name, log_dir=log_dir, console_level=console_level)

    logger.info("Starting %s (log file: %s)...", app_name, log_file)

    state = create_initial_state(settings=settings)

    try:
        asyncio.run(_run(state))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down...")

    logger.info("Bye.")


if __name__ == "__main__":
    main()
