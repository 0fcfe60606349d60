# src/taskgate/core/state.py

from __future__ import annotations

from dataclasses import dataclass

from .board import TaskBoard
from .ports import TaskBackend


@dataclass
class AppState:
    # Settings live on the state so commands can read them without a global lookup.
    settings: object

    backend: TaskBackend
    board: TaskBoard
