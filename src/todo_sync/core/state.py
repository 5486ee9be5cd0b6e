# src/todo_sync/core/state.py

from __future__ import annotations

from dataclasses import dataclass

from .engine import TodoEngine
from .ports import TaskGateway


@dataclass
class AppState:
    # Settings stay on the state for easy access in connectors/commands.
    settings: object

    gateway: TaskGateway
    engine: TodoEngine
