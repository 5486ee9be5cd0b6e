# src/todo_sync/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The engine depends on Protocols instead of concrete implementations.
This keeps the remote service swappable and makes testing easier.
"""

from collections.abc import Callable, Sequence
from typing import Protocol

from ..tasks.task_models import MutationFailure, StoreChange, Task

StoreObserver = Callable[[StoreChange], None]
# Called synchronously after every change to the task sequence.

ErrorHook = Callable[[MutationFailure], None]
# Called once per rolled-back mutation.


class TaskGateway(Protocol):
    """
    Remote persistence for tasks.

    Each call is a single request/response without retries.
    Implementations raise GatewayError when the operation did not complete.
    """

    async def fetch_all(self) -> Sequence[Task]: ...

    async def create(self, body: str) -> Task: ...

    async def mark_completed(self, task_id: str) -> None: ...

    async def edit_body(self, task_id: str, new_body: str) -> None: ...

    async def delete(self, task_id: str) -> None: ...
