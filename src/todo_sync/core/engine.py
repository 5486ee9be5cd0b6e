# src/todo_sync/core/engine.py

from __future__ import annotations

"""
Presentation-facing boundary of the task engine.

Renderers read `tasks` (an immutable snapshot), call the request_* entry
points, subscribe() for re-render notifications and on_error() for failed
mutations. Nothing here performs I/O except through the injected gateway.
"""

import logging
from collections.abc import Callable, Mapping

from ..tasks.edit_session import EditSession, EditSessions
from ..tasks.reorder import Rect, ReorderController
from ..tasks.task_controller import TaskController
from ..tasks.task_models import MutationKind, MutationOutcome, Task
from ..tasks.task_store import TaskStore
from .ports import ErrorHook, StoreObserver, TaskGateway

logger = logging.getLogger(__name__)


class TodoEngine:
    def __init__(self, gateway: TaskGateway, *, store: TaskStore | None = None) -> None:
        self.store = store if store is not None else TaskStore()
        self.controller = TaskController(self.store, gateway)
        self.reorder = ReorderController(self.store)
        self.edits = EditSessions(self.store, self.controller)
        self._loading = True

    # ---- read side ----

    @property
    def tasks(self) -> tuple[Task, ...]:
        return self.store.snapshot()

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def creating(self) -> bool:
        return self.controller.creating

    @property
    def pending(self) -> Mapping[str, MutationKind]:
        return self.controller.pending

    def progress(self) -> tuple[int, int]:
        return self.store.progress()

    def subscribe(self, observer: StoreObserver) -> Callable[[], None]:
        return self.store.subscribe(observer)

    def on_error(self, hook: ErrorHook) -> Callable[[], None]:
        return self.controller.on_error(hook)

    # ---- startup ----

    async def load(self) -> MutationOutcome:
        """Initial full fetch. A failure leaves the list empty and is reported once."""
        try:
            return await self.controller.load()
        finally:
            self._loading = False

    # ---- mutations ----

    async def request_create(self, body: str) -> MutationOutcome:
        return await self.controller.create(body)

    async def request_toggle(self, task_id: str) -> MutationOutcome:
        return await self.controller.toggle(task_id)

    async def request_edit(self, task_id: str, new_body: str) -> MutationOutcome:
        return await self.controller.edit(task_id, new_body)

    async def request_delete(self, task_id: str) -> MutationOutcome:
        # An open editor for a task that is going away is closed.
        self.edits.cancel(task_id)
        return await self.controller.delete(task_id)

    # ---- local ordering ----

    def request_reorder(self, source_id: str, target_id: str) -> bool:
        return self.reorder.move(source_id, target_id)

    def request_step(self, task_id: str, delta: int) -> bool:
        return self.reorder.step(task_id, delta)

    def request_drop(
        self, source_id: str, point: tuple[float, float], rects: Mapping[str, Rect]
    ) -> bool:
        return self.reorder.drop(source_id, point, rects)

    # ---- inline editing ----

    def begin_edit(self, task_id: str) -> EditSession | None:
        return self.edits.begin(task_id)

    def cancel_edit(self, task_id: str) -> bool:
        return self.edits.cancel(task_id)

    async def commit_edit(self, task_id: str) -> MutationOutcome:
        return await self.edits.commit(task_id)
