# src/todo_sync/tasks/task_controller.py

from __future__ import annotations

"""
Optimistic mutations.

Every mutation follows the same shape:
- validate (rejected -> nothing happens)
- apply the change to the store (pending)
- call the gateway once
- keep the change (committed) or undo it and report (rolled_back)

Mutations on different ids may be outstanding at the same time. The
controller does not lock a single id against two kinds of mutation; callers
use `pending` to disable conflicting actions.
"""

import logging
from collections.abc import Awaitable, Callable, Mapping
from types import MappingProxyType
from typing import Any

from ..core.ports import ErrorHook, TaskGateway
from .task_gateway import GatewayError
from .task_models import (
    SUCCESS_MESSAGES,
    MutationFailure,
    MutationKind,
    MutationOutcome,
    MutationState,
    clean_body,
)
from .task_store import TaskStore

logger = logging.getLogger(__name__)


class TaskController:
    def __init__(self, store: TaskStore, gateway: TaskGateway) -> None:
        self._store = store
        self._gateway = gateway
        self._pending: dict[str, MutationKind] = {}
        self._creating = 0
        self._error_hooks: list[ErrorHook] = []

    # ---- hooks / introspection ----

    def on_error(self, hook: ErrorHook) -> Callable[[], None]:
        """Register an error hook; returns a callable that removes it."""
        self._error_hooks.append(hook)

        def _remove() -> None:
            if hook in self._error_hooks:
                self._error_hooks.remove(hook)

        return _remove

    @property
    def pending(self) -> Mapping[str, MutationKind]:
        """Task ids with a mutation in flight, and the kind of that mutation."""
        return MappingProxyType(dict(self._pending))

    def is_pending(self, task_id: str) -> bool:
        return task_id in self._pending

    @property
    def creating(self) -> bool:
        return self._creating > 0

    # ---- internals ----

    def _transition(self, kind: MutationKind, task_id: str | None, state: MutationState) -> None:
        if state == MutationState.PENDING:
            if task_id is not None:
                self._pending[task_id] = kind
        elif task_id is not None and self._pending.get(task_id) == kind:
            del self._pending[task_id]

        level = logging.WARNING if state == MutationState.ROLLED_BACK else logging.DEBUG
        logger.log(level, "%s id=%s -> %s", kind.value, task_id, state.value)

    def _report(self, kind: MutationKind, task_id: str | None, error: Exception | None) -> None:
        failure = MutationFailure(kind=kind, task_id=task_id, error=error)
        for hook in list(self._error_hooks):
            try:
                hook(failure)
            except Exception:
                logger.exception("Error hook failed kind=%s task_id=%s", kind.value, task_id)

    async def _call(
        self, kind: MutationKind, task_id: str | None, call: Callable[[], Awaitable[Any]]
    ) -> tuple[bool, Any, Exception | None]:
        """Run one gateway call. Returns (ok, result, error)."""
        try:
            return True, await call(), None
        except GatewayError as e:
            logger.info("%s id=%s: gateway failure: %s", kind.value, task_id, e)
            return False, None, e
        except Exception as e:
            logger.exception("%s id=%s: unexpected gateway error", kind.value, task_id)
            return False, None, e

    # ---- public API ----

    async def load(self) -> MutationOutcome:
        """Replace the store with the server's full list."""
        ok, tasks, err = await self._call(MutationKind.FETCH, None, self._gateway.fetch_all)
        if not ok:
            self._report(MutationKind.FETCH, None, err)
            return MutationOutcome.ROLLED_BACK

        self._store.replace_all(tasks or [])
        logger.info("Loaded %d todos", self._store.count_tasks())
        return MutationOutcome.COMMITTED

    async def create(self, body: str) -> MutationOutcome:
        """
        Create a task. Nothing is inserted until the server returns it; the
        created task is then prepended.
        """
        try:
            clean = clean_body(body)
        except ValueError:
            logger.debug("create rejected: empty body")
            return MutationOutcome.REJECTED

        self._creating += 1
        self._transition(MutationKind.CREATE, None, MutationState.PENDING)
        try:
            ok, task, err = await self._call(
                MutationKind.CREATE, None, lambda: self._gateway.create(clean)
            )
        finally:
            self._creating -= 1

        if not ok:
            self._transition(MutationKind.CREATE, None, MutationState.ROLLED_BACK)
            self._report(MutationKind.CREATE, None, err)
            return MutationOutcome.ROLLED_BACK

        self._store.prepend(task)
        self._transition(MutationKind.CREATE, task.id, MutationState.COMMITTED)
        logger.info(SUCCESS_MESSAGES[MutationKind.CREATE])
        return MutationOutcome.COMMITTED

    async def toggle(self, task_id: str) -> MutationOutcome:
        """Mark a task completed. Completed tasks never go back to open."""
        task = self._store.get(task_id)
        if task is None:
            logger.debug("toggle ignored: unknown id=%s", task_id)
            return MutationOutcome.NOT_FOUND
        if task.completed:
            logger.debug("toggle rejected: id=%s already completed", task_id)
            return MutationOutcome.REJECTED

        self._transition(MutationKind.TOGGLE, task_id, MutationState.PENDING)
        self._store.update_task_fields(task_id, completed=True)

        ok, _, err = await self._call(
            MutationKind.TOGGLE, task_id, lambda: self._gateway.mark_completed(task_id)
        )
        if ok:
            self._transition(MutationKind.TOGGLE, task_id, MutationState.COMMITTED)
            logger.info(SUCCESS_MESSAGES[MutationKind.TOGGLE])
            return MutationOutcome.COMMITTED

        self._store.update_task_fields(task_id, completed=False)
        self._transition(MutationKind.TOGGLE, task_id, MutationState.ROLLED_BACK)
        self._report(MutationKind.TOGGLE, task_id, err)
        return MutationOutcome.ROLLED_BACK

    async def edit(self, task_id: str, new_body: str) -> MutationOutcome:
        task = self._store.get(task_id)
        if task is None:
            logger.debug("edit ignored: unknown id=%s", task_id)
            return MutationOutcome.NOT_FOUND
        try:
            clean = clean_body(new_body)
        except ValueError:
            logger.debug("edit rejected: empty body id=%s", task_id)
            return MutationOutcome.REJECTED
        if clean == task.body:
            logger.debug("edit rejected: body unchanged id=%s", task_id)
            return MutationOutcome.REJECTED

        previous = task.body
        self._transition(MutationKind.EDIT, task_id, MutationState.PENDING)
        self._store.update_task_fields(task_id, body=clean)

        ok, _, err = await self._call(
            MutationKind.EDIT, task_id, lambda: self._gateway.edit_body(task_id, clean)
        )
        if ok:
            self._transition(MutationKind.EDIT, task_id, MutationState.COMMITTED)
            logger.info(SUCCESS_MESSAGES[MutationKind.EDIT])
            return MutationOutcome.COMMITTED

        self._store.update_task_fields(task_id, body=previous)
        self._transition(MutationKind.EDIT, task_id, MutationState.ROLLED_BACK)
        self._report(MutationKind.EDIT, task_id, err)
        return MutationOutcome.ROLLED_BACK

    async def delete(self, task_id: str) -> MutationOutcome:
        if task_id not in self._store:
            logger.debug("delete ignored: unknown id=%s", task_id)
            return MutationOutcome.NOT_FOUND

        self._transition(MutationKind.DELETE, task_id, MutationState.PENDING)
        # neighbours are remembered so a failed delete puts the task back in place
        # even if other mutations changed the list meanwhile
        after_id, before_id = self._store.neighbours(task_id)
        old_index, task = self._store.remove(task_id)

        ok, _, err = await self._call(
            MutationKind.DELETE, task_id, lambda: self._gateway.delete(task_id)
        )
        if ok:
            self._transition(MutationKind.DELETE, task_id, MutationState.COMMITTED)
            logger.info(SUCCESS_MESSAGES[MutationKind.DELETE])
            return MutationOutcome.COMMITTED

        if task_id not in self._store:
            self._store.restore(task, index=old_index, after_id=after_id, before_id=before_id)
        self._transition(MutationKind.DELETE, task_id, MutationState.ROLLED_BACK)
        self._report(MutationKind.DELETE, task_id, err)
        return MutationOutcome.ROLLED_BACK
