# src/todo_sync/tasks/task_store.py

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from ..core.ports import StoreObserver
from .task_models import StoreAction, StoreChange, Task

logger = logging.getLogger(__name__)


class TaskStore:
    """
    In-memory ordered task list.

    The list order is the display order; there is no position field.
    Ids are unique within the list.

    Callers outside the engine only ever get tuples (snapshot()), never the
    list itself. Every change notifies observers synchronously.
    """

    def __init__(self) -> None:
        self._tasks: list[Task] = []
        self._observers: list[StoreObserver] = []

    # ---- observers ----

    def subscribe(self, observer: StoreObserver) -> Callable[[], None]:
        """Register an observer; returns a callable that unsubscribes it."""
        self._observers.append(observer)

        def _unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return _unsubscribe

    def _notify(self, action: StoreAction, task_id: str | None = None) -> None:
        change = StoreChange(action=action, task_id=task_id)
        for observer in list(self._observers):
            try:
                observer(change)
            except Exception:
                logger.exception("Store observer failed action=%s task_id=%s", action.value, task_id)

    # ---- reads ----

    def snapshot(self) -> tuple[Task, ...]:
        return tuple(self._tasks)

    def ids(self) -> list[str]:
        return [t.id for t in self._tasks]

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, task_id: object) -> bool:
        return self.index_of(task_id) is not None  # type: ignore[arg-type]

    def index_of(self, task_id: str) -> int | None:
        for i, t in enumerate(self._tasks):
            if t.id == task_id:
                return i
        return None

    def get(self, task_id: str) -> Task | None:
        idx = self.index_of(task_id)
        return self._tasks[idx] if idx is not None else None

    def count_tasks(self) -> int:
        return len(self._tasks)

    def progress(self) -> tuple[int, int]:
        """(completed, total)"""
        done = sum(1 for t in self._tasks if t.completed)
        return done, len(self._tasks)

    # ---- writes ----

    def replace_all(self, tasks: Iterable[Task]) -> None:
        """Load a full snapshot. Later duplicates of an id are dropped."""
        seen: set[str] = set()
        clean: list[Task] = []
        for t in tasks:
            if t.id in seen:
                logger.warning("Duplicate task id=%s in snapshot; keeping the first", t.id)
                continue
            seen.add(t.id)
            clean.append(t)

        self._tasks = clean
        logger.debug("TaskStore loaded total=%d", len(clean))
        self._notify(StoreAction.LOADED)

    def prepend(self, task: Task) -> None:
        """Put a task at the front; an existing entry with the same id is replaced in place."""
        idx = self.index_of(task.id)
        if idx is not None:
            self._tasks[idx] = task
            self._notify(StoreAction.UPDATED, task.id)
            return
        self._tasks.insert(0, task)
        self._notify(StoreAction.INSERTED, task.id)

    def insert_at(self, index: int, task: Task) -> None:
        """Insert at index (clamped to the current bounds)."""
        if task.id in self:
            raise ValueError(f"task id already present: {task.id}")
        index = max(0, min(int(index), len(self._tasks)))
        self._tasks.insert(index, task)
        self._notify(StoreAction.INSERTED, task.id)

    def neighbours(self, task_id: str) -> tuple[str | None, str | None]:
        """Ids directly before and after task_id (None at the ends or if absent)."""
        idx = self.index_of(task_id)
        if idx is None:
            return None, None
        before = self._tasks[idx - 1].id if idx > 0 else None
        after = self._tasks[idx + 1].id if idx + 1 < len(self._tasks) else None
        return before, after

    def restore(
        self,
        task: Task,
        *,
        index: int,
        after_id: str | None = None,
        before_id: str | None = None,
    ) -> None:
        """
        Put a removed task back next to its old neighbours.

        Goes after after_id if still present, else before before_id, else at
        index (clamped).
        """
        if after_id is not None:
            idx = self.index_of(after_id)
            if idx is not None:
                self.insert_at(idx + 1, task)
                return
        if before_id is not None:
            idx = self.index_of(before_id)
            if idx is not None:
                self.insert_at(idx, task)
                return
        self.insert_at(index, task)

    def update_task_fields(
        self,
        task_id: str,
        *,
        body: str | None = None,
        completed: bool | None = None,
    ) -> Task | None:
        """
        Replace body and/or completed for task_id.

        Returns the previous value, or None if the id is unknown.
        """
        idx = self.index_of(task_id)
        if idx is None:
            return None

        before = self._tasks[idx]
        after = Task(
            id=before.id,
            body=before.body if body is None else body,
            completed=before.completed if completed is None else completed,
        )
        if after.same_state(before):
            return before

        self._tasks[idx] = after
        self._notify(StoreAction.UPDATED, task_id)
        return before

    def remove(self, task_id: str) -> tuple[int, Task] | None:
        """Remove task_id; returns (old_index, task) or None if absent."""
        idx = self.index_of(task_id)
        if idx is None:
            return None
        task = self._tasks.pop(idx)
        self._notify(StoreAction.REMOVED, task_id)
        return idx, task

    def move(self, from_index: int, to_index: int) -> None:
        """Stable move: elements in between shift by one slot."""
        n = len(self._tasks)
        if not (0 <= from_index < n and 0 <= to_index < n):
            raise IndexError(f"move out of range: {from_index} -> {to_index} (len={n})")
        if from_index == to_index:
            return
        task = self._tasks.pop(from_index)
        self._tasks.insert(to_index, task)
        self._notify(StoreAction.MOVED, task.id)

    def clear(self) -> None:
        self._tasks = []
        self._notify(StoreAction.LOADED)
