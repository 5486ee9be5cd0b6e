# src/todo_sync/tasks/reorder.py

from __future__ import annotations

"""
Manual reordering (drag and drop, keyboard steps).

Local only: the new order is never sent to the remote service, so a fresh
fetch_all() shows the server's order again.
"""

import logging
import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from .task_store import TaskStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Rect:
    """Bounding box of a rendered list item."""

    left: float
    top: float
    width: float
    height: float

    @property
    def center(self) -> tuple[float, float]:
        return self.left + self.width / 2.0, self.top + self.height / 2.0


def closest_center(
    point: tuple[float, float],
    rects: Mapping[str, Rect],
    order: Iterable[str] | None = None,
) -> str | None:
    """
    Id of the rect whose center is nearest to point.

    Ties go to the id that comes first in `order` (defaults to the mapping's
    iteration order).
    """
    px, py = point
    best_id: str | None = None
    best_dist = math.inf
    for item_id in order if order is not None else rects.keys():
        rect = rects.get(item_id)
        if rect is None:
            continue
        cx, cy = rect.center
        dist = math.hypot(cx - px, cy - py)
        if dist < best_dist:
            best_id, best_dist = item_id, dist
    return best_id


class ReorderController:
    def __init__(self, store: TaskStore) -> None:
        self._store = store

    def move(self, source_id: str, target_id: str) -> bool:
        """
        Move source_id into target_id's slot.

        No-op (returns False) when either id is unknown or both are the same.
        """
        if source_id == target_id:
            return False

        old_index = self._store.index_of(source_id)
        new_index = self._store.index_of(target_id)
        if old_index is None or new_index is None:
            logger.debug("Reorder ignored: unknown id source=%s target=%s", source_id, target_id)
            return False

        self._store.move(old_index, new_index)
        logger.debug("Reordered id=%s %d -> %d", source_id, old_index, new_index)
        return True

    def step(self, task_id: str, delta: int) -> bool:
        """Keyboard step: move task_id exactly one slot up (delta < 0) or down (delta > 0)."""
        if delta == 0:
            return False
        idx = self._store.index_of(task_id)
        if idx is None:
            return False

        target = idx + (1 if delta > 0 else -1)
        ids = self._store.ids()
        if not 0 <= target < len(ids):
            return False
        return self.move(task_id, ids[target])

    def drop(self, source_id: str, point: tuple[float, float], rects: Mapping[str, Rect]) -> bool:
        """
        Pointer release at `point`.

        The target is the item whose rect center is closest to the point,
        ties resolved by display order. Dropping onto itself is a no-op.
        """
        target_id = closest_center(point, rects, order=self._store.ids())
        if target_id is None:
            return False
        return self.move(source_id, target_id)
