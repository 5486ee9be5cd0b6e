# src/todo_sync/tasks/edit_session.py

from __future__ import annotations

import logging
from dataclasses import dataclass

from .task_controller import TaskController
from .task_models import MutationOutcome
from .task_store import TaskStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class EditSession:
    """Draft text for one task while its editor is open. Never persisted."""

    task_id: str
    original_body: str
    draft: str

    @property
    def dirty(self) -> bool:
        return self.draft.strip() != self.original_body


class EditSessions:
    """
    Open editors, at most one per task.

    Editing is not available for completed tasks. Commit goes through
    TaskController.edit(); a blank or unchanged draft is discarded without a
    gateway call.
    """

    def __init__(self, store: TaskStore, controller: TaskController) -> None:
        self._store = store
        self._controller = controller
        self._sessions: dict[str, EditSession] = {}

    def begin(self, task_id: str) -> EditSession | None:
        existing = self._sessions.get(task_id)
        if existing is not None:
            return existing

        task = self._store.get(task_id)
        if task is None:
            return None
        if task.completed:
            logger.debug("Edit not started: id=%s is completed", task_id)
            return None

        session = EditSession(task_id=task_id, original_body=task.body, draft=task.body)
        self._sessions[task_id] = session
        return session

    def get(self, task_id: str) -> EditSession | None:
        return self._sessions.get(task_id)

    def active_ids(self) -> list[str]:
        return list(self._sessions)

    def set_draft(self, task_id: str, text: str) -> bool:
        session = self._sessions.get(task_id)
        if session is None:
            return False
        session.draft = text
        return True

    def cancel(self, task_id: str) -> bool:
        return self._sessions.pop(task_id, None) is not None

    async def commit(self, task_id: str) -> MutationOutcome:
        """Close the editor and save the draft if it changes the body."""
        session = self._sessions.pop(task_id, None)
        if session is None:
            return MutationOutcome.NOT_FOUND

        task = self._store.get(task_id)
        if task is None:
            return MutationOutcome.NOT_FOUND
        if task.completed:
            logger.debug("Edit draft discarded: id=%s was completed meanwhile", task_id)
            return MutationOutcome.REJECTED

        draft = session.draft.strip()
        if not draft or draft == task.body:
            logger.debug("Edit draft discarded id=%s", task_id)
            return MutationOutcome.REJECTED

        return await self._controller.edit(task_id, draft)
