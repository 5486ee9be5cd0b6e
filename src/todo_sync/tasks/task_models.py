# src/todo_sync/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class MutationKind(StrEnum):
    """What a user-initiated change does to the task list."""

    FETCH = "fetch"
    CREATE = "create"
    TOGGLE = "toggle"
    EDIT = "edit"
    DELETE = "delete"


class MutationState(StrEnum):
    """
    Lifecycle of one optimistic mutation.

    idle -> pending -> committed | rolled_back
    """

    IDLE = "idle"
    PENDING = "pending"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class MutationOutcome(StrEnum):
    """Result returned to the caller of a controller operation."""

    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"
    REJECTED = "rejected"  # input failed validation, nothing happened
    NOT_FOUND = "not_found"  # unknown task id, nothing happened


class StoreAction(StrEnum):
    LOADED = "loaded"
    INSERTED = "inserted"
    UPDATED = "updated"
    REMOVED = "removed"
    MOVED = "moved"


def clean_body(raw: str | None) -> str:
    """Trim a task body; raise ValueError if nothing is left."""
    body = (raw or "").strip()
    if not body:
        raise ValueError("body is required")
    return body


@dataclass(frozen=True, slots=True, eq=False)
class Task:
    """
    A todo item as known by the remote service.

    Identity is the id alone: two values with the same id are the same task
    seen at different points in time.
    """

    id: str
    body: str
    completed: bool = False

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Task):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def same_state(self, other: Task) -> bool:
        return self.id == other.id and self.body == other.body and self.completed == other.completed

    @classmethod
    def from_api(cls, raw: Any) -> Task:
        """
        Build a Task from a decoded JSON object.

        Accepts "id" or the Mongo-style "_id". Raises ValueError on anything
        that cannot be a task.
        """
        if not isinstance(raw, dict):
            raise ValueError(f"task payload must be an object, got {type(raw).__name__}")

        task_id = raw.get("id", raw.get("_id"))
        if task_id is None or str(task_id).strip() == "":
            raise ValueError("task payload has no id")

        body = raw.get("body")
        if not isinstance(body, str):
            raise ValueError("task payload has no body")

        completed = raw.get("completed", False)
        if not isinstance(completed, bool):
            raise ValueError(f"task payload has non-boolean completed: {completed!r}")

        return cls(
            id=str(task_id),
            body=clean_body(body),
            completed=completed,
        )


@dataclass(frozen=True, slots=True)
class StoreChange:
    """Passed to store observers after every change to the sequence."""

    action: StoreAction
    task_id: str | None = None


@dataclass(frozen=True, slots=True)
class MutationFailure:
    """Passed to error hooks on every rolled-back mutation (and a failed load)."""

    kind: MutationKind
    task_id: str | None
    error: Exception | None = None


_FAILURE_MESSAGES = {
    MutationKind.FETCH: "Failed to load todos. Please check if your backend is running.",
    MutationKind.CREATE: "Failed to create todo",
    MutationKind.TOGGLE: "Failed to update todo",
    MutationKind.EDIT: "Failed to update todo",
    MutationKind.DELETE: "Failed to delete todo",
}

SUCCESS_MESSAGES = {
    MutationKind.CREATE: "Todo created successfully!",
    MutationKind.TOGGLE: "Todo marked as completed!",
    MutationKind.EDIT: "Todo updated successfully!",
    MutationKind.DELETE: "Todo deleted successfully!",
}


def friendly_error_message(failure: MutationFailure) -> str:
    return _FAILURE_MESSAGES.get(failure.kind, "Something went wrong")
