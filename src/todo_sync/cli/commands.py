# src/todo_sync/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import cast

from ..core.state import AppState
from ..tasks.task_models import SUCCESS_MESSAGES, MutationKind, MutationOutcome

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], Awaitable[str]]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], Awaitable[str]]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return await h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return await h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _resolve(state: AppState, ref: str) -> str | None:
    """
    Task id from a 1-based list position, a literal id, or "#<id>".

    All-digit refs are positions first; "#3" reaches a task whose id is "3".
    """
    tasks = state.engine.tasks
    if ref.startswith("#"):
        ref = ref[1:]
        return ref if any(t.id == ref for t in tasks) else None
    if ref.isdigit():
        n = int(ref)
        if 1 <= n <= len(tasks):
            return tasks[n - 1].id
    for t in tasks:
        if t.id == ref:
            return t.id
    return None


def _outcome_text(outcome: MutationOutcome, kind: MutationKind) -> str:
    if outcome == MutationOutcome.COMMITTED:
        return SUCCESS_MESSAGES[kind]
    if outcome == MutationOutcome.ROLLED_BACK:
        return "Change reverted."
    if outcome == MutationOutcome.NOT_FOUND:
        return "No such todo."
    return "Nothing to change."


def render_tasks(state: AppState) -> str:
    engine = state.engine
    tasks = engine.tasks
    if not tasks:
        return "No todos yet. Add your first todo with /add <text>."

    pending = engine.pending
    lines = []
    for i, t in enumerate(tasks, start=1):
        mark = "x" if t.completed else " "
        busy = f" ({pending[t.id].value}...)" if t.id in pending else ""
        lines.append(f"{i:>3}. [{mark}] {t.body}{busy}")
    return "\n".join(lines)


async def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


async def cmd_list(state: AppState, args: list[str]) -> str:
    return render_tasks(state)


async def cmd_stats(state: AppState, args: list[str]) -> str:
    done, total = state.engine.progress()
    return f"{done} of {total} completed"


async def cmd_reload(
    state: AppState, args: list[str], emit: CommandEmitter | None = None
) -> str:
    if emit:
        emit("Loading your todos...")
    outcome = await state.engine.load()
    if outcome != MutationOutcome.COMMITTED:
        return "Reload failed."
    return render_tasks(state)


async def cmd_add(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /add <text>"
    outcome = await state.engine.request_create(" ".join(args))
    return _outcome_text(outcome, MutationKind.CREATE)


async def cmd_done(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /done <n|id|#id>"
    task_id = _resolve(state, args[0])
    if task_id is None:
        return "No such todo."
    outcome = await state.engine.request_toggle(task_id)
    if outcome == MutationOutcome.REJECTED:
        return "Already completed."
    return _outcome_text(outcome, MutationKind.TOGGLE)


async def cmd_edit(state: AppState, args: list[str]) -> str:
    """
    /edit <n|id|#id> <new text>

    Goes through an inline edit session, same as editing a card.
    """
    if len(args) < 2:
        return "Usage: /edit <n|id|#id> <new text>"
    task_id = _resolve(state, args[0])
    if task_id is None:
        return "No such todo."

    engine = state.engine
    if engine.begin_edit(task_id) is None:
        return "Completed todos can't be edited."
    engine.edits.set_draft(task_id, " ".join(args[1:]))
    outcome = await engine.commit_edit(task_id)
    return _outcome_text(outcome, MutationKind.EDIT)


async def cmd_rm(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /rm <n|id|#id>"
    task_id = _resolve(state, args[0])
    if task_id is None:
        return "No such todo."
    outcome = await state.engine.request_delete(task_id)
    return _outcome_text(outcome, MutationKind.DELETE)


async def cmd_move(state: AppState, args: list[str]) -> str:
    """/move <from> <to> -> drop a todo onto another todo's slot"""
    if len(args) != 2:
        return "Usage: /move <n|id|#id> <n|id|#id>"
    source_id = _resolve(state, args[0])
    target_id = _resolve(state, args[1])
    if source_id is None or target_id is None:
        return "No such todo."
    if not state.engine.request_reorder(source_id, target_id):
        return "Nothing to change."
    return render_tasks(state)


async def _step(state: AppState, args: list[str], delta: int) -> str:
    if not args:
        return "Usage: /up <n|id|#id> or /down <n|id|#id>"
    task_id = _resolve(state, args[0])
    if task_id is None:
        return "No such todo."
    if not state.engine.request_step(task_id, delta):
        return "Nothing to change."
    return render_tasks(state)


async def cmd_up(state: AppState, args: list[str]) -> str:
    return await _step(state, args, -1)


async def cmd_down(state: AppState, args: list[str]) -> str:
    return await _step(state, args, 1)


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("list", cmd_list, help_text="Show todos in display order.", aliases=["ls"])
registry.register("add", cmd_add, help_text="Create a todo: /add <text>.", aliases=["new"])
registry.register("done", cmd_done, help_text="Mark a todo completed: /done <n|id|#id>.")
registry.register("edit", cmd_edit, help_text="Change a todo's text: /edit <n|id|#id> <text>.")
registry.register("rm", cmd_rm, help_text="Delete a todo: /rm <n|id|#id>.", aliases=["del"])
registry.register("move", cmd_move, help_text="Reorder locally: /move <n|id|#id> <n|id|#id>.")
registry.register("up", cmd_up, help_text="Move a todo one slot up: /up <n|id|#id>.")
registry.register("down", cmd_down, help_text="Move a todo one slot down: /down <n|id|#id>.")
registry.register("stats", cmd_stats, help_text="Show completed/total counts.")
registry.register("reload", cmd_reload, help_text="Fetch the full list from the server again.")
