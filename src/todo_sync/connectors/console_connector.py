# src/todo_sync/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..cli.commands import render_tasks
from ..core.state import AppState
from ..tasks.task_models import MutationFailure, friendly_error_message

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


def _print_failure(failure: MutationFailure) -> None:
    _print_ts(f"[ERROR] {friendly_error_message(failure)}")


async def run_console_loop(state: AppState) -> None:
    """
    Interactive console on top of the engine.

    Plain text (no leading slash) is a shortcut for /add.
    """
    logger.info("Console connector started.")
    remove_hook = state.engine.on_error(_print_failure)

    try:
        _print_ts("Loading your todos...")
        await state.engine.load()
        _print_ts(render_tasks(state))
        _print_ts("[CONSOLE] Type a todo to add it. Use /help for commands. Use /exit to quit.\n")

        while True:
            try:
                user_input = (await asyncio.to_thread(input, ">>> ")).strip()
            except EOFError:
                logger.info("Console EOF received, exiting.")
                break
            except KeyboardInterrupt:
                logger.info("Console KeyboardInterrupt, exiting.")
                print()
                break

            if not user_input:
                continue

            if user_input.lower() in ("/exit", "/quit"):
                logger.info("Console exit command received.")
                break

            line = user_input if user_input.startswith("/") else f"/add {user_input}"

            try:
                reply = await command_registry.handle(state, line, emit=_print_ts)
            except Exception:
                logger.exception("Command handler crashed.")
                reply = "Internal error while handling a command."

            if reply:
                _print_ts(reply)
    finally:
        remove_hook()

    logger.info("Console connector finished.")
