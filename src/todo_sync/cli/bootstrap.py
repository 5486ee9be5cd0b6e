# src/todo_sync/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the HTTP gateway into the engine with an explicit base URL.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.engine import TodoEngine
from ..core.ports import TaskGateway
from ..core.state import AppState
from ..tasks.task_gateway import HttpTaskGateway

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None, gateway: TaskGateway | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    if gateway is None:
        gateway = HttpTaskGateway(
            settings.api_base_url,
            connect_timeout=settings.connect_timeout,
            read_timeout=settings.read_timeout,
        )
        logger.info("Remote todo service: %s", settings.api_base_url)

    return AppState(settings=settings, gateway=gateway, engine=TodoEngine(gateway))


async def shutdown_state(state: AppState) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    aclose = getattr(state.gateway, "aclose", None)
    if aclose is None:
        return
    try:
        await aclose()
    except Exception:
        logger.debug("Gateway close failed.", exc_info=True)
