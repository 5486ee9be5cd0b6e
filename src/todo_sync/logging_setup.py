# src/todo_sync/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

# Loggers that only reach the console at WARNING+: one line per HTTP request
# would interleave with the todo list printed by the console.
_QUIET_PREFIXES = ("todo_sync.tasks.task_gateway",)


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keep the todo console readable.

    Engine logs pass (rollbacks show up as WARNING), gateway request lines
    only when something went wrong, httpx/httpcore and captured warnings
    only at ERROR+.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name

        if name.startswith("todo_sync."):
            if name.startswith(_QUIET_PREFIXES):
                return record.levelno >= logging.WARNING
            return True

        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path = ".local/todo_sync",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Send todo_sync logs to stderr (filtered) and to <log_dir>/todo_sync.log (everything).

    Every pending/committed/rolled_back transition is logged at DEBUG, so the
    file is where to look when a change was reverted. Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "todo_sync.log"

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    # main() may run more than once in one process (tests); start clean.
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    logging.captureWarnings(True)

    # httpx logs every request at INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    return log_file
