# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from todo_sync.core.engine import TodoEngine
from todo_sync.core.state import AppState
from todo_sync.tasks.task_models import Task

from .fakes import FakeTaskGateway, Recorder


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the CLI.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="todo-sync-test",
        log_level="DEBUG",
        api_base_url="http://todo.test/api",
        connect_timeout=1.0,
        read_timeout=1.0,
        console_enabled=False,
        data_dir=tmp_path / "data",
    )


@pytest.fixture()
def seed_tasks() -> list[Task]:
    return [
        Task(id="a", body="buy milk"),
        Task(id="b", body="walk the dog"),
        Task(id="c", body="call mom"),
        Task(id="d", body="pay rent", completed=True),
        Task(id="e", body="water plants"),
    ]


@pytest.fixture()
def gateway(seed_tasks: list[Task]) -> FakeTaskGateway:
    return FakeTaskGateway(seed_tasks)


@pytest.fixture()
def engine(gateway: FakeTaskGateway, seed_tasks: list[Task]) -> TodoEngine:
    """Engine with the seed list already loaded (no gateway call recorded)."""
    eng = TodoEngine(gateway)
    eng.store.replace_all(seed_tasks)
    return eng


@pytest.fixture()
def recorder(engine: TodoEngine) -> Recorder:
    rec = Recorder()
    engine.subscribe(rec.on_change)
    engine.on_error(rec.on_failure)
    return rec


@pytest.fixture()
def state(settings: SimpleNamespace, gateway: FakeTaskGateway, engine: TodoEngine) -> AppState:
    return AppState(settings=settings, gateway=gateway, engine=engine)
