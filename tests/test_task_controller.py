# tests/test_task_controller.py

from __future__ import annotations

import asyncio
import random

import pytest

from todo_sync.core.engine import TodoEngine
from todo_sync.tasks.task_gateway import GatewayError
from todo_sync.tasks.task_models import MutationKind, MutationOutcome

from .fakes import FakeTaskGateway, Recorder, settle


def _ids(engine: TodoEngine) -> list[str]:
    return [t.id for t in engine.tasks]


def _body(engine: TodoEngine, task_id: str) -> str:
    return engine.store.get(task_id).body


# ---- load ----


@pytest.mark.asyncio
async def test_load_replaces_store_with_server_list(gateway: FakeTaskGateway) -> None:
    engine = TodoEngine(gateway)
    assert engine.loading

    outcome = await engine.load()

    assert outcome == MutationOutcome.COMMITTED
    assert not engine.loading
    assert _ids(engine) == ["a", "b", "c", "d", "e"]


@pytest.mark.asyncio
async def test_load_failure_reports_once_and_keeps_empty(gateway: FakeTaskGateway) -> None:
    gateway.fail("fetch_all")
    engine = TodoEngine(gateway)
    rec = Recorder()
    engine.on_error(rec.on_failure)

    outcome = await engine.load()

    assert outcome == MutationOutcome.ROLLED_BACK
    assert engine.tasks == ()
    assert not engine.loading
    assert [(f.kind, f.task_id) for f in rec.failures] == [(MutationKind.FETCH, None)]
    assert isinstance(rec.failures[0].error, GatewayError)


# ---- create ----


@pytest.mark.asyncio
async def test_create_rejects_blank_without_gateway_call(
    engine: TodoEngine, gateway: FakeTaskGateway, recorder: Recorder
) -> None:
    outcome = await engine.request_create("   ")

    assert outcome == MutationOutcome.REJECTED
    assert gateway.calls == []
    assert recorder.changes == []
    assert len(engine.tasks) == 5


@pytest.mark.asyncio
async def test_create_inserts_only_after_server_reply(
    engine: TodoEngine, gateway: FakeTaskGateway
) -> None:
    release = gateway.hold("create")
    job = asyncio.create_task(engine.request_create("  new thing  "))
    await settle()

    assert engine.creating
    assert len(engine.tasks) == 5

    release.set()
    assert await job == MutationOutcome.COMMITTED
    assert not engine.creating
    first = engine.tasks[0]
    assert first.id == "t100"
    assert first.body == "new thing"
    assert first.completed is False


@pytest.mark.asyncio
async def test_create_failure_leaves_store_untouched(
    engine: TodoEngine, gateway: FakeTaskGateway, recorder: Recorder
) -> None:
    gateway.fail("create")

    outcome = await engine.request_create("won't stick")

    assert outcome == MutationOutcome.ROLLED_BACK
    assert _ids(engine) == ["a", "b", "c", "d", "e"]
    assert recorder.changes == []
    assert [(f.kind, f.task_id) for f in recorder.failures] == [(MutationKind.CREATE, None)]


# ---- toggle ----


@pytest.mark.asyncio
async def test_toggle_is_optimistic_then_committed(
    engine: TodoEngine, gateway: FakeTaskGateway
) -> None:
    release = gateway.hold("mark_completed", "a")
    job = asyncio.create_task(engine.request_toggle("a"))
    await settle()

    assert engine.store.get("a").completed is True
    assert engine.pending == {"a": MutationKind.TOGGLE}

    release.set()
    assert await job == MutationOutcome.COMMITTED
    assert engine.store.get("a").completed is True
    assert engine.pending == {}


@pytest.mark.asyncio
async def test_toggle_failure_reverts_to_open(
    engine: TodoEngine, gateway: FakeTaskGateway, recorder: Recorder
) -> None:
    gateway.fail("mark_completed", "b")

    outcome = await engine.request_toggle("b")

    assert outcome == MutationOutcome.ROLLED_BACK
    assert engine.store.get("b").completed is False
    assert [(f.kind, f.task_id) for f in recorder.failures] == [(MutationKind.TOGGLE, "b")]


@pytest.mark.asyncio
async def test_toggle_is_one_directional(engine: TodoEngine, gateway: FakeTaskGateway) -> None:
    assert await engine.request_toggle("a") == MutationOutcome.COMMITTED
    calls_after_first = len(gateway.calls)

    assert await engine.request_toggle("a") == MutationOutcome.REJECTED
    assert await engine.request_toggle("d") == MutationOutcome.REJECTED
    assert len(gateway.calls) == calls_after_first
    assert engine.store.get("a").completed is True
    assert engine.store.get("d").completed is True


@pytest.mark.asyncio
async def test_toggle_unknown_id_is_not_found(engine: TodoEngine, gateway: FakeTaskGateway) -> None:
    assert await engine.request_toggle("zzz") == MutationOutcome.NOT_FOUND
    assert gateway.calls == []


# ---- edit ----


@pytest.mark.asyncio
async def test_edit_failure_restores_exact_body_and_reports_once(
    engine: TodoEngine, gateway: FakeTaskGateway, recorder: Recorder
) -> None:
    gateway.fail("edit_body", "a")

    outcome = await engine.request_edit("a", "buy bread")

    assert outcome == MutationOutcome.ROLLED_BACK
    assert _body(engine, "a") == "buy milk"
    assert len(recorder.failures) == 1
    assert recorder.failures[0].kind == MutationKind.EDIT
    assert recorder.failures[0].task_id == "a"


@pytest.mark.asyncio
async def test_edit_trims_and_commits(engine: TodoEngine, gateway: FakeTaskGateway) -> None:
    outcome = await engine.request_edit("a", "  buy bread  ")

    assert outcome == MutationOutcome.COMMITTED
    assert _body(engine, "a") == "buy bread"
    assert gateway.remote[0].body == "buy bread"


@pytest.mark.asyncio
@pytest.mark.parametrize("new_body", ["", "   ", "buy milk", "  buy milk "])
async def test_edit_rejects_blank_or_unchanged(
    engine: TodoEngine, gateway: FakeTaskGateway, new_body: str
) -> None:
    assert await engine.request_edit("a", new_body) == MutationOutcome.REJECTED
    assert gateway.calls == []
    assert _body(engine, "a") == "buy milk"


# ---- delete ----


@pytest.mark.asyncio
async def test_delete_is_optimistic(engine: TodoEngine, gateway: FakeTaskGateway) -> None:
    release = gateway.hold("delete", "c")
    job = asyncio.create_task(engine.request_delete("c"))
    await settle()

    assert "c" not in _ids(engine)
    assert engine.pending == {"c": MutationKind.DELETE}

    release.set()
    assert await job == MutationOutcome.COMMITTED
    assert _ids(engine) == ["a", "b", "d", "e"]


@pytest.mark.asyncio
async def test_delete_failure_reinserts_at_original_index(
    engine: TodoEngine, gateway: FakeTaskGateway, recorder: Recorder
) -> None:
    gateway.fail("delete", "c")

    outcome = await engine.request_delete("c")

    assert outcome == MutationOutcome.ROLLED_BACK
    assert _ids(engine) == ["a", "b", "c", "d", "e"]
    assert _body(engine, "c") == "call mom"
    assert [(f.kind, f.task_id) for f in recorder.failures] == [(MutationKind.DELETE, "c")]


@pytest.mark.asyncio
async def test_delete_unknown_id_is_not_found(engine: TodoEngine, gateway: FakeTaskGateway) -> None:
    assert await engine.request_delete("nope") == MutationOutcome.NOT_FOUND
    assert gateway.calls == []


# ---- concurrency ----


@pytest.mark.asyncio
async def test_concurrent_mutations_resolve_independently(
    engine: TodoEngine, gateway: FakeTaskGateway, recorder: Recorder
) -> None:
    gateway.fail("delete", "a")
    release_delete = gateway.hold("delete", "a")
    release_edit = gateway.hold("edit_body", "b")

    delete_job = asyncio.create_task(engine.request_delete("a"))
    edit_job = asyncio.create_task(engine.request_edit("b", "new"))
    await settle()

    assert engine.pending == {"a": MutationKind.DELETE, "b": MutationKind.EDIT}
    assert _ids(engine) == ["b", "c", "d", "e"]
    assert _body(engine, "b") == "new"

    release_edit.set()
    assert await edit_job == MutationOutcome.COMMITTED
    assert engine.pending == {"a": MutationKind.DELETE}

    release_delete.set()
    assert await delete_job == MutationOutcome.ROLLED_BACK

    assert _ids(engine) == ["a", "b", "c", "d", "e"]
    assert _body(engine, "b") == "new"
    assert [(f.kind, f.task_id) for f in recorder.failures] == [(MutationKind.DELETE, "a")]
    assert engine.pending == {}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("victim", "expected"),
    [
        ("b", ["t100", "a", "b", "c", "d", "e"]),
        ("a", ["t100", "a", "b", "c", "d", "e"]),
        ("e", ["t100", "a", "b", "c", "d", "e"]),
    ],
)
async def test_failed_delete_keeps_neighbours_after_create_commits(
    engine: TodoEngine, gateway: FakeTaskGateway, victim: str, expected: list[str]
) -> None:
    gateway.fail("delete", victim)
    release = gateway.hold("delete", victim)

    delete_job = asyncio.create_task(engine.request_delete(victim))
    await settle()
    assert await engine.request_create("x") == MutationOutcome.COMMITTED

    release.set()
    assert await delete_job == MutationOutcome.ROLLED_BACK
    assert _ids(engine) == expected


@pytest.mark.asyncio
async def test_failed_delete_keeps_neighbours_after_local_reorder(
    engine: TodoEngine, gateway: FakeTaskGateway
) -> None:
    gateway.fail("delete", "b")
    release = gateway.hold("delete", "b")

    delete_job = asyncio.create_task(engine.request_delete("b"))
    await settle()
    assert engine.request_reorder("e", "a") is True
    assert _ids(engine) == ["e", "a", "c", "d"]

    release.set()
    assert await delete_job == MutationOutcome.ROLLED_BACK
    assert _ids(engine) == ["e", "a", "b", "c", "d"]


@pytest.mark.asyncio
async def test_failed_delete_falls_back_to_successor(
    engine: TodoEngine, gateway: FakeTaskGateway
) -> None:
    gateway.fail("delete", "c")
    release_c = gateway.hold("delete", "c")

    delete_c = asyncio.create_task(engine.request_delete("c"))
    await settle()
    # predecessor "b" goes away for good while "c" is pending
    assert await engine.request_delete("b") == MutationOutcome.COMMITTED

    release_c.set()
    assert await delete_c == MutationOutcome.ROLLED_BACK
    assert _ids(engine) == ["a", "c", "d", "e"]


@pytest.mark.asyncio
async def test_failing_error_hook_does_not_break_rollback(
    engine: TodoEngine, gateway: FakeTaskGateway
) -> None:
    def boom(failure) -> None:
        raise RuntimeError("hook bug")

    engine.on_error(boom)
    gateway.fail("edit_body", "a")

    assert await engine.request_edit("a", "other") == MutationOutcome.ROLLED_BACK
    assert _body(engine, "a") == "buy milk"


@pytest.mark.asyncio
async def test_unexpected_gateway_exception_rolls_back(engine: TodoEngine) -> None:
    class BrokenGateway(FakeTaskGateway):
        async def mark_completed(self, task_id: str) -> None:
            raise KeyError(task_id)

    broken = TodoEngine(BrokenGateway())
    broken.store.replace_all(engine.tasks)
    rec = Recorder()
    broken.on_error(rec.on_failure)

    assert await broken.request_toggle("a") == MutationOutcome.ROLLED_BACK
    assert broken.store.get("a").completed is False
    assert len(rec.failures) == 1


# ---- property: successful sequences match a reference model ----


@pytest.mark.asyncio
@pytest.mark.parametrize("seed", [1, 7, 42])
async def test_successful_operations_match_reference_model(seed: int) -> None:
    rng = random.Random(seed)
    gateway = FakeTaskGateway()
    engine = TodoEngine(gateway)
    await engine.load()

    model: dict[str, tuple[str, bool]] = {}

    for step in range(60):
        op = rng.choice(["create", "toggle", "edit", "delete"]) if model else "create"
        if op == "create":
            body = f"task {step}"
            assert await engine.request_create(body) == MutationOutcome.COMMITTED
            model[engine.tasks[0].id] = (body, False)
            continue

        task_id = rng.choice(sorted(model))
        body, done = model[task_id]
        if op == "toggle":
            outcome = await engine.request_toggle(task_id)
            assert outcome == (MutationOutcome.REJECTED if done else MutationOutcome.COMMITTED)
            model[task_id] = (body, True)
        elif op == "edit":
            new_body = f"{body}!"
            assert await engine.request_edit(task_id, new_body) == MutationOutcome.COMMITTED
            model[task_id] = (new_body, done)
        else:
            assert await engine.request_delete(task_id) == MutationOutcome.COMMITTED
            del model[task_id]

    assert {t.id for t in engine.tasks} == set(model)
    for t in engine.tasks:
        assert (t.body, t.completed) == model[t.id]
    assert {t.id for t in gateway.remote} == set(model)
