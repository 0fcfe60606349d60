# tests/test_memory_backend.py

from __future__ import annotations

from dataclasses import FrozenInstanceError

import pytest

from taskgate.backends.memory_backend import InMemoryTaskBackend
from taskgate.core.errors import IllegalTransitionError, InvalidEdgeError, TaskNotFoundError
from taskgate.core.models import TaskPatch, TaskState

S = TaskState


@pytest.mark.asyncio
async def test_create_assigns_ids_and_defaults_to_todo() -> None:
    backend = InMemoryTaskBackend()
    first = await backend.create_task(title="  write docs ")
    second = await backend.create_task(title="review", state=S.BACKLOG)

    assert (first.id, second.id) == (1, 2)
    assert first.title == "write docs"
    assert first.state == S.TODO
    assert second.state == S.BACKLOG
    assert first.created_at is not None


@pytest.mark.asyncio
async def test_create_rejects_blocked_and_empty_title() -> None:
    backend = InMemoryTaskBackend()
    with pytest.raises(IllegalTransitionError):
        await backend.create_task(title="x", state=S.BLOCKED)
    with pytest.raises(ValueError):
        await backend.create_task(title="   ")
    assert await backend.list_tasks() == []


@pytest.mark.asyncio
async def test_edges_are_kept_as_mutual_inverses() -> None:
    backend = InMemoryTaskBackend()
    a = await backend.create_task(title="a")
    b = await backend.create_task(title="b")

    await backend.add_edge(b.id, a.id)
    await backend.add_edge(b.id, a.id)  # idempotent

    rows = {t.id: t for t in await backend.list_tasks()}
    assert rows[b.id].blockers == frozenset({a.id})
    assert rows[a.id].dependents == frozenset({b.id})

    await backend.remove_edge(b.id, a.id)
    rows = {t.id: t for t in await backend.list_tasks()}
    assert rows[b.id].blockers == frozenset()
    assert rows[a.id].dependents == frozenset()


@pytest.mark.asyncio
async def test_invalid_edges_are_rejected() -> None:
    backend = InMemoryTaskBackend()
    a = await backend.create_task(title="a")

    with pytest.raises(InvalidEdgeError):
        await backend.add_edge(a.id, a.id)
    with pytest.raises(TaskNotFoundError):
        await backend.add_edge(a.id, 99)


@pytest.mark.asyncio
async def test_delete_cleans_up_both_sides() -> None:
    backend = InMemoryTaskBackend()
    a = await backend.create_task(title="a")
    b = await backend.create_task(title="b")
    c = await backend.create_task(title="c")
    await backend.add_edge(b.id, a.id)
    await backend.add_edge(c.id, b.id)

    await backend.delete_task(b.id)

    rows = {t.id: t for t in await backend.list_tasks()}
    assert set(rows) == {a.id, c.id}
    assert rows[a.id].dependents == frozenset()
    assert rows[c.id].blockers == frozenset()

    with pytest.raises(TaskNotFoundError):
        await backend.delete_task(b.id)


@pytest.mark.asyncio
async def test_patching_blocked_task_state_is_rejected() -> None:
    backend = InMemoryTaskBackend()
    a = await backend.create_task(title="a")
    await backend.write_state(a.id, S.BLOCKED)

    with pytest.raises(IllegalTransitionError):
        await backend.patch_task(a.id, TaskPatch(state=S.IN_PROGRESS))

    assert backend.get_task(a.id).state == S.BLOCKED

    # Non-state fields of a blocked task may still be edited.
    renamed = await backend.patch_task(a.id, TaskPatch(title="renamed"))
    assert renamed.title == "renamed"
    assert renamed.state == S.BLOCKED


@pytest.mark.asyncio
async def test_user_cannot_set_blocked() -> None:
    backend = InMemoryTaskBackend()
    a = await backend.create_task(title="a")
    with pytest.raises(IllegalTransitionError):
        await backend.patch_task(a.id, TaskPatch(state=S.BLOCKED))
    assert backend.get_task(a.id).state == S.TODO


@pytest.mark.asyncio
async def test_done_sets_and_clears_completed_at() -> None:
    backend = InMemoryTaskBackend()
    a = await backend.create_task(title="a")

    done = await backend.patch_task(a.id, TaskPatch(state=S.DONE))
    assert done.completed_at is not None

    await backend.write_state(a.id, S.BLOCKED)
    assert backend.get_task(a.id).completed_at is None


@pytest.mark.asyncio
async def test_listed_rows_are_read_only() -> None:
    backend = InMemoryTaskBackend()
    a = await backend.create_task(title="a")
    listed = (await backend.list_tasks())[0]

    with pytest.raises(FrozenInstanceError):
        listed.state = S.DONE  # type: ignore[misc]

    assert backend.get_task(a.id).state == S.TODO
