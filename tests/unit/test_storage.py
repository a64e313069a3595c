from __future__ import annotations

import itertools

import pytest

from taskpack.models import RunMeta, StoredResult
from taskpack.storage import InMemoryResultStore, ResultStore


def make_clock():
    ticks = itertools.count(1)
    return lambda: f"2026-01-01T00:00:{next(ticks):02d}Z"


def make_result(key: str, *, ran_at: str = "2026-01-01T00:00:00Z", **collectibles) -> StoredResult:
    return StoredResult(
        key=key,
        pack_id="acme-search",
        tool_name="acme_search",
        inputs={"query": key},
        collectibles=collectibles or {"title": "t"},
        meta=RunMeta(url="https://acme.example", duration_ms=5, steps_executed=1, steps_total=1),
        stored_at=ran_at,
        ran_at=ran_at,
    )


def test_store_satisfies_protocol() -> None:
    store = InMemoryResultStore()
    assert isinstance(store, ResultStore)
    assert set(store.capabilities()) == {"get", "store", "list", "delete"}


@pytest.mark.asyncio
async def test_store_and_get() -> None:
    store = InMemoryResultStore(clock=make_clock())
    saved = await store.store(make_result("k1"))
    assert saved.version == 1
    assert saved.stored_at == "2026-01-01T00:00:01Z"
    assert await store.get("k1") == saved
    assert await store.get("missing") is None


@pytest.mark.asyncio
async def test_overwrite_bumps_version_and_keeps_ran_at() -> None:
    store = InMemoryResultStore(clock=make_clock())
    await store.store(make_result("k1", title="old"))
    saved = await store.store(make_result("k1", ran_at="2026-01-02T00:00:00Z", title="new"))

    assert saved.version == 2
    assert saved.collectibles == {"title": "new"}
    assert saved.ran_at == "2026-01-02T00:00:00Z"
    assert saved.stored_at == "2026-01-01T00:00:02Z"


@pytest.mark.asyncio
async def test_list_sorts_and_paginates() -> None:
    store = InMemoryResultStore(clock=make_clock())
    for key in ("a", "b", "c"):
        await store.store(make_result(key, x=1, y=2))

    summaries, total = await store.list(limit=2)
    assert total == 3
    assert [s.key for s in summaries] == ["c", "b"]
    assert summaries[0].field_count == 2

    summaries, total = await store.list(limit=2, offset=2)
    assert [s.key for s in summaries] == ["a"]

    summaries, _ = await store.list(sort_dir="asc")
    assert [s.key for s in summaries] == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_delete() -> None:
    store = InMemoryResultStore()
    await store.store(make_result("k1"))
    assert await store.delete("k1") is True
    assert await store.delete("k1") is False
    assert await store.get("k1") is None
