import asyncio
import logging
from datetime import datetime, timedelta

import pytest
from sqlalchemy import text

from glsi.cache.store import CACHE_TTL, CacheStore
from glsi.core.exceptions import CacheCorruptionError, ConfigurationError, StorageError


class FakeClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 1, 1, 12, 0, 0))


@pytest.mark.asyncio
async def test_set_then_get_is_hit(cache_store):
    await cache_store.set("k1", "hello world")

    assert await cache_store.get("k1") == ("hello world", True)


@pytest.mark.asyncio
async def test_get_missing_key_is_miss(cache_store):
    assert await cache_store.get("nonexistent") == ("", False)


@pytest.mark.asyncio
async def test_set_overwrites_existing_entry(cache_store):
    await cache_store.set("k1", "v1")
    await cache_store.set("k1", "v2")

    assert await cache_store.get("k1") == ("v2", True)


@pytest.mark.asyncio
async def test_set_rejects_empty_content(cache_store):
    with pytest.raises(ValueError):
        await cache_store.set("k1", "")


@pytest.mark.asyncio
async def test_stale_entry_is_miss_but_row_remains(db_path, clock):
    async with CacheStore(db_path, clock=clock) as store:
        await store.set("k1", "old")
        clock.advance(CACHE_TTL + timedelta(seconds=1))

        assert await store.get("k1") == ("", False)

    async with CacheStore(db_path, ttl=timedelta(days=7), clock=clock) as store:
        assert await store.get("k1") == ("old", True)


@pytest.mark.asyncio
async def test_entry_exactly_at_ttl_is_still_fresh(db_path, clock):
    async with CacheStore(db_path, clock=clock) as store:
        await store.set("k1", "content")
        clock.advance(CACHE_TTL)

        assert await store.get("k1") == ("content", True)


@pytest.mark.asyncio
async def test_overwrite_refreshes_timestamp(db_path, clock):
    async with CacheStore(db_path, clock=clock) as store:
        await store.set("k1", "v1")
        clock.advance(timedelta(hours=23))
        await store.set("k1", "v2")
        clock.advance(timedelta(hours=23))

        assert await store.get("k1") == ("v2", True)


@pytest.mark.asyncio
async def test_evict_single_key_keeps_others(cache_store):
    await cache_store.set("k1", "v1")
    await cache_store.set("k2", "v2")

    await cache_store.evict("k1")

    assert await cache_store.get("k1") == ("", False)
    assert await cache_store.get("k2") == ("v2", True)


@pytest.mark.asyncio
async def test_evict_empty_key_clears_everything(cache_store):
    for i in range(3):
        await cache_store.set(f"k{i}", f"v{i}")

    await cache_store.evict("")

    for i in range(3):
        assert await cache_store.get(f"k{i}") == ("", False)


@pytest.mark.asyncio
async def test_evict_is_idempotent(cache_store):
    await cache_store.evict("missing")
    await cache_store.evict("")
    await cache_store.evict("")


@pytest.mark.asyncio
async def test_entries_survive_reopen(db_path):
    async with CacheStore(db_path) as store:
        await store.set("k1", "durable")

    async with CacheStore(db_path) as store:
        assert await store.get("k1") == ("durable", True)


@pytest.mark.asyncio
async def test_concurrent_writers_do_not_corrupt_rows(cache_store):
    await asyncio.gather(
        *(cache_store.set("shared", f"value-{i}") for i in range(10)),
        *(cache_store.set(f"key-{i}", f"value-{i}") for i in range(10)),
    )

    content, hit = await cache_store.get("shared")
    assert hit
    assert content in {f"value-{i}" for i in range(10)}
    for i in range(10):
        assert await cache_store.get(f"key-{i}") == (f"value-{i}", True)


@pytest.mark.asyncio
async def test_corrupted_row_fails_the_read(cache_store):
    async with cache_store._engine.begin() as conn:
        await conn.execute(
            text("INSERT INTO cache (query_hash, content, updated_at) VALUES (:k, '', :t)"),
            {"k": "bad", "t": "2026-01-01 00:00:00.000000"},
        )

    with pytest.raises(CacheCorruptionError):
        await cache_store.get("bad")


@pytest.mark.asyncio
async def test_unparseable_timestamp_fails_the_read(cache_store, caplog):
    async with cache_store._engine.begin() as conn:
        await conn.execute(
            text("INSERT INTO cache (query_hash, content, updated_at) VALUES (:k, :c, :t)"),
            {"k": "bad", "c": "x", "t": "garbage"},
        )

    with caplog.at_level(logging.ERROR, logger="glsi.cache.store"):
        with pytest.raises(CacheCorruptionError) as excinfo:
            await cache_store.get("bad")

    assert excinfo.value.code == "cache_corrupted"
    assert isinstance(excinfo.value, StorageError)
    assert "Corrupted cache row" in caplog.text


@pytest.mark.asyncio
async def test_closed_store_raises_storage_error(db_path):
    store = CacheStore(db_path)
    await store.initialize()
    await store.close()
    await store.close()

    with pytest.raises(StorageError):
        await store.get("k1")


@pytest.mark.asyncio
async def test_unopenable_path_is_configuration_error(tmp_path):
    missing = tmp_path / "missing-dir" / "cache.db"

    with pytest.raises(ConfigurationError):
        async with CacheStore(str(missing)):
            pass
