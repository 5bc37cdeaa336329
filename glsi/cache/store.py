"""Durable TTL key-value store for consolidated documents.

Architectural role:
    Owns every persisted `CacheEntry`. The orchestrator reads through `get`,
    writes through `set` and clears through `evict`; nothing else touches the
    table.

Freshness:
    Entries are never actively expired. `get` compares the row's `updated_at`
    against the injected clock at read time and reports a miss once the age
    exceeds the TTL, even though the row still exists.

Concurrency:
    `set` is a single `INSERT ... ON CONFLICT DO UPDATE` statement, so two
    overlapping writers for the same key cannot lose an update. SQLite lock
    contention is absorbed by the driver busy timeout.

Failure handling:
    SQLAlchemy errors surface as `StorageError` on the call in progress. There
    is no fallback to an empty cache.
"""

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from sqlalchemy import delete, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from glsi.cache.models import Base, CacheEntryModel
from glsi.core.exceptions import CacheCorruptionError, ConfigurationError, StorageError


logger = logging.getLogger(__name__)


CACHE_TTL = timedelta(hours=24)
SQLITE_BUSY_TIMEOUT_SECONDS = 30


def utc_now() -> datetime:
    """Return the current UTC time as a naive datetime (SQLite storage form)."""
    return datetime.now(tz=timezone.utc).replace(tzinfo=None)


class CacheStore:
    """SQLite-backed cache with read-time TTL evaluation.

    Use as an async context manager so the engine is disposed on every exit
    path::

        async with CacheStore("/tmp/cache.db") as store:
            await store.set(key, content)
    """

    def __init__(
        self,
        db_path: str,
        ttl: timedelta = CACHE_TTL,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.db_path = db_path
        self.ttl = ttl
        self._clock = clock
        self._engine: AsyncEngine | None = create_async_engine(
            f"sqlite+aiosqlite:///{db_path}",
            connect_args={"timeout": SQLITE_BUSY_TIMEOUT_SECONDS},
        )

    async def __aenter__(self) -> "CacheStore":
        try:
            await self.initialize()
        except BaseException:
            await self.close()
            raise
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def initialize(self) -> None:
        """Create the cache table if it does not exist.

        Raises:
            ConfigurationError: If the backing file cannot be opened.
        """
        try:
            async with self._require_engine().begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as exc:
            raise ConfigurationError(
                f"cannot open cache database {self.db_path}: {exc}"
            ) from exc

    async def get(self, key: str) -> tuple[str, bool]:
        """Return `(content, is_hit)` for `key`.

        Absent and stale entries both report `("", False)`.
        """
        stmt = select(CacheEntryModel.content, CacheEntryModel.updated_at).where(
            CacheEntryModel.query_hash == key
        )
        try:
            async with self._require_engine().connect() as conn:
                row = (await conn.execute(stmt)).first()
        except SQLAlchemyError as exc:
            raise StorageError(f"cache get {key!r}: {exc}") from exc
        except (ValueError, TypeError) as exc:
            # Raised by the DateTime result processor on unparseable timestamps.
            logger.error("Corrupted cache row for key=%s: %s", key, exc)
            raise CacheCorruptionError(f"cache row {key!r} is unreadable: {exc}") from exc

        if row is None:
            return "", False

        content, updated_at = row
        if not content or updated_at is None:
            logger.error("Corrupted cache row for key=%s", key)
            raise CacheCorruptionError(f"cache row {key!r} is missing content or timestamp")

        if self._clock() - updated_at > self.ttl:
            return "", False

        return content, True

    async def set(self, key: str, content: str) -> None:
        """Atomically insert or overwrite `key`, refreshing its timestamp."""
        if not content:
            raise ValueError("cache content must not be empty")

        stmt = sqlite_insert(CacheEntryModel).values(
            query_hash=key,
            content=content,
            updated_at=self._clock(),
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[CacheEntryModel.query_hash],
            set_={
                "content": stmt.excluded.content,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        try:
            async with self._require_engine().begin() as conn:
                await conn.execute(stmt)
        except SQLAlchemyError as exc:
            raise StorageError(f"cache set {key!r}: {exc}") from exc

    async def evict(self, key: str) -> None:
        """Delete the entry for `key`; an empty key deletes every entry.

        Deleting a missing entry is not an error.
        """
        stmt = delete(CacheEntryModel)
        if key:
            stmt = stmt.where(CacheEntryModel.query_hash == key)
        try:
            async with self._require_engine().begin() as conn:
                await conn.execute(stmt)
        except SQLAlchemyError as exc:
            raise StorageError(f"cache evict: {exc}") from exc

    async def close(self) -> None:
        """Dispose the engine. Safe to call more than once."""
        if self._engine is not None:
            engine, self._engine = self._engine, None
            await engine.dispose()

    def _require_engine(self) -> AsyncEngine:
        if self._engine is None:
            raise StorageError("cache store is closed")
        return self._engine
