"""Cache-aware search pipeline orchestration.

Architectural role:
    Provides the single execution pipeline used by the CLI, HTTP and MCP
    surfaces to turn one query into a consolidated, cached document.

Control-flow model (per `run` call):
    1. Canonicalize the query into a cache key.
    2. Unless `force` is set, return a fresh cache entry when one exists.
    3. Discover up to `count` candidate URLs (single call, no retry).
    4. Wait the configured rate-limit delay once, if non-zero.
    5. Fetch every candidate concurrently.
    6. Consolidate survivors in discovery order.
    7. Upsert the document and return it.

Failure handling:
    - Zero candidates raises `NoResultsError`; no fetch is attempted.
    - Zero survivors raises `ConsolidationEmptyError`; the cache is not written.
    - Storage failures propagate as `StorageError`; the cache is never
      silently bypassed.

Concurrency:
    Calls are independent coroutines sharing only the cache store and the
    process-wide settings. An optional `asyncio.Event` cancels the in-flight
    discovery call and every in-flight fetch of one run.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import Protocol

from glsi.config import Settings
from glsi.core.consolidator import consolidate, count_sections
from glsi.core.exceptions import (
    ConsolidationEmptyError,
    DiscoveryError,
    GlsiError,
    NoResultsError,
)
from glsi.core.normalizer import canonicalize
from glsi.core.types import FetchResult, SearchHit, SearchOutcome


logger = logging.getLogger(__name__)


class DiscoveryProtocol(Protocol):
    """Turns a query into ordered result candidates."""

    async def discover(self, query: str, count: int, engine: str) -> list[SearchHit]:
        ...


class FetcherProtocol(Protocol):
    """Fetches every URL, returning one result per URL in input order."""

    async def fetch(
        self, urls: Sequence[str], cancel: asyncio.Event | None = None
    ) -> list[FetchResult]:
        ...


class CacheProtocol(Protocol):
    async def get(self, key: str) -> tuple[str, bool]:
        ...

    async def set(self, key: str, content: str) -> None:
        ...

    async def evict(self, key: str) -> None:
        ...


class SearchEngine:
    """Orchestrates normalize, cache, discover, fetch, consolidate and store.

    Args:
        cache: Cache store shared by all calls.
        discovery: Discovery collaborator.
        fetcher: Page fetcher.
        settings: Process-wide configuration (engine selector, rate limit,
            result cap).
    """

    def __init__(
        self,
        cache: CacheProtocol,
        discovery: DiscoveryProtocol,
        fetcher: FetcherProtocol,
        settings: Settings | None = None,
    ) -> None:
        self.cache = cache
        self.discovery = discovery
        self.fetcher = fetcher
        self.settings = settings or Settings()

    async def run(
        self,
        query: str,
        count: int,
        force: bool = False,
        cancel: asyncio.Event | None = None,
    ) -> SearchOutcome:
        """Execute the full pipeline for one query.

        Args:
            query: Raw query text.
            count: Requested number of candidate pages, must be positive.
            force: Bypass the cache read and always re-run discovery and fetch.
            cancel: Optional signal cancelling discovery and in-flight fetches.

        Returns:
            `SearchOutcome`; `from_cache` is never true when `force` is set.

        Raises:
            ValueError: For blank queries or non-positive counts.
            DiscoveryError: Discovery failed or found no candidates.
            ConsolidationEmptyError: Every source failed or was blank.
            StorageError: The cache could not be read or written.
        """
        if not query or not query.strip():
            raise ValueError("query must not be empty")
        if count <= 0:
            raise ValueError("count must be positive")

        key = canonicalize(query)

        if not force:
            content, hit = await self.cache.get(key)
            if hit:
                logger.debug("Cache hit for key=%s", key)
                return SearchOutcome(
                    content=content,
                    result_count=count_sections(content),
                    from_cache=True,
                )
            logger.debug("Cache miss for key=%s", key)

        bounded = min(count, self.settings.max_results)
        hits = await self._discover(query, bounded, cancel)
        if not hits:
            logger.warning("No search results for query=%r", query)
            raise NoResultsError(f"no search results for {query!r}")
        logger.info("Discovered %d candidate urls for query=%r", len(hits), query)

        if self.settings.rate_limit_seconds > 0:
            await asyncio.sleep(self.settings.rate_limit_seconds)

        pages = await self.fetcher.fetch([hit.url for hit in hits], cancel=cancel)

        content, result_count = consolidate(pages)
        if result_count == 0:
            logger.warning("All %d pages failed for query=%r", len(pages), query)
            raise ConsolidationEmptyError(f"all pages failed to scrape for {query!r}")
        logger.info("Consolidated %d/%d pages for query=%r", result_count, len(pages), query)

        await self.cache.set(key, content)

        return SearchOutcome(content=content, result_count=result_count, from_cache=False)

    async def evict(self, query: str) -> None:
        """Remove the cached entry for `query`; an empty query clears all."""
        key = canonicalize(query) if query else ""
        await self.cache.evict(key)
        logger.info("Evicted cache %s", "entry " + key if key else "(all entries)")

    async def _discover(
        self,
        query: str,
        count: int,
        cancel: asyncio.Event | None,
    ) -> list[SearchHit]:
        call = self.discovery.discover(query, count, self.settings.search_engine)
        try:
            if cancel is None:
                return await call
            return await _race_cancel(call, cancel)
        except GlsiError:
            raise
        except Exception as exc:
            logger.warning("Discovery failed for query=%r: %s", query, exc)
            raise DiscoveryError(f"search: {exc}") from exc


async def _race_cancel(call, cancel: asyncio.Event):
    """Await `call` unless `cancel` fires first, then raise `DiscoveryError`."""
    task = asyncio.ensure_future(call)
    waiter = asyncio.ensure_future(cancel.wait())
    try:
        done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for pending in (task, waiter):
            if not pending.done():
                pending.cancel()
        await asyncio.gather(task, waiter, return_exceptions=True)

    if task not in done:
        raise DiscoveryError("search: cancelled")
    return task.result()
