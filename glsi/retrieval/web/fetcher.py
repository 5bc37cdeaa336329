"""Concurrent page fetching and text extraction.

Architectural role:
    Turns an ordered list of candidate URLs into exactly one `FetchResult` per
    URL, at the same index, for the consolidator.

Fetch strategy:
    1. Fan out one task per URL immediately.
    2. Each task makes a single GET bounded by `timeout_seconds` (no retries).
    3. Non-200 responses and transport errors are per-URL failures.
    4. Successful bodies go to the extraction collaborator in a worker thread.
    5. A single `asyncio.gather` barrier joins every task.

Failure model:
    Failures never cross task boundaries: a slow or failing URL does not change
    the outcome or timing of its siblings, and no exception escapes the batch.
    Setting the optional `cancel` event resolves every in-flight task as a
    "cancelled" failure while the batch still returns a full result list.

Resource bounds:
    An instance-wide semaphore caps in-flight requests across overlapping
    calls. The per-URL timeout starts once a slot is acquired.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence

import httpx

from glsi.config import DEFAULT_USER_AGENT
from glsi.core.exceptions import FetchError
from glsi.core.types import FetchResult
from glsi.retrieval.web.extraction import TrafilaturaExtractor


logger = logging.getLogger(__name__)


Extractor = Callable[[bytes], str]

PER_URL_TIMEOUT_SECONDS = 3.0
DEFAULT_MAX_CONCURRENCY = 10


class PageFetcher:
    """Fetch and extract readable text for many URLs concurrently.

    The HTTP transport and the extractor are injected so tests and callers
    control them explicitly.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        extractor: Extractor | None = None,
        timeout_seconds: float = PER_URL_TIMEOUT_SECONDS,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        if max_concurrency <= 0:
            raise ValueError("max_concurrency must be positive")
        self.client = client
        self.extractor = extractor or TrafilaturaExtractor()
        self.timeout_seconds = timeout_seconds
        self.user_agent = user_agent
        self._slots = asyncio.Semaphore(max_concurrency)

    async def fetch(
        self,
        urls: Sequence[str],
        cancel: asyncio.Event | None = None,
    ) -> list[FetchResult]:
        """Fetch every URL and return results in input order.

        Args:
            urls: Candidate URLs in discovery order.
            cancel: Optional signal that aborts all in-flight fetches.

        Returns:
            One `FetchResult` per URL; `len(result) == len(urls)`.
        """
        if not urls:
            return []

        tasks = [asyncio.create_task(self._fetch_one(url, cancel)) for url in urls]
        results = await asyncio.gather(*tasks)

        failed = sum(1 for result in results if result.error is not None)
        logger.debug("Fetched %d urls, %d failed", len(results), failed)
        return list(results)

    async def _fetch_one(self, url: str, cancel: asyncio.Event | None) -> FetchResult:
        async with self._slots:
            if cancel is not None and cancel.is_set():
                return self._failure(url, FetchError(f"fetch {url}: cancelled"))

            attempt = asyncio.create_task(self._retrieve(url))
            waiters: set[asyncio.Task] = {attempt}
            cancel_waiter = None
            if cancel is not None:
                cancel_waiter = asyncio.create_task(cancel.wait())
                waiters.add(cancel_waiter)

            try:
                done, _ = await asyncio.wait(
                    waiters,
                    timeout=self.timeout_seconds,
                    return_when=asyncio.FIRST_COMPLETED,
                )
            finally:
                for task in waiters:
                    if not task.done():
                        task.cancel()
                await asyncio.gather(*waiters, return_exceptions=True)

        if attempt not in done:
            if cancel_waiter is not None and cancel_waiter in done:
                return self._failure(url, FetchError(f"fetch {url}: cancelled"))
            return self._failure(
                url, FetchError(f"fetch {url}: timed out after {self.timeout_seconds:g}s")
            )

        exc = attempt.exception()
        if exc is None:
            return FetchResult(source_url=url, text=attempt.result())
        if isinstance(exc, FetchError):
            return self._failure(url, exc)
        return self._failure(url, FetchError(f"fetch {url}: {exc}"))

    async def _retrieve(self, url: str) -> str:
        """Single GET followed by extraction; raises `FetchError` on failure."""
        try:
            response = await self.client.get(
                url,
                headers={"User-Agent": self.user_agent},
                timeout=self.timeout_seconds,
                follow_redirects=True,
            )
        except httpx.HTTPError as exc:
            raise FetchError(f"http get {url}: {exc}") from exc

        if response.status_code != 200:
            raise FetchError(f"unexpected status {response.status_code} for {url}")

        return await asyncio.to_thread(self.extractor, response.content)

    @staticmethod
    def _failure(url: str, error: FetchError) -> FetchResult:
        logger.debug("Fetch failed url=%s error=%s", url, error)
        return FetchResult(source_url=url, error=error)
