"""Composition root shared by every surface.

Resolves the cache location, opens the cache store, creates one shared HTTP
client and wires discovery, fetcher and engine. Everything acquired here is
released when the `build_engine` context exits, including on failure paths.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import httpx

from glsi.cache.store import CacheStore
from glsi.config import Settings
from glsi.core.engine import SearchEngine
from glsi.core.exceptions import ConfigurationError
from glsi.retrieval.web.discovery import SearchEngineDiscovery
from glsi.retrieval.web.extraction import TrafilaturaExtractor
from glsi.retrieval.web.fetcher import PageFetcher


logger = logging.getLogger(__name__)


DEFAULT_DB_DIR = ".glsi"
DEFAULT_DB_FILE = "cache.db"
DISCOVERY_TIMEOUT_SECONDS = 10.0


def resolve_db_path(db_path: str = "") -> str:
    """Return the cache file path, creating its parent directory.

    An empty path resolves to `~/.glsi/cache.db`.

    Raises:
        ConfigurationError: If the directory cannot be created.
    """
    if db_path:
        path = Path(db_path).expanduser()
    else:
        path = Path.home() / DEFAULT_DB_DIR / DEFAULT_DB_FILE

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ConfigurationError(f"cache: create dir {path.parent}: {exc}") from exc
    return str(path)


@asynccontextmanager
async def build_engine(
    settings: Settings | None = None,
    client: httpx.AsyncClient | None = None,
) -> AsyncIterator[SearchEngine]:
    """Open every resource the pipeline needs and yield a ready engine.

    Args:
        settings: Configuration; read from the environment when omitted.
        client: Optional pre-built HTTP client. When given, the caller keeps
            ownership and it is not closed here.
    """
    settings = settings or Settings.from_env()
    db_path = resolve_db_path(settings.db_path)

    owns_client = client is None
    http_client = client or httpx.AsyncClient(timeout=DISCOVERY_TIMEOUT_SECONDS)
    try:
        async with CacheStore(db_path) as cache:
            logger.debug("Cache store opened at %s", db_path)
            discovery = SearchEngineDiscovery(http_client, user_agent=settings.user_agent)
            fetcher = PageFetcher(
                http_client,
                extractor=TrafilaturaExtractor(),
                timeout_seconds=settings.fetch_timeout_seconds,
                max_concurrency=settings.max_concurrency,
                user_agent=settings.user_agent,
            )
            yield SearchEngine(cache, discovery, fetcher, settings)
    finally:
        if owns_client:
            await http_client.aclose()
