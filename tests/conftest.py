"""Shared fixtures for the pipeline tests."""

import sys
from pathlib import Path

import pytest
import pytest_asyncio

TESTS_DIR = Path(__file__).resolve().parent
for path in (TESTS_DIR.parent, TESTS_DIR):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from glsi.cache.store import CacheStore  # noqa: E402
from glsi.config import Settings  # noqa: E402
from glsi.core.engine import SearchEngine  # noqa: E402

from fakes import FakeDiscovery, FakeFetcher, MemoryCache  # noqa: E402


@pytest.fixture
def settings() -> Settings:
    return Settings(rate_limit_seconds=0)


@pytest.fixture
def db_path(tmp_path) -> str:
    return str(tmp_path / "cache.db")


@pytest_asyncio.fixture
async def cache_store(db_path):
    async with CacheStore(db_path) as store:
        yield store


@pytest.fixture
def memory_cache() -> MemoryCache:
    return MemoryCache()


@pytest.fixture
def make_engine(memory_cache, settings):
    def _make(discovery=None, fetcher=None, cache=None, **overrides):
        return SearchEngine(
            cache if cache is not None else memory_cache,
            discovery or FakeDiscovery(),
            fetcher or FakeFetcher(),
            settings.with_overrides(**overrides) if overrides else settings,
        )

    return _make
