import pytest
from fastmcp import Client, FastMCP
from fastmcp.exceptions import ToolError

from glsi.api.mcp_server import clear_cache, create_mcp_server, web_search
from glsi.core.exceptions import StorageError
from glsi.core.normalizer import canonicalize

from fakes import FakeDiscovery, FakeFetcher, MemoryCache


@pytest.mark.asyncio
async def test_web_search_renders_meta_header(make_engine):
    engine = make_engine(FakeDiscovery(["u1"]), FakeFetcher({"u1": "alpha"}))

    first = await web_search(engine, "q")
    second = await web_search(engine, "q")

    assert first == "[results: 1, from_cache: false]\n\n## u1\n\nalpha"
    assert second == "[results: 1, from_cache: true]\n\n## u1\n\nalpha"


@pytest.mark.asyncio
async def test_web_search_non_positive_count_uses_default(make_engine):
    discovery = FakeDiscovery([f"u{i}" for i in range(10)])
    engine = make_engine(discovery, FakeFetcher({f"u{i}": "t" for i in range(10)}))

    await web_search(engine, "q", count=0)

    assert discovery.calls[0][1] == 5


@pytest.mark.asyncio
async def test_web_search_failure_raises_tool_error(make_engine):
    with pytest.raises(ToolError, match="^search failed: no search results"):
        await web_search(make_engine(FakeDiscovery([])), "q")


@pytest.mark.asyncio
async def test_web_search_blank_query_raises_tool_error(make_engine):
    with pytest.raises(ToolError, match="^search failed: "):
        await web_search(make_engine(), "   ")


@pytest.mark.asyncio
async def test_clear_cache_messages(make_engine, memory_cache):
    memory_cache.entries[canonicalize("a")] = "## u\n\na"
    engine = make_engine()

    assert await clear_cache(engine, "a") == "cache entry for 'a' cleared"
    assert await clear_cache(engine) == "all cache entries cleared"
    assert memory_cache.entries == {}


class FailingCache(MemoryCache):
    async def evict(self, key):
        raise StorageError("cache: delete: database is locked")


@pytest.mark.asyncio
async def test_clear_cache_failure_raises_tool_error(make_engine):
    with pytest.raises(ToolError) as excinfo:
        await clear_cache(make_engine(cache=FailingCache()))

    assert str(excinfo.value) == "clear cache failed: cache: delete: database is locked"


def test_create_mcp_server(make_engine):
    assert isinstance(create_mcp_server(make_engine()), FastMCP)


@pytest.mark.asyncio
async def test_tool_results_flag_success_and_failure(make_engine):
    ok_server = create_mcp_server(make_engine(FakeDiscovery(["u1"]), FakeFetcher({"u1": "alpha"})))
    failing_server = create_mcp_server(make_engine(FakeDiscovery([])))

    async with Client(ok_server) as client:
        result = await client.call_tool("web_search", {"query": "q"}, raise_on_error=False)

    assert result.is_error is False
    assert result.content[0].text == "[results: 1, from_cache: false]\n\n## u1\n\nalpha"

    async with Client(failing_server) as client:
        result = await client.call_tool("web_search", {"query": "q"}, raise_on_error=False)

    assert result.is_error is True
    assert result.content[0].text == "search failed: no search results for 'q'"


@pytest.mark.asyncio
async def test_clear_cache_tool_failure_is_flagged(make_engine):
    server = create_mcp_server(make_engine(cache=FailingCache()))

    async with Client(server) as client:
        result = await client.call_tool("clear_cache", {}, raise_on_error=False)

    assert result.is_error is True
    assert result.content[0].text.startswith("clear cache failed: ")
