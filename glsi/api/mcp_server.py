"""MCP tool server exposing the search pipeline over stdio.

Tools:
    - `web_search(query, count=5, force=False)`: run the pipeline and return
      `[results: N, from_cache: B]` followed by the consolidated document.
    - `clear_cache(query="")`: evict one query or every entry.

Pipeline failures raise `ToolError` with a `search failed:` or
`clear cache failed:` message; FastMCP returns those as error results
(`isError: true`) rather than transport faults.
"""

import logging

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError

from glsi.core.engine import SearchEngine
from glsi.core.exceptions import GlsiError


logger = logging.getLogger(__name__)

DEFAULT_COUNT = 5


async def web_search(
    engine: SearchEngine,
    query: str,
    count: int = DEFAULT_COUNT,
    force: bool = False,
) -> str:
    """Run one search and render it as MCP tool text.

    Raises:
        ToolError: When the pipeline fails or the arguments are invalid.
    """
    if count <= 0:
        count = DEFAULT_COUNT
    try:
        outcome = await engine.run(query, count, force=force)
    except (GlsiError, ValueError) as exc:
        logger.warning("web_search failed for query=%r: %s", query, exc)
        raise ToolError(f"search failed: {exc}") from exc

    meta = f"[results: {outcome.result_count}, from_cache: {str(outcome.from_cache).lower()}]\n\n"
    return meta + outcome.content


async def clear_cache(engine: SearchEngine, query: str = "") -> str:
    """Evict cache entries and describe what was cleared."""
    try:
        await engine.evict(query)
    except GlsiError as exc:
        logger.warning("clear_cache failed: %s", exc)
        raise ToolError(f"clear cache failed: {exc}") from exc

    if query:
        return f"cache entry for {query!r} cleared"
    return "all cache entries cleared"


def create_mcp_server(engine: SearchEngine) -> FastMCP:
    """Build a FastMCP server whose tools delegate to `engine`."""
    mcp = FastMCP("glsi")

    @mcp.tool(name="web_search")
    async def web_search_tool(query: str, count: int = DEFAULT_COUNT, force: bool = False) -> str:
        """Search the web for a query, scrape the top result pages, and return
        consolidated text. Results are cached for 24 hours.

        Args:
            query: The search query string
            count: Number of results to scrape (default 5)
            force: Bypass cache and force a fresh scrape
        """
        return await web_search(engine, query, count, force)

    @mcp.tool(name="clear_cache")
    async def clear_cache_tool(query: str = "") -> str:
        """Clear cached search results. If a query is provided, only that entry
        is evicted; otherwise all entries are flushed.

        Args:
            query: Specific query to evict from cache. If omitted all entries are flushed.
        """
        return await clear_cache(engine, query)

    return mcp
