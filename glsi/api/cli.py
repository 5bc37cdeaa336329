"""
Command-line adapter for GLSI.

Architectural role:
- Parses terminal arguments into engine calls.
- Starts the HTTP (`serve`) and MCP (`mcp`) surfaces over the same wiring.
- Delegates all pipeline work to `glsi.core.engine.SearchEngine`.

Commands:
- `search QUERY [-n COUNT] [--force] [--engine E] [--json]`
- `clear-cache [QUERY]`
- `serve [--host H] [--port P]`
- `mcp`

Global options (`--db`, `--rate-limit`, `--log-level`) override the
environment-derived settings for this process only.

Error handling strategy:
- Pipeline and configuration failures print `error: ...` to stderr and exit
  with status 1.
- Keyboard interrupts exit with status 130 without a traceback.
"""

import argparse
import asyncio
import json
import logging
import sys

from glsi.config import Settings, configure_logging
from glsi.core.bootstrap import build_engine
from glsi.core.exceptions import GlsiError


logger = logging.getLogger(__name__)


# =========================================================
# Argument parsing
# =========================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="glsi",
        description="Search the web, scrape the top results and cache the consolidated text.",
    )
    parser.add_argument("--db", default=None, help="Cache database path (default ~/.glsi/cache.db)")
    parser.add_argument("--rate-limit", type=float, default=None, help="Delay in seconds between search and scrape")
    parser.add_argument("--log-level", default=None, help="DEBUG | INFO | WARNING | ERROR")

    commands = parser.add_subparsers(dest="command", required=True)

    search = commands.add_parser("search", help="Run a search (served from cache when fresh)")
    search.add_argument("query", nargs="+", help="Search query")
    search.add_argument("-n", "--count", type=int, default=None, help="Number of result pages to scrape")
    search.add_argument("--force", action="store_true", help="Bypass the cache")
    search.add_argument("--engine", default=None, help="google | duckduckgo")
    search.add_argument("--json", action="store_true", help="Print a JSON object instead of plain text")

    clear = commands.add_parser("clear-cache", help="Evict one query, or everything when omitted")
    clear.add_argument("query", nargs="*", help="Query to evict")

    serve = commands.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8080)

    commands.add_parser("mcp", help="Run the MCP stdio server")

    return parser


def settings_from_args(args: argparse.Namespace) -> Settings:
    """Apply command-line overrides on top of environment settings."""
    return Settings.from_env().with_overrides(
        db_path=args.db,
        rate_limit_seconds=args.rate_limit,
        log_level=args.log_level.upper() if args.log_level else None,
        search_engine=getattr(args, "engine", None),
    )


# =========================================================
# Commands
# =========================================================

async def run_search(settings: Settings, args: argparse.Namespace) -> None:
    query = " ".join(args.query)
    count = args.count if args.count and args.count > 0 else settings.default_count

    async with build_engine(settings) as engine:
        outcome = await engine.run(query, count, force=args.force)

    if args.json:
        print(json.dumps(outcome.to_dict(), ensure_ascii=False))
        return

    source = "cache" if outcome.from_cache else "web"
    print(f"[results: {outcome.result_count}, source: {source}]\n", file=sys.stderr)
    print(outcome.content)


async def run_clear_cache(settings: Settings, args: argparse.Namespace) -> None:
    query = " ".join(args.query)
    async with build_engine(settings) as engine:
        await engine.evict(query)

    if query:
        print(f"cache entry for {query!r} cleared")
    else:
        print("all cache entries cleared")


async def run_serve(settings: Settings, args: argparse.Namespace) -> None:
    import uvicorn

    from glsi.api.http_api import create_app

    async with build_engine(settings) as engine:
        app = create_app(engine, default_count=settings.default_count)
        config = uvicorn.Config(app, host=args.host, port=args.port, log_level=settings.log_level.lower())
        logger.info("GLSI HTTP API listening on %s:%d", args.host, args.port)
        await uvicorn.Server(config).serve()


async def run_mcp(settings: Settings, args: argparse.Namespace) -> None:
    from glsi.api.mcp_server import create_mcp_server

    async with build_engine(settings) as engine:
        await create_mcp_server(engine).run_async()


COMMANDS = {
    "search": run_search,
    "clear-cache": run_clear_cache,
    "serve": run_serve,
    "mcp": run_mcp,
}


# =========================================================
# MAIN
# =========================================================

def main(argv: list[str] | None = None) -> int:
    """Parse arguments, run one command and return the exit status."""
    args = build_parser().parse_args(argv)

    try:
        settings = settings_from_args(args)
    except GlsiError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    configure_logging(settings.log_level)

    try:
        asyncio.run(COMMANDS[args.command](settings, args))
    except (GlsiError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return 130

    return 0


if __name__ == "__main__":
    sys.exit(main())
