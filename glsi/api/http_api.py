"""
HTTP API adapter for the GLSI search engine.

Architectural role:
- Expose `run` and `evict` over a small REST surface.
- Enforce adapter-level input validation.
- Delegate all pipeline work to `glsi.core.engine.SearchEngine`.

Endpoint responsibilities:
- `GET /search`: validate `q`, parse `count`/`force`, run the pipeline.
- `DELETE /cache`: evict one query (`q`) or every entry (no `q`).
- `GET /health`: liveness probe.

Input validation behavior:
- Missing or blank `q` on `/search` -> HTTP 400 with code `invalid_request`.
- Non-numeric or non-positive `count` falls back to the default count.
- `force` is enabled only by `true` or `1`.
- Wrong HTTP methods are rejected with 405 by FastAPI routing.

Error handling strategy:
- Pipeline failures are mapped by exception type to a status code and a
  `{error, code}` JSON body. Discovery and all-sources-failed conditions are
  upstream failures (502); storage and configuration failures are 500.
- Successful responses are never partially populated.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from glsi.core.engine import SearchEngine
from glsi.core.exceptions import (
    ConfigurationError,
    ConsolidationEmptyError,
    DiscoveryError,
    GlsiError,
    StorageError,
)


logger = logging.getLogger(__name__)

DEFAULT_COUNT = 5
INVALID_REQUEST_CODE = "invalid_request"

# ============================================================
# Response schemas
# ============================================================

class SearchResponse(BaseModel):
    content: str
    result_count: int
    from_cache: bool


class StatusResponse(BaseModel):
    status: str


# ============================================================
# Error mapping
# ============================================================

ERROR_STATUS: list[tuple[type[GlsiError], int]] = [
    (DiscoveryError, 502),
    (ConsolidationEmptyError, 502),
    (StorageError, 500),
    (ConfigurationError, 500),
]


def status_for(exc: GlsiError) -> int:
    """Return the HTTP status for a pipeline failure."""
    for error_type, status in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status
    return 500


def parse_count(raw: str | None, default: int) -> int:
    """Parse a positive integer count, falling back to `default`."""
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def parse_flag(raw: str | None) -> bool:
    return raw in ("true", "1")


# ============================================================
# Application factory
# ============================================================

def create_app(engine: SearchEngine, default_count: int = DEFAULT_COUNT) -> FastAPI:
    """Build the FastAPI application bound to a ready engine."""
    app = FastAPI(title="GLSI", version="1.0.0")
    app.state.engine = engine

    @app.exception_handler(GlsiError)
    async def glsi_error_handler(request: Request, exc: GlsiError) -> JSONResponse:
        status = status_for(exc)
        logger.warning("%s %s failed (%d): %s", request.method, request.url.path, status, exc)
        return JSONResponse(status_code=status, content=exc.to_dict())

    @app.get("/search", response_model=SearchResponse)
    async def search(
        q: str | None = None,
        count: str | None = None,
        force: str | None = None,
    ):
        """Run the pipeline and return `{content, result_count, from_cache}`."""
        if not q or not q.strip():
            return JSONResponse(
                status_code=400,
                content={
                    "error": "missing required query parameter 'q'",
                    "code": INVALID_REQUEST_CODE,
                },
            )

        outcome = await app.state.engine.run(
            q,
            parse_count(count, default_count),
            force=parse_flag(force),
        )
        return outcome.to_dict()

    @app.delete("/cache", response_model=StatusResponse)
    async def clear_cache(q: str = ""):
        """Evict one query, or every entry when `q` is omitted."""
        await app.state.engine.evict(q)
        return {"status": "ok"}

    @app.get("/health", response_model=StatusResponse)
    async def health():
        return {"status": "ok"}

    return app
