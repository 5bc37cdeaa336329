"""Error taxonomy for the search pipeline.

Architectural role:
    Every failure the pipeline can report derives from `GlsiError`. Surfaces
    (CLI, HTTP, MCP) translate these into their own error responses by
    inspecting the exception type or its stable `code` attribute.

Propagation policy:
    - `FetchError` is per-URL and is stored on `FetchResult.error`; the page
      fetcher never raises it out of a batch.
    - Every other error fails the call in progress and leaves the cache
      untouched.
"""


class GlsiError(Exception):
    """Base class for all pipeline failures."""

    code = "glsi_error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code)
        self.message = message or self.code

    def to_dict(self) -> dict[str, str]:
        return {"error": self.message, "code": self.code}


class ConfigurationError(GlsiError):
    """Startup failure, e.g. the cache backing store cannot be opened."""

    code = "configuration_error"


class DiscoveryError(GlsiError):
    """The discovery collaborator failed; no fetch was attempted."""

    code = "discovery_failed"


class NoResultsError(DiscoveryError):
    """Discovery succeeded but produced zero candidate URLs."""

    code = "no_results"


class FetchError(GlsiError):
    """A single URL could not be fetched or extracted."""

    code = "fetch_failed"


class ExtractionError(FetchError):
    code = "extraction_failed"


class ConsolidationEmptyError(GlsiError):
    """Every fetch failed or yielded blank text."""

    code = "all_sources_failed"


class StorageError(GlsiError):
    """I/O failure on a cache read or write."""

    code = "storage_error"


class CacheCorruptionError(StorageError):
    """A persisted row violates a store invariant."""

    code = "cache_corrupted"
