"""Data contracts shared by the pipeline stages.

Architectural role:
    Defines the small immutable records passed between the orchestrator and
    its collaborators: discovery candidates (`SearchHit`), per-URL fetch
    outcomes (`FetchResult`) and the caller-facing `SearchOutcome`.

Ownership:
    `FetchResult` lists live for the duration of one orchestrator call and are
    consumed only by the consolidator. `SearchOutcome` is handed to callers and
    never mutated afterwards.
"""

from dataclasses import dataclass

from glsi.core.exceptions import FetchError


@dataclass(frozen=True)
class SearchHit:
    """One discovery candidate, in search-engine order."""

    url: str
    title: str = ""


@dataclass(frozen=True)
class FetchResult:
    """Outcome of fetching a single URL.

    Attributes:
        source_url: URL exactly as requested.
        text: Extracted readable text; empty on failure.
        error: `None` on success, otherwise the per-URL failure.
    """

    source_url: str
    text: str = ""
    error: FetchError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class SearchOutcome:
    """Result of one orchestrator run.

    Attributes:
        content: Consolidated document.
        result_count: Number of sources included in `content`.
        from_cache: Whether `content` was served from the cache store.
    """

    content: str
    result_count: int
    from_cache: bool

    def to_dict(self) -> dict:
        return {
            "content": self.content,
            "result_count": self.result_count,
            "from_cache": self.from_cache,
        }
