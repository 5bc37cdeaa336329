"""Merge per-URL fetch outcomes into one ordered document.

Assembly rules:
    - Results with an error or whitespace-only text are dropped.
    - Survivors keep their input (discovery) order, independent of the order
      in which fetches completed.
    - Each survivor is rendered as a `## <url>` header line, a blank line,
      then its stripped text.
    - Sections are separated by `SECTION_DIVIDER`.

An empty document with count 0 means no source survived; callers must treat
that as a failure, not as an empty success.
"""

from collections.abc import Iterable

from glsi.core.types import FetchResult


SECTION_HEADER_PREFIX = "## "
SECTION_DIVIDER = "\n\n---\n\n"


def format_section(url: str, text: str) -> str:
    return f"{SECTION_HEADER_PREFIX}{url}\n\n{text.strip()}"


def consolidate(results: Iterable[FetchResult]) -> tuple[str, int]:
    """Join successful fetch results into a single document.

    Args:
        results: Fetch outcomes in discovery order.

    Returns:
        `(document, survivor_count)`; `("", 0)` when nothing survived.
    """
    sections = [
        format_section(result.source_url, result.text)
        for result in results
        if result.error is None and result.text.strip()
    ]
    return SECTION_DIVIDER.join(sections), len(sections)


def count_sections(document: str) -> int:
    """Recover the source count of a cached document from its header lines."""
    return sum(
        1 for line in document.split("\n") if line.startswith(SECTION_HEADER_PREFIX)
    )
