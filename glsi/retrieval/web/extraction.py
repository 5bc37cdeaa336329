"""Readable-text extraction from raw page bodies.

Extraction strategy:
    `trafilatura.extract` in plain-text mode, without comments, tables, images
    or links, followed by whitespace normalization. Pages with no extractable
    main content yield an empty string; the consolidator drops those.
"""

import re

import trafilatura

from glsi.core.exceptions import ExtractionError


class TrafilaturaExtractor:
    """Callable extraction collaborator: `extract(raw_bytes) -> text`."""

    def __init__(self, favor_precision: bool = True) -> None:
        self.favor_precision = favor_precision

    def __call__(self, raw: bytes) -> str:
        if not raw:
            return ""

        try:
            extracted = trafilatura.extract(
                raw,
                include_comments=False,
                include_tables=False,
                include_images=False,
                include_links=False,
                favor_precision=self.favor_precision,
                output_format="txt",
            )
        except Exception as exc:
            raise ExtractionError(f"text extraction failed: {exc}") from exc

        return normalize_whitespace(extracted or "")


def normalize_whitespace(text: str) -> str:
    """Normalize newline and spacing artifacts in extracted text."""
    text = text.replace("\r", "\n")
    text = re.sub(r"\n{3,}", "\n\n", text)
    text = re.sub(r"[\t\x0b\x0c ]+", " ", text)
    text = re.sub(r" *\n *", "\n", text)
    return text.strip()
