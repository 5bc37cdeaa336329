"""Query normalization for cache keys.

The raw query is never stored: it is trimmed, case-folded and hashed with
SHA-256 so that key length is fixed regardless of input size.
"""

import hashlib


def normalize_query(query: str) -> str:
    """Return the trimmed, case-folded form of `query`."""
    return query.strip().casefold()


def canonicalize(query: str) -> str:
    """Map a raw query to its 64-character hex cache key.

    Queries differing only in case or surrounding whitespace share a key.
    """
    normalized = normalize_query(query)
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()
