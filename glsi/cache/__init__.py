"""Cache package.

Architectural role:
    Persists consolidated search documents keyed by canonical query hash,
    with read-time TTL evaluation.

Scope:
    - `models`: SQLAlchemy table definition.
    - `store`: `CacheStore` get/set/evict/close operations.
"""

from glsi.cache.store import CACHE_TTL, CacheStore

__all__ = ["CACHE_TTL", "CacheStore"]
