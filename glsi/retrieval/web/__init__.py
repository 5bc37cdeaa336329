"""Web retrieval subpackage.

Architectural role:
    Provides the discovery collaborator (search result scraping), the page
    fetcher (bounded concurrent GETs) and the readable-text extractor used by
    the engine pipeline.
"""

from glsi.retrieval.web.discovery import SearchEngineDiscovery
from glsi.retrieval.web.extraction import TrafilaturaExtractor
from glsi.retrieval.web.fetcher import PageFetcher

__all__ = ["PageFetcher", "SearchEngineDiscovery", "TrafilaturaExtractor"]
