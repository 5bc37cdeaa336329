"""Search-engine result discovery by scraping HTML result pages.

Architectural role:
    Implements the discovery collaborator consumed by the engine:
    `discover(query, count, engine) -> list[SearchHit]`.

Provider strategy:
    - `duckduckgo` / `ddg`: `<base>/html/?q=...`, anchors `a.result__a`,
      `uddg` redirect links unwrapped.
    - anything else (default `google`): `<base>/search?q=...&num=N`, organic
      `div.g` blocks; when none match, a looser pass over every anchor with
      `/url?q=` redirects unwrapped.

Determinism:
    Output order follows page order and is capped at `count`. The selectors
    depend on third-party markup and may stop matching when it changes; an
    empty list is a valid outcome here and is judged by the engine.

Failure handling:
    Transport errors and non-200 responses raise `DiscoveryError`. No retries.
"""

from __future__ import annotations

import logging
from urllib.parse import parse_qs, urlparse

import httpx
from bs4 import BeautifulSoup

from glsi.config import DEFAULT_USER_AGENT
from glsi.core.exceptions import DiscoveryError
from glsi.core.types import SearchHit


logger = logging.getLogger(__name__)


GOOGLE_BASE_URL = "https://www.google.com"
DUCKDUCKGO_BASE_URL = "https://html.duckduckgo.com"

DUCKDUCKGO_ALIASES = {"duckduckgo", "ddg"}
MAX_FALLBACK_TITLE_CHARS = 200


class SearchEngineDiscovery:
    """Scrape Google or DuckDuckGo result pages for candidate URLs."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        google_base_url: str = GOOGLE_BASE_URL,
        duckduckgo_base_url: str = DUCKDUCKGO_BASE_URL,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self.client = client
        self.google_base_url = google_base_url.rstrip("/")
        self.duckduckgo_base_url = duckduckgo_base_url.rstrip("/")
        self.user_agent = user_agent

    async def discover(self, query: str, count: int, engine: str = "google") -> list[SearchHit]:
        """Return up to `count` result candidates for `query`.

        Args:
            query: Raw query text.
            count: Maximum number of hits.
            engine: Engine selector, case-insensitive.

        Raises:
            DiscoveryError: When the result page cannot be retrieved.
        """
        if (engine or "").strip().lower() in DUCKDUCKGO_ALIASES:
            html = await self._fetch_page(
                f"{self.duckduckgo_base_url}/html/", {"q": query}, "duckduckgo"
            )
            hits = parse_duckduckgo_results(html, count)
        else:
            html = await self._fetch_page(
                f"{self.google_base_url}/search", {"q": query, "num": count}, "google"
            )
            hits = parse_google_results(html, count)

        logger.debug("Discovery engine=%s returned %d hits", engine, len(hits))
        return hits

    async def _fetch_page(self, url: str, params: dict, engine: str) -> str:
        headers = {
            "User-Agent": self.user_agent,
            "Accept-Language": "en-US,en;q=0.9",
        }
        try:
            response = await self.client.get(url, params=params, headers=headers)
        except httpx.HTTPError as exc:
            raise DiscoveryError(f"search {engine}: http get: {exc}") from exc

        if response.status_code != 200:
            raise DiscoveryError(
                f"search {engine}: unexpected status {response.status_code} for {response.url}"
            )
        return response.text


def parse_google_results(html: str, count: int) -> list[SearchHit]:
    """Extract organic results from a Google result page."""
    soup = BeautifulSoup(html, "html.parser")
    hits: list[SearchHit] = []

    for block in soup.select("div.g"):
        if len(hits) >= count:
            break
        link = block.find("a")
        href = link.get("href", "") if link is not None else ""
        if not href:
            continue
        # Skip Google's own navigation, ads and relative links.
        if href.startswith("/") or "google.com" in href:
            continue
        heading = block.find("h3")
        title = heading.get_text() if heading is not None else ""
        if not title:
            title = link.get_text()
        hits.append(SearchHit(url=href, title=title.strip()))

    if hits:
        return hits

    for anchor in soup.find_all("a"):
        if len(hits) >= count:
            break
        href = anchor.get("href", "")
        if href.startswith("/url?"):
            href = parse_qs(urlparse(href).query).get("q", [""])[0]
        if not href.startswith("http"):
            continue
        if "google.com" in href or "youtube.com" in href:
            continue
        title = anchor.get_text().strip()
        if not title or len(title) > MAX_FALLBACK_TITLE_CHARS:
            continue
        hits.append(SearchHit(url=href, title=title))

    return hits


def parse_duckduckgo_results(html: str, count: int) -> list[SearchHit]:
    """Extract results from a DuckDuckGo HTML result page."""
    soup = BeautifulSoup(html, "html.parser")
    hits: list[SearchHit] = []

    for anchor in soup.select("a.result__a"):
        if len(hits) >= count:
            break
        href = anchor.get("href", "")
        if not href:
            continue
        if "duckduckgo.com/l/?" in href:
            target = parse_qs(urlparse(href).query).get("uddg", [""])[0]
            if target:
                href = target
        hits.append(SearchHit(url=href, title=anchor.get_text().strip()))

    return hits
