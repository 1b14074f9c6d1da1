"""
Page Fetcher & Extractor

Fetches a single documentation page and extracts:

- the declared page title
- the "main content" text, located through an ordered chain of content
  strategies (first strategy yielding non-empty content wins; the whole
  document is the fallback scope)
- outgoing links, resolved to absolute fragment-free URLs

Network, timeout, non-2xx and non-HTML conditions raise FetchError. Callers
treat that as a dead end, not a fatal error.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence

import httpx
from bs4 import BeautifulSoup, Tag

from .models import ExtractedPage
from .scope import normalize_url
from ..config import settings
from ..core.errors import FetchError

logger = logging.getLogger("docs.fetcher")


# ---------------------------------------------------------------------
# Content Strategies
# ---------------------------------------------------------------------

ContentStrategy = Callable[[BeautifulSoup], Optional[Tag]]

DEFAULT_CONTENT_SELECTORS: Sequence[str] = (
    "main",
    "article",
    "[role=main]",
    ".markdown-section",
    ".page-inner",
    "#content",
    ".content",
)

TEXT_ELEMENTS = ["h1", "h2", "h3", "h4", "h5", "h6", "p", "li"]


def selector_strategy(selector: str) -> ContentStrategy:
    """Build a strategy returning the first element matching `selector`
    that contains visible text."""

    def _strategy(soup: BeautifulSoup) -> Optional[Tag]:
        for el in soup.select(selector):
            if el.get_text(strip=True):
                return el
        return None

    _strategy.__name__ = f"select({selector})"
    return _strategy


def find_content_scope(
    soup: BeautifulSoup,
    strategies: Sequence[ContentStrategy],
) -> Tag:
    """Run the strategy chain in order; fall back to the whole document."""
    for strategy in strategies:
        scope = strategy(soup)
        if scope is not None:
            return scope
    return soup


def extract_title(soup: BeautifulSoup) -> str:
    if soup.title is None:
        return ""
    return soup.title.get_text().strip()


def extract_main_text(scope: Tag) -> str:
    """Visible text of heading, paragraph and list-item elements, one per line."""
    lines = (
        " ".join(el.get_text(" ", strip=True).split())
        for el in scope.find_all(TEXT_ELEMENTS)
    )
    return "\n".join(line for line in lines if line)


def extract_links(soup: BeautifulSoup, page_url: str) -> List[str]:
    links: List[str] = []
    for anchor in soup.find_all("a", href=True):
        href = anchor["href"]
        # Fragment-only references point back into the same page.
        if not href or href.strip().startswith("#"):
            continue
        resolved = normalize_url(href, page_url)
        if resolved is not None:
            links.append(resolved)
    return links


def parse_page(
    html: str,
    url: str,
    strategies: Sequence[ContentStrategy],
) -> ExtractedPage:
    soup = BeautifulSoup(html, "html.parser")
    scope = find_content_scope(soup, strategies)
    return ExtractedPage(
        url=url,
        title=extract_title(soup),
        main_text=extract_main_text(scope),
        outgoing_links=extract_links(soup, url),
    )


# ---------------------------------------------------------------------
# Fetcher
# ---------------------------------------------------------------------

class PageFetcher:
    """
    Asynchronous fetcher for documentation pages.

    The class is stateless and safe to reuse across crawls. A custom httpx
    transport can be injected for tests.
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        user_agent: Optional[str] = None,
        content_selectors: Optional[Sequence[str]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.timeout = timeout or settings.fetch_timeout
        self.user_agent = user_agent or settings.user_agent
        selectors = content_selectors or DEFAULT_CONTENT_SELECTORS
        self.strategies: List[ContentStrategy] = [
            selector_strategy(sel) for sel in selectors
        ]
        self._transport = transport

    async def fetch(self, url: str) -> ExtractedPage:
        """
        Fetch `url` and extract title, main text and outgoing links.

        Raises
        ------
        FetchError
            On network errors, timeouts, non-2xx status or non-HTML content.
        """
        headers = {"User-Agent": self.user_agent, "Accept": "text/html"}

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                headers=headers,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                response = await client.get(url)
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise FetchError(url, f"HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise FetchError(url, type(exc).__name__) from exc

        content_type = response.headers.get("content-type", "")
        if content_type and "html" not in content_type.lower():
            raise FetchError(url, f"unsupported content type {content_type!r}")

        final_url = str(response.url)
        page = parse_page(response.text, final_url, self.strategies)
        logger.debug(
            "Fetched %s (%d chars, %d links)",
            final_url,
            len(page.main_text),
            len(page.outgoing_links),
        )
        return page
