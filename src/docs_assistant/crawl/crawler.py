"""
Breadth-First Documentation Crawler

Traverses the allowed manuals starting from their base URLs. Termination is
guaranteed by the visited set (no URL is fetched twice) and the page cap
(upper bound on fetch attempts). When the cap truncates traversal, crawl
order decides which pages are kept.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Deque, List, Optional, Sequence, Set

from .fetcher import PageFetcher
from .models import CrawledPage
from .scope import ALLOWED_BASES, is_document_link, is_under_base, match_base
from ..config import settings
from ..core.errors import FetchError

logger = logging.getLogger("docs.crawler")


class Crawler:
    """
    Sequential BFS crawler bounded to a fixed set of base URL prefixes.
    """

    def __init__(
        self,
        fetcher: Optional[PageFetcher] = None,
        bases: Sequence[str] = ALLOWED_BASES,
        max_pages: Optional[int] = None,
    ) -> None:
        self.fetcher = fetcher or PageFetcher()
        self.bases = tuple(bases)
        self.max_pages = max_pages or settings.max_crawl_pages
        self.visited_count = 0

    async def crawl(self, seeds: Optional[Sequence[str]] = None) -> List[CrawledPage]:
        """
        Crawl from `seeds` (defaults to the allowed bases).

        Returns
        -------
        List[CrawledPage]
            Deduplicated pages in visit order. Failed fetches are logged and
            skipped.
        """
        queue: Deque[str] = deque(seeds or self.bases)
        queued: Set[str] = set(queue)
        visited: Set[str] = set()
        pages: List[CrawledPage] = []
        self.visited_count = 0

        while queue and self.visited_count < self.max_pages:
            url = queue.popleft()
            if url in visited:
                continue
            visited.add(url)
            self.visited_count += 1

            try:
                page = await self.fetcher.fetch(url)
            except FetchError as exc:
                logger.warning("Skipping page: %s", exc)
                continue

            # Redirect targets count as visited too.
            if page.url != url:
                if page.url in visited:
                    continue
                visited.add(page.url)

            base = match_base(page.url, self.bases)
            if base is None:
                logger.warning("Dropping %s: redirected out of scope to %s", url, page.url)
                continue

            pages.append(CrawledPage(url=page.url, title=page.title, text=page.main_text))

            for link in page.outgoing_links:
                if link in visited or link in queued:
                    continue
                if not is_document_link(link) or not is_under_base(link, base):
                    continue
                queue.append(link)
                queued.add(link)

        logger.info(
            "Crawl finished: %d pages kept, %d URLs visited (cap %d)",
            len(pages),
            self.visited_count,
            self.max_pages,
        )
        return pages
