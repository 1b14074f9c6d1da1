"""
Crawl Data Models

Page-level records produced by the fetcher and the crawler.
"""

from __future__ import annotations

from typing import List
from pydantic import BaseModel, Field, ConfigDict


class ExtractedPage(BaseModel):
    """Result of fetching and extracting a single page."""

    url: str = Field(..., description="Final URL after redirects.")
    title: str = ""
    main_text: str = ""
    outgoing_links: List[str] = Field(
        default_factory=list,
        description="Absolute, fragment-free link targets found on the page.",
    )

    model_config = ConfigDict(extra="forbid", frozen=True)


class CrawledPage(BaseModel):
    """A page kept by the crawler for indexing."""

    url: str
    title: str = ""
    text: str = ""

    model_config = ConfigDict(extra="forbid", frozen=True)
