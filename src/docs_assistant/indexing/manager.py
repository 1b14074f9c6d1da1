"""
Lazy Documentation Index

Process-wide holder for the current similarity index generation. The index
is built on the first retrieval request (crawl -> chunk -> embed -> publish)
and never invalidated automatically.

State Model
-----------
- EMPTY:    no generation, or the last generation holds no chunks
- BUILDING: one build task is in flight; every requester awaits that task
- READY:    a non-empty generation is published

A failed build leaves the previous generation (if any) untouched and returns
the manager to its prior state, so the next request retries.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import List, Optional, Sequence

from .chunker import chunk_pages
from ..config import settings
from ..crawl.crawler import Crawler
from ..core.errors import DimensionMismatchError, EmbeddingError, IndexBuildError
from ..embeddings.embedder import Embedder
from ..embeddings.index import SimilarityIndex
from ..embeddings.models import DocumentChunk

logger = logging.getLogger("docs.index")


def _consume_exception(task: asyncio.Task) -> None:
    # Build failures are logged in _build; awaiters may all be gone by then.
    if not task.cancelled():
        task.exception()


class IndexState(str, Enum):
    EMPTY = "empty"
    BUILDING = "building"
    READY = "ready"


class DocsIndex:
    """
    Lazily built, shared similarity index over the allowed manuals.
    """

    def __init__(
        self,
        crawler: Optional[Crawler] = None,
        embedder: Optional[Embedder] = None,
        chunk_size: Optional[int] = None,
        chunk_overlap: Optional[int] = None,
        k: Optional[int] = None,
        threshold: Optional[float] = None,
    ) -> None:
        self.crawler = crawler or Crawler()
        self.embedder = embedder or Embedder()
        self.chunk_size = chunk_size or settings.chunk_size
        self.chunk_overlap = (
            settings.chunk_overlap if chunk_overlap is None else chunk_overlap
        )
        self.k = k or settings.retrieval_k
        self.threshold = settings.relevance_threshold if threshold is None else threshold

        self._generation: Optional[SimilarityIndex] = None
        self._build_task: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> IndexState:
        if self._build_task is not None:
            return IndexState.BUILDING
        if self._generation is not None and len(self._generation) > 0:
            return IndexState.READY
        return IndexState.EMPTY

    @property
    def generation(self) -> Optional[SimilarityIndex]:
        return self._generation

    def publish(self, chunks: Sequence[DocumentChunk]) -> SimilarityIndex:
        """Replace the current generation with one built from `chunks`."""
        generation = SimilarityIndex(chunks)
        self._generation = generation
        return generation

    def get_stats(self) -> dict:
        stats = {
            "state": self.state.value,
            "total_chunks": 0,
            "total_pages": 0,
            "dimension": 0,
            "built_at": None,
        }
        if self._generation is not None:
            stats.update(self._generation.get_stats())
        return stats

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------

    async def ensure_ready(self) -> SimilarityIndex:
        """
        Return the current generation, building it first if the index is empty.

        Concurrent callers share a single in-flight build. The build is
        shielded so that one cancelled request does not abort it for others.
        """
        generation = self._generation
        if generation is not None and len(generation) > 0:
            return generation

        if self._build_task is None:
            self._build_task = asyncio.create_task(self._build())
            self._build_task.add_done_callback(_consume_exception)

        return await asyncio.shield(self._build_task)

    async def _build(self) -> SimilarityIndex:
        try:
            logger.info("Building documentation index")
            pages = await self.crawler.crawl()
            pairs = chunk_pages(pages, self.chunk_size, self.chunk_overlap)

            if not pairs:
                logger.warning("Crawl produced no indexable text; index stays empty")
                return self.publish([])

            vectors = await self.embedder.embed([text for _, text in pairs])
            if len(vectors) != len(pairs):
                raise IndexBuildError(
                    f"Embedding count {len(vectors)} does not match chunk count {len(pairs)}."
                )

            chunks: List[DocumentChunk] = [
                DocumentChunk(
                    source_url=page.url,
                    title=page.title,
                    text=text,
                    embedding=vector,
                )
                for (page, text), vector in zip(pairs, vectors)
            ]

            try:
                generation = self.publish(chunks)
            except DimensionMismatchError as exc:
                raise IndexBuildError(str(exc)) from exc

            logger.info(
                "Index ready: %d chunks from %d pages",
                len(generation),
                len(pages),
            )
            return generation
        except Exception:
            logger.exception("Index build failed")
            raise
        finally:
            self._build_task = None

    # ------------------------------------------------------------------
    # Retrieval
    # ------------------------------------------------------------------

    async def retrieve(
        self,
        query: str,
        k: Optional[int] = None,
        threshold: Optional[float] = None,
    ) -> List[DocumentChunk]:
        """
        Return up to `k` chunks ranked by descending cosine similarity to
        `query`, excluding any scoring at or below the relevance threshold.

        An empty list means no sufficiently relevant material was found.
        """
        generation = await self.ensure_ready()
        if len(generation) == 0:
            return []

        embeddings = await self.embedder.embed([query])
        if not embeddings:
            raise EmbeddingError("Embedding service returned no vector for the query.")

        return generation.search(
            embeddings[0],
            k=self.k if k is None else k,
            threshold=self.threshold if threshold is None else threshold,
        )
