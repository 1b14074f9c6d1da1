"""
Retrieval-Augmented Answerer

Answers a question strictly from the indexed manuals.

Flow
----
1. Reject out-of-scope source requests and empty questions (no external call).
2. Retrieve the top-ranked chunks from the lazy index.
3. No qualifying chunk -> fixed "not found" reply, no citations. The model is
   never asked to answer without sources.
4. Otherwise build the grounding system prompt and a user message carrying
   the question plus labelled source excerpts, and call the model.
5. Post-process: empty reply -> "not found"; long quoted spans shortened.
6. Cite up to `max_citations` distinct URLs from the top-ranked chunks.
   These are likely sources, not verified-used sources.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from .sanitize import shorten_long_quotes
from ..api.models import Citation, GroundedAnswer
from ..config import settings
from ..core.errors import ValidationError
from ..crawl.scope import ALLOWED_BASES, validate_requested_sources
from ..embeddings.models import DocumentChunk
from ..indexing.manager import DocsIndex
from ..llm.client import LLMClient
from ..prompts import (
    GROUNDED_SYSTEM_PROMPT,
    GROUNDED_USER_TEMPLATE,
    NOT_FOUND_REPLY,
    SOURCE_TEMPLATE,
)

logger = logging.getLogger("docs.rag")


# ---------------------------------------------------------------------
# Helper functions
# ---------------------------------------------------------------------

def format_sources(chunks: Sequence[DocumentChunk]) -> str:
    return "\n\n".join(
        SOURCE_TEMPLATE.format(
            n=i,
            title=chunk.title or chunk.source_url,
            url=chunk.source_url,
            text=chunk.text,
        )
        for i, chunk in enumerate(chunks, start=1)
    )


def select_citations(chunks: Sequence[DocumentChunk], limit: int) -> List[Citation]:
    """First `limit` distinct source URLs, in rank order."""
    citations: List[Citation] = []
    seen = set()
    for chunk in chunks:
        if len(citations) >= limit:
            break
        if chunk.source_url in seen:
            continue
        seen.add(chunk.source_url)
        citations.append(Citation(url=chunk.source_url, title=chunk.title))
    return citations


# ---------------------------------------------------------------------
# Answerer
# ---------------------------------------------------------------------

class GroundedAnswerer:
    """Docs-only question answering over the shared index."""

    def __init__(
        self,
        index: DocsIndex,
        llm: LLMClient,
        temperature: Optional[float] = None,
        tone: Optional[str] = None,
        max_citations: Optional[int] = None,
        max_quote_chars: Optional[int] = None,
        allowed_bases: Sequence[str] = ALLOWED_BASES,
    ) -> None:
        self.index = index
        self.llm = llm
        self.temperature = (
            settings.grounded_temperature if temperature is None else temperature
        )
        self.tone = tone or settings.response_tone
        self.max_citations = (
            settings.max_citations if max_citations is None else max_citations
        )
        self.max_quote_chars = max_quote_chars or settings.max_quote_chars
        self.allowed_bases = tuple(allowed_bases)

    async def answer(
        self,
        question: str,
        allowed_sources: Optional[List[str]] = None,
    ) -> GroundedAnswer:
        """
        Answer `question` using only retrieved manual excerpts.

        Raises
        ------
        ScopeViolationError
            If `allowed_sources` names anything outside the allowed manuals.
        ValidationError
            If the question is empty.
        ServiceError
            If the index build, embedding or completion call fails.
        """
        validate_requested_sources(allowed_sources, self.allowed_bases)

        if not question or not question.strip():
            raise ValidationError("Question is required")

        chunks = await self.index.retrieve(question)
        if not chunks:
            logger.info("No relevant manual content for question; returning fallback")
            return GroundedAnswer(reply=NOT_FOUND_REPLY, citations=[])

        system_prompt = GROUNDED_SYSTEM_PROMPT.format(tone=self.tone)
        user_message = GROUNDED_USER_TEMPLATE.format(
            question=question.strip(),
            sources=format_sources(chunks),
        )

        reply = await self.llm.chat(
            system_prompt,
            [{"role": "user", "content": user_message}],
            temperature=self.temperature,
        )

        reply = reply.strip()
        if not reply:
            return GroundedAnswer(reply=NOT_FOUND_REPLY, citations=[])

        return GroundedAnswer(
            reply=shorten_long_quotes(reply, self.max_quote_chars),
            citations=select_citations(chunks, self.max_citations),
        )
