"""
Fixed-size overlapping text chunker.
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

from ..crawl.models import CrawledPage


def chunk_text(text: str, size: int, overlap: int) -> List[str]:
    """
    Split `text` into windows of at most `size` characters, each starting
    `size - overlap` characters after the previous one.

    Generation stops at the first window that reaches the end of the text, so
    input shorter than `size` yields exactly one chunk. Empty or
    whitespace-only input yields no chunks.

    Raises
    ------
    ValueError
        If `size` is not positive or `overlap` is not in [0, size).
    """
    if size <= 0:
        raise ValueError("size must be positive")
    if overlap < 0 or overlap >= size:
        raise ValueError("overlap must be >= 0 and strictly less than size")

    if not text or not text.strip():
        return []

    stride = size - overlap
    chunks: List[str] = []
    start = 0
    while True:
        end = start + size
        chunks.append(text[start:end])
        if end >= len(text):
            break
        start += stride
    return chunks


def chunk_pages(
    pages: Sequence[CrawledPage],
    size: int,
    overlap: int,
) -> List[Tuple[CrawledPage, str]]:
    """Flatten pages into (page, chunk text) pairs, skipping empty pages."""
    return [
        (page, chunk)
        for page in pages
        for chunk in chunk_text(page.text, size, overlap)
    ]
