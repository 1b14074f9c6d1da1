"""
In-Memory Similarity Index

This module implements one immutable generation of the documentation index:
an ordered collection of DocumentChunk records with a dense matrix of their
embeddings, searched by cosine similarity.

Key Properties
--------------
- A generation is fully built before it is published; readers never observe
  a partially-built index.
- All vectors in a generation share one dimensionality.
- Comparing vectors of different dimensionality is an error, never a silent
  truncation.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Sequence

import numpy as np

from .models import DocumentChunk
from ..core.errors import DimensionMismatchError


EPSILON = 1e-10


# ---------------------------------------------------------------------
# Cosine Similarity
# ---------------------------------------------------------------------

def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Dot product over the product of magnitudes, with a small epsilon in the
    denominator so zero or empty vectors score 0 instead of dividing by zero.

    Raises
    ------
    DimensionMismatchError
        If the vectors have different lengths.
    """
    if len(a) != len(b):
        raise DimensionMismatchError(
            f"Cannot compare vectors of dimension {len(a)} and {len(b)}."
        )

    va = np.asarray(a, dtype="float64")
    vb = np.asarray(b, dtype="float64")
    denom = float(np.linalg.norm(va) * np.linalg.norm(vb)) + EPSILON
    return float(np.dot(va, vb)) / denom


# ---------------------------------------------------------------------
# Index Generation
# ---------------------------------------------------------------------

class SimilarityIndex:
    """
    One generation of the similarity index.

    Instances are built once and never mutated, so they can be shared across
    concurrent requests without locking.
    """

    def __init__(self, chunks: Sequence[DocumentChunk]) -> None:
        self._chunks: List[DocumentChunk] = list(chunks)
        self.built_at = datetime.now(timezone.utc)

        if not self._chunks:
            self._matrix = np.zeros((0, 0), dtype="float32")
            self._norms = np.zeros(0, dtype="float32")
            self.dimension = 0
            return

        self.dimension = len(self._chunks[0].embedding)
        if self.dimension == 0:
            raise DimensionMismatchError("Embedding vectors must be non-empty.")

        for i, chunk in enumerate(self._chunks):
            if len(chunk.embedding) != self.dimension:
                raise DimensionMismatchError(
                    f"Inconsistent embedding dimensionality at chunk {i}."
                )

        self._matrix = np.asarray([c.embedding for c in self._chunks], dtype="float32")
        self._norms = np.linalg.norm(self._matrix, axis=1)

    def __len__(self) -> int:
        return len(self._chunks)

    @property
    def chunks(self) -> List[DocumentChunk]:
        return list(self._chunks)

    def search(
        self,
        query_emb: Sequence[float],
        k: int,
        threshold: float,
    ) -> List[DocumentChunk]:
        """
        Score every chunk against `query_emb`, keep the top `k` by descending
        score and drop any at or below `threshold`.

        Returns
        -------
        List[DocumentChunk]
            Copies of the matching chunks with `score` set.
        """
        if not self._chunks or k <= 0:
            return []

        if len(query_emb) != self.dimension:
            raise DimensionMismatchError(
                f"Query dimension {len(query_emb)} does not match index "
                f"dimension {self.dimension}."
            )

        q = np.asarray(query_emb, dtype="float32")
        scores = (self._matrix @ q) / (self._norms * np.linalg.norm(q) + EPSILON)

        # Stable sort keeps crawl order among equal scores.
        order = np.argsort(-scores, kind="stable")[:k]

        results: List[DocumentChunk] = []
        for idx in order:
            score = float(scores[idx])
            if score <= threshold:
                continue
            results.append(self._chunks[int(idx)].model_copy(update={"score": score}))
        return results

    def get_stats(self) -> dict:
        """
        Return index statistics for diagnostics.
        """
        return {
            "total_chunks": len(self._chunks),
            "total_pages": len({c.source_url for c in self._chunks}),
            "dimension": self.dimension,
            "built_at": self.built_at.isoformat(),
        }
