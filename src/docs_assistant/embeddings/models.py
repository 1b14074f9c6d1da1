"""
Embedding Data Models

This module defines the canonical data model used to represent a single
document chunk stored in the in-memory similarity index.

Each instance corresponds to ONE embedding vector and ONE chunk of text.
"""

from __future__ import annotations

from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict


class DocumentChunk(BaseModel):
    """
    A single indexed document chunk.

    Created during an index build and immutable thereafter. A chunk is
    discarded together with its generation when the index is rebuilt.
    """

    source_url: str = Field(
        ...,
        min_length=1,
        description="URL of the manual page this chunk was cut from.",
    )

    title: str = Field(
        default="",
        description="Declared title of the source page.",
    )

    text: str = Field(
        ...,
        min_length=1,
        description="Raw text content for this embedded chunk.",
    )

    embedding: List[float] = Field(
        default_factory=list,
        description="Embedding vector; dimensionality is fixed per generation.",
    )

    score: Optional[float] = Field(
        default=None,
        description="Cosine similarity to the query, set on retrieval results only.",
    )

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
    )
