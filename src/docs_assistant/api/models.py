"""
API Models

Pydantic models for request/response validation of the chat endpoint, plus
the conversation and citation records shared with the core services.

Wire names follow the browser client (`userId`, `allowedSources`); Python
code uses snake_case attributes.
"""

from __future__ import annotations

from typing import List, Optional, Literal
from pydantic import BaseModel, Field, ConfigDict


# ---------------------------------------------------------------------
# Conversation Models
# ---------------------------------------------------------------------

class ConversationTurn(BaseModel):
    """
    Single turn of a free-chat conversation.
    """
    role: Literal["user", "assistant"]
    content: str

    model_config = ConfigDict(extra="forbid", frozen=True)


# ---------------------------------------------------------------------
# Grounded Answer Models
# ---------------------------------------------------------------------

class Citation(BaseModel):
    """
    A likely source for a grounded reply.
    """
    url: str = Field(..., min_length=1)
    title: str = ""

    model_config = ConfigDict(extra="forbid")


class GroundedAnswer(BaseModel):
    """
    Reply restricted to the indexed manuals.
    """
    reply: str
    citations: List[Citation] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class ChatReply(BaseModel):
    """
    Free-chat reply.
    """
    reply: str
    language: str = "unknown"

    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------
# Chat Endpoint Models
# ---------------------------------------------------------------------

class ChatRequest(BaseModel):
    """
    Chat request payload.

    `mode="chat"` uses free chat with per-user memory; `mode="docs"` answers
    only from the indexed manuals.
    """
    # Missing or blank messages are rejected by the services with a 400.
    message: str = ""
    user_id: Optional[str] = Field(default=None, alias="userId")
    mode: Literal["chat", "docs"] = "chat"
    allowed_sources: Optional[List[str]] = Field(default=None, alias="allowedSources")

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class ChatResponse(BaseModel):
    """
    Chat response payload. `citations` is set in docs mode, `language` in
    chat mode.
    """
    reply: str
    citations: Optional[List[Citation]] = None
    language: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------
# Index Models
# ---------------------------------------------------------------------

class IndexStatsResponse(BaseModel):
    """
    Statistics for the documentation index.
    """
    state: Literal["empty", "building", "ready"]
    total_chunks: int = Field(..., ge=0)
    total_pages: int = Field(..., ge=0)
    dimension: int = Field(..., ge=0)
    built_at: Optional[str] = None

    model_config = ConfigDict(extra="forbid")
