"""
Chat Routes

Single conversational endpoint used by the browser client. The caller picks
the path explicitly:

- mode="chat": free chat with per-user memory (never waits on the index)
- mode="docs": answers restricted to the indexed manuals, with citations

Errors raised by the services are mapped to responses by the handlers
registered in `main.create_app` (400 / 403 / 502 / 500).
"""

from fastapi import APIRouter, Depends, status
from typing import Annotated

from .models import ChatRequest, ChatResponse
from ..chat.service import FreeChat
from ..rag.answerer import GroundedAnswerer
from .dependencies import get_answerer, get_free_chat

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post(
    "",
    response_model=ChatResponse,
    response_model_exclude_none=True,
    summary="Chat freely or ask the documentation",
    status_code=status.HTTP_200_OK,
)
async def chat(
    req: ChatRequest,
    free_chat: Annotated[FreeChat, Depends(get_free_chat)],
    answerer: Annotated[GroundedAnswerer, Depends(get_answerer)],
) -> ChatResponse:
    """
    Parameters
    ----------
    req : ChatRequest
        Contains:
        - message: The user's question or message
        - userId: Optional session key for free chat
        - mode: "chat" or "docs"
        - allowedSources: Optional docs-mode source whitelist request

    Returns
    -------
    ChatResponse
        `{reply, language}` in chat mode, `{reply, citations}` in docs mode.
    """
    if req.mode == "docs":
        answer = await answerer.answer(req.message, allowed_sources=req.allowed_sources)
        return ChatResponse(reply=answer.reply, citations=answer.citations)

    result = await free_chat.reply(req.message, user_id=req.user_id)
    return ChatResponse(reply=result.reply, language=result.language)
