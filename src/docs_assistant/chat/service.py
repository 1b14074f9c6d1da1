"""
Free Chat

Unrestricted conversation with per-user short-term memory. This path never
touches the documentation index, so it does not wait on an index build.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from .language import detect_language
from ..api.models import ChatReply, ConversationTurn
from ..config import settings
from ..core.errors import ValidationError
from ..llm.client import LLMClient
from ..prompts import CHAT_SYSTEM_PROMPT
from ..sessions.store import SessionBackend

logger = logging.getLogger("docs.chat")


def _to_llm_messages(turns: List[ConversationTurn]) -> List[Dict[str, str]]:
    """Convert ConversationTurn objects into plain dicts for LLM input."""
    return [{"role": t.role, "content": t.content} for t in turns]


class FreeChat:

    def __init__(
        self,
        sessions: SessionBackend,
        llm: LLMClient,
        temperature: Optional[float] = None,
        tone: Optional[str] = None,
        default_user_id: Optional[str] = None,
    ) -> None:
        self.sessions = sessions
        self.llm = llm
        self.temperature = settings.chat_temperature if temperature is None else temperature
        self.tone = tone or settings.response_tone
        self.default_user_id = default_user_id or settings.default_user_id

    async def reply(self, message: str, user_id: Optional[str] = None) -> ChatReply:
        """
        Record `message` in the user's session, ask the model for a reply and
        record that too.

        If the completion fails or is cancelled the unanswered user turn is
        removed again and the error propagates.
        """
        if not message or not message.strip():
            raise ValidationError("Message is required")

        user_id = user_id or self.default_user_id
        history = self.sessions.append(user_id, "user", message)

        try:
            reply = await self.llm.chat(
                CHAT_SYSTEM_PROMPT.format(tone=self.tone),
                _to_llm_messages(history),
                temperature=self.temperature,
            )
        except BaseException:
            # Covers cancellation too; the user turn must not stay unanswered.
            self.sessions.discard_last(user_id)
            raise

        self.sessions.append(user_id, "assistant", reply)
        return ChatReply(reply=reply, language=detect_language(message))
