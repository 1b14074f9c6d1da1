from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from ..chat.service import FreeChat
from ..indexing.manager import DocsIndex
from ..llm.client import LLMClient
from ..rag.answerer import GroundedAnswerer
from ..sessions.store import SessionStore, session_store


@lru_cache
def get_llm_client() -> LLMClient:
    return LLMClient()


# One index per process, built lazily on the first docs-mode request.
@lru_cache
def get_docs_index() -> DocsIndex:
    return DocsIndex()


def get_session_store() -> SessionStore:
    return session_store


def get_answerer(
    index: Annotated[DocsIndex, Depends(get_docs_index)],
    llm: Annotated[LLMClient, Depends(get_llm_client)],
) -> GroundedAnswerer:
    return GroundedAnswerer(index=index, llm=llm)


def get_free_chat(
    sessions: Annotated[SessionStore, Depends(get_session_store)],
    llm: Annotated[LLMClient, Depends(get_llm_client)],
) -> FreeChat:
    return FreeChat(sessions=sessions, llm=llm)
