"""
Session Store

In-memory conversation history for free-chat mode, keyed by the caller's
user identifier.

Design choices
--------------
- In-memory only (no persistence across process restarts). Sessions are
  created on first message and live for the process lifetime.
- Each session keeps at most `max_turns` user/assistant pairs; the oldest
  pair is evicted first so the history always starts with a user turn.
- Thread-safe access using a re-entrant lock.
- Copy-on-read semantics (callers cannot mutate internal state).
- Callers depend on the `SessionBackend` protocol, so an external cache can
  replace this class without touching them.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Protocol
from threading import RLock

from ..api.models import ConversationTurn
from ..config import settings


class SessionBackend(Protocol):
    def get_history(self, user_id: str) -> List[ConversationTurn]: ...

    def append(self, user_id: str, role: str, content: str) -> List[ConversationTurn]: ...

    def discard_last(self, user_id: str) -> None: ...

    def trim(self, user_id: str) -> None: ...


class SessionStore:
    """
    In-memory store mapping user IDs to ordered lists of ConversationTurn.
    """

    def __init__(self, max_turns: Optional[int] = None) -> None:
        """
        Parameters
        ----------
        max_turns : Optional[int]
            Maximum number of user/assistant pairs kept per session.
            Defaults to settings.max_turns.
        """
        self._store: Dict[str, List[ConversationTurn]] = {}
        self._lock = RLock()
        self._max_turns = max_turns or settings.max_turns

    # ------------------------------------------------------------------
    # Core operations
    # ------------------------------------------------------------------

    def get_history(self, user_id: str) -> List[ConversationTurn]:
        """
        Return a copy of the turn history for `user_id` (empty if unknown).
        """
        with self._lock:
            return list(self._store.get(user_id, []))

    def append(self, user_id: str, role: str, content: str) -> List[ConversationTurn]:
        """
        Append one turn, creating the session if needed, then trim.

        Returns
        -------
        List[ConversationTurn]
            The current ordered history, for use as model context.
        """
        turn = ConversationTurn(role=role, content=content)
        with self._lock:
            self._store.setdefault(user_id, []).append(turn)
            self.trim(user_id)
            return list(self._store[user_id])

    def trim(self, user_id: str) -> None:
        """
        Drop turns from the front, two at a time, until at most `max_turns`
        pairs remain.
        """
        limit = 2 * self._max_turns
        with self._lock:
            turns = self._store.get(user_id)
            if not turns:
                return
            while len(turns) > limit:
                del turns[:2]

    def discard_last(self, user_id: str) -> None:
        """
        Remove the most recent turn, used when a user turn got no reply.
        """
        with self._lock:
            turns = self._store.get(user_id)
            if turns:
                turns.pop()

    # ------------------------------------------------------------------
    # Utility operations
    # ------------------------------------------------------------------

    def clear_all(self) -> None:
        """
        Remove all sessions. Intended for test setup/teardown.
        """
        with self._lock:
            self._store.clear()

    def has_session(self, user_id: str) -> bool:
        with self._lock:
            return user_id in self._store

    def __len__(self) -> int:
        """
        Return the number of sessions in the store.
        """
        with self._lock:
            return len(self._store)


# Global singleton used by the application.
session_store = SessionStore()
