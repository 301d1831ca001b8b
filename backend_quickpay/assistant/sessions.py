"""
Chat sessions: one PaymentDialogue per session id.

Each session serializes its messages with its own lock, so a payment
execution finishes (success or failure) before the next message of that
session is looked at. Different sessions proceed independently.
"""

from __future__ import annotations

import threading
import time
from typing import Any, Callable

from cachetools import TTLCache

from backend_quickpay.assistant.dialogue import ChatMessage, PaymentDialogue
from backend_quickpay.quickpay_logging import bind_session

DialogueFactory = Callable[[str], PaymentDialogue]

DEFAULT_SESSION_TTL_SEC = 1800.0
DEFAULT_MAX_SESSIONS = 10_000


class ChatSession:
    def __init__(self, session_id: str, dialogue: PaymentDialogue) -> None:
        self.session_id = session_id
        self.dialogue = dialogue
        self._lock = threading.Lock()
        self._log = bind_session(session_id)

    def handle(self, text: str) -> tuple[list[ChatMessage], dict[str, Any]]:
        """Process one message; returns (replies, payment context after processing)."""
        with self._lock:
            self._log.debug("chat_message_received", length=len(text or ""))
            replies = self.dialogue.handle(text)
            return replies, self.dialogue.context


class SessionRegistry:
    """
    In-process map of live sessions, bounded by an idle TTL and a size cap.

    Every get() refreshes the session's expiry. When the cap is reached the
    least recently used session is dropped; an evicted id starts over Idle.
    """

    def __init__(
        self,
        factory: DialogueFactory,
        *,
        ttl_sec: float = DEFAULT_SESSION_TTL_SEC,
        max_sessions: int = DEFAULT_MAX_SESSIONS,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._factory = factory
        self._sessions: TTLCache = TTLCache(maxsize=max_sessions, ttl=ttl_sec, timer=timer)
        self._lock = threading.RLock()

    def get(self, session_id: str) -> ChatSession:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                session = ChatSession(session_id, self._factory(session_id))
            # re-insert to restart the idle timer
            self._sessions[session_id] = session
            return session

    def discard(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            self._sessions.expire()
            return len(self._sessions)
