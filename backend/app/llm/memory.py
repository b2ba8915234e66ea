"""
Conversation Memory

Session-based conversation history for the query orchestrator.

Features
--------
- In-memory store keyed by ``session_id`` (UUID string).
- Ordered user / assistant turns; assistant turns carry the response.
- Auto-trims the oldest turns past a per-session limit.
- Evicts the least recently updated session past a session limit.
- Thread-safe via a simple lock.
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal, Optional

from backend.app.schema.query_schema import QueryResponse

logger = logging.getLogger(__name__)

MessageRole = Literal["user", "assistant"]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class Message:
    """A single turn in a conversation."""

    role: MessageRole
    content: str
    timestamp: str = field(default_factory=_now)
    response: Optional[QueryResponse] = None


@dataclass
class Conversation:
    """A full conversation session."""

    session_id: str
    messages: list[Message] = field(default_factory=list)
    created_at: str = field(default_factory=_now)
    updated_at: str = field(default_factory=_now)


class ConversationMemory:
    """In-memory conversation store with session management.

    Parameters
    ----------
    max_messages_per_session : int
        Maximum number of turns retained per session.  The oldest turns
        are dropped when the limit is reached.
    max_sessions : int
        Maximum number of sessions.  The least recently updated session
        is evicted when a new one would exceed the limit.

    Usage::

        memory = ConversationMemory()
        sid = memory.get_or_create_session(None)
        memory.add_user_message(sid, "Top schools by sessions")
        memory.get_messages(sid)
    """

    def __init__(
        self,
        max_messages_per_session: int = 50,
        max_sessions: int = 200,
    ) -> None:
        self._sessions: dict[str, Conversation] = {}
        self._max_messages = max_messages_per_session
        self._max_sessions = max_sessions
        self._lock = threading.Lock()

    # Session lifecycle

    def create_session(self) -> str:
        """Create a new conversation session and return its ID."""
        session_id = str(uuid.uuid4())
        with self._lock:
            self._evict_if_needed()
            self._sessions[session_id] = Conversation(session_id=session_id)
        logger.info("Created conversation session: %s", session_id)
        return session_id

    def get_or_create_session(self, session_id: str | None) -> str:
        """Return an existing session or create a new one.

        If *session_id* is ``None`` or not found, a new session is
        created and its ID is returned.
        """
        if session_id and session_id in self._sessions:
            return session_id
        return self.create_session()

    def session_exists(self, session_id: str) -> bool:
        return session_id in self._sessions

    def delete_session(self, session_id: str) -> bool:
        """Remove a session and all its turns.  Returns ``True`` if it existed."""
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    # Message management

    def add_message(self, session_id: str, message: Message) -> None:
        """Append a turn to the session, trimming if needed."""
        with self._lock:
            conv = self._sessions.get(session_id)
            if conv is None:
                logger.warning("Session %s not found, creating on the fly.", session_id)
                self._evict_if_needed()
                conv = Conversation(session_id=session_id)
                self._sessions[session_id] = conv

            conv.messages.append(message)
            conv.updated_at = message.timestamp

            if len(conv.messages) > self._max_messages:
                self._trim(conv)

    def add_user_message(self, session_id: str, content: str) -> None:
        self.add_message(session_id, Message(role="user", content=content))

    def add_assistant_message(
        self,
        session_id: str,
        content: str,
        response: Optional[QueryResponse] = None,
    ) -> None:
        self.add_message(
            session_id,
            Message(role="assistant", content=content, response=response),
        )

    def get_messages(self, session_id: str) -> list[Message]:
        """Return the turns of a session, oldest first."""
        conv = self._sessions.get(session_id)
        return list(conv.messages) if conv else []

    def last_response(self, session_id: str) -> Optional[QueryResponse]:
        for msg in reversed(self.get_messages(session_id)):
            if msg.response is not None:
                return msg.response
        return None

    # Internal helpers

    def _trim(self, conv: Conversation) -> None:
        excess = len(conv.messages) - self._max_messages
        if excess <= 0:
            return
        conv.messages = conv.messages[excess:]
        logger.debug("Trimmed %d messages from session %s", excess, conv.session_id)

    def _evict_if_needed(self) -> None:
        """Evict the oldest session if at capacity."""
        if len(self._sessions) >= self._max_sessions:
            oldest_id = min(
                self._sessions,
                key=lambda sid: self._sessions[sid].updated_at,
            )
            del self._sessions[oldest_id]
            logger.info("Evicted oldest session: %s", oldest_id)
