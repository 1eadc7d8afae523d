"""
Session Store for Conversation History

Keeps chat sessions and their messages. Uses in-memory storage; a
document database can replace it behind the same interface.

The store is thread-safe using threading.Lock to handle
concurrent requests in FastAPI's async environment.
"""

import threading
import time
import uuid
from dataclasses import dataclass, field, replace


@dataclass(frozen=True)
class StoredMessage:
    """
    One message in a session.

    Attributes:
        role: "user" for the human, "funmi" for the assistant
        content: Message text (or image data URI / URL)
        timestamp: Unix timestamp when the message was stored
        mode: Request mode used to produce an assistant message
        provider: Provider that produced the assistant message
        degraded: Whether the assistant message is a degraded default
    """

    role: str
    content: str
    timestamp: float = field(default_factory=time.time)
    mode: str | None = None
    provider: str | None = None
    degraded: bool = False


@dataclass
class Session:
    """A named conversation owned by one user."""

    session_id: str
    user_id: str
    name: str
    messages: list[StoredMessage] = field(default_factory=list)
    created_at: float = field(default_factory=time.time)
    updated_at: float = field(default_factory=time.time)


class SessionStore:
    """
    Thread-safe in-memory session storage.

    Returned sessions are copies; mutate through the store methods only.

    Example:
        store = SessionStore()
        session = store.get_or_create("dev-user-001", "New Chat")
        store.append_message(session.session_id, StoredMessage("user", "hi"))
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._sessions: dict[str, Session] = {}

    @staticmethod
    def _copy(session: Session) -> Session:
        return replace(session, messages=list(session.messages))

    def get_or_create(self, user_id: str, name: str) -> Session:
        """
        Find the user's session with this name, creating it if missing.

        Args:
            user_id: Owner of the session
            name: Session display name

        Returns:
            Copy of the existing or new session
        """
        with self._lock:
            for session in self._sessions.values():
                if session.user_id == user_id and session.name == name:
                    return self._copy(session)

            session = Session(
                session_id=uuid.uuid4().hex,
                user_id=user_id,
                name=name,
            )
            self._sessions[session.session_id] = session
            return self._copy(session)

    def get(self, session_id: str, user_id: str) -> Session | None:
        """
        Get a session owned by the given user.

        Returns:
            Copy of the session, or None if it does not exist or belongs
            to another user
        """
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None or session.user_id != user_id:
                return None
            return self._copy(session)

    def append_message(self, session_id: str, message: StoredMessage) -> None:
        """
        Append a message and bump the session's updated_at.

        Raises:
            KeyError: If the session does not exist
        """
        with self._lock:
            session = self._sessions[session_id]
            session.messages.append(message)
            session.updated_at = time.time()

    def list_for_user(self, user_id: str) -> list[Session]:
        """Return copies of all sessions owned by the user, oldest first."""
        with self._lock:
            sessions = [s for s in self._sessions.values() if s.user_id == user_id]
            return [self._copy(s) for s in sorted(sessions, key=lambda s: s.created_at)]

    def reset(self) -> None:
        """
        Remove all sessions.

        Primarily used for testing.
        """
        with self._lock:
            self._sessions.clear()
