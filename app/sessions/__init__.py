"""
Sessions module: conversation history storage.

Public API:
- Session: A named conversation owned by one user
- StoredMessage: One user or assistant message
- SessionStore: Thread-safe in-memory session storage
"""

from app.sessions.store import Session, SessionStore, StoredMessage

__all__ = ["Session", "SessionStore", "StoredMessage"]
