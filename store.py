"""In-memory store of keypad sessions.

Each session owns exactly one ``KeypadState``.  Keystrokes are applied
under the store lock, so concurrent requests against the same session
are serialised and no two transitions race on one calculator.  Nothing
survives a restart.
"""
from __future__ import annotations

import threading
from typing import Iterable

import config
from coordinator import KeypadState, press_sequence
from logging_config import get_logger
from models import Session, _new_id, _utcnow

log = get_logger("store")


class SessionNotFoundError(Exception):
    """Raised when a session lookup fails."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Session not found: {session_id}")


class SessionLimitError(Exception):
    """Raised when creating a session would exceed the configured limit."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(f"Session limit reached ({limit})")


class SessionStore:
    """In-memory registry of keypad sessions."""

    def __init__(self, max_sessions: int | None = None) -> None:
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()
        self.max_sessions = config.MAX_SESSIONS if max_sessions is None else max_sessions

    # -- helpers -------------------------------------------------------------

    def _get(self, session_id: str) -> Session:
        try:
            return self._sessions[session_id]
        except KeyError:
            raise SessionNotFoundError(session_id) from None

    def _put(self, session: Session, keypad: KeypadState) -> Session:
        updated = session.model_copy(update={"keypad": keypad, "updated_at": _utcnow()})
        self._sessions[session.id] = updated
        return updated

    # -- operations ----------------------------------------------------------

    def create(self) -> Session:
        """Start a session with a fresh keypad."""
        with self._lock:
            if len(self._sessions) >= self.max_sessions:
                log.warning("Refusing new session, %d already open", len(self._sessions))
                raise SessionLimitError(self.max_sessions)
            now = _utcnow()
            session = Session(id=_new_id(), keypad=KeypadState(), created_at=now, updated_at=now)
            self._sessions[session.id] = session
        log.info("Created session %s", session.id)
        return session

    def get(self, session_id: str) -> Session:
        with self._lock:
            return self._get(session_id)

    def list(self) -> list[Session]:
        """Sessions, most recently created first."""
        with self._lock:
            items = list(self._sessions.values())
        items.sort(key=lambda s: s.created_at, reverse=True)
        return items

    def press(self, session_id: str, keys: Iterable[str]) -> Session:
        """Apply keys in order.

        All or nothing: if any key is unknown the session is left as it
        was before the first key.
        """
        with self._lock:
            session = self._get(session_id)
            keypad = press_sequence(session.keypad, keys)
            return self._put(session, keypad)

    def reset(self, session_id: str) -> Session:
        with self._lock:
            return self._put(self._get(session_id), KeypadState())

    def delete(self, session_id: str) -> Session:
        """Delete a session and return its last state."""
        with self._lock:
            session = self._get(session_id)
            del self._sessions[session_id]
        log.info("Deleted session %s", session_id)
        return session

    def count(self) -> int:
        return len(self._sessions)

    def clear(self) -> None:
        """Remove all sessions (useful for testing)."""
        with self._lock:
            self._sessions.clear()
