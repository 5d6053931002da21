"""
Session management.

Sessions are opaque strings. Any identifier a caller supplies is used
verbatim as the session key; sessions are not tied to an authenticated
principal. Messages on the same session are serialized through a
per-session lock so their turns never interleave.
"""

from __future__ import annotations

import threading
import uuid
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional

from storeagent.store.conversation import ConversationStore
from storeagent.store.models import ToolInvocation, Turn


class _SessionLock:
    __slots__ = ("lock", "holders")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.holders = 0


class SessionManager:
    def __init__(self, store: ConversationStore) -> None:
        self.store = store
        self._locks: Dict[str, _SessionLock] = {}
        self._guard = threading.Lock()

    @staticmethod
    def new_session_id() -> str:
        return f"session_{uuid.uuid4().hex}"

    def resolve(self, session_id: Optional[str]) -> str:
        """Return the caller's session id, or issue a new one."""
        if session_id and session_id.strip():
            return session_id
        return self.new_session_id()

    def history(self, session_id: str) -> List[Turn]:
        """All turns of a session in creation order; empty if unknown."""
        return self.store.list_turns(session_id)

    def actions(self, session_id: str) -> List[ToolInvocation]:
        """All tool invocations of a session, most recent first."""
        return self.store.list_tool_invocations(session_id)

    @property
    def active_sessions(self) -> int:
        """Number of sessions with a request running or waiting."""
        with self._guard:
            return len(self._locks)

    @contextmanager
    def serialize(self, session_id: str) -> Iterator[None]:
        """
        Hold the session's lock for the duration of the block.

        A lock lives only while some request holds or waits for it; the
        last one out removes it.
        """
        with self._guard:
            entry = self._locks.get(session_id)
            if entry is None:
                entry = self._locks[session_id] = _SessionLock()
            entry.holders += 1
        try:
            with entry.lock:
                yield
        finally:
            with self._guard:
                entry.holders -= 1
                if entry.holders == 0:
                    del self._locks[session_id]
