"""
Conversation store.

Append-only log of turns and of executed tool invocations, keyed by
session identifier. Rows are ordered by their autoincrement id, which
is the monotonic sequence replay relies on.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from typing import Any, Dict, List

from storeagent.store.database import Database
from storeagent.store.models import ToolInvocation, Turn

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 20


class ConversationStore:
    """
    SQLite-backed turn log and action audit trail.

    All methods raise `StoreUnavailable` when the database cannot be
    reached; callers must not treat that as an empty history.
    """

    def __init__(self, database: Database) -> None:
        self.database = database

    # ---------------------------------------------------------------- turns

    def append_turn(self, turn: Turn) -> Turn:
        metadata = json.dumps(turn.metadata, default=str) if turn.metadata is not None else None
        with self.database.connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO chat_history (session_id, role, message, metadata, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (turn.session_id, turn.role, turn.text, metadata, turn.created_at),
            )
            turn_id = int(cursor.lastrowid)
        return turn.with_id(turn_id)

    def load_turns(self, session_id: str, limit: int = DEFAULT_HISTORY_LIMIT) -> List[Turn]:
        """
        Return the most recent `limit` turns of a session, oldest first.

        Older turns are dropped, never summarized.
        """
        with self.database.connect() as conn:
            rows = conn.execute(
                """
                SELECT * FROM (
                    SELECT * FROM chat_history WHERE session_id = ?
                    ORDER BY id DESC LIMIT ?
                ) ORDER BY id ASC
                """,
                (session_id, int(limit)),
            ).fetchall()
        return [self._row_to_turn(r) for r in rows]

    def list_turns(self, session_id: str) -> List[Turn]:
        with self.database.connect() as conn:
            rows = conn.execute(
                "SELECT * FROM chat_history WHERE session_id = ? ORDER BY id ASC",
                (session_id,),
            ).fetchall()
        return [self._row_to_turn(r) for r in rows]

    # -------------------------------------------------------------- actions

    def append_tool_invocation(self, record: ToolInvocation) -> ToolInvocation:
        with self.database.connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO ai_actions (session_id, action_type, action_data, created_at)
                VALUES (?, ?, ?, ?)
                """,
                (
                    record.session_id,
                    record.tool_name,
                    json.dumps(record.arguments or {}, default=str),
                    record.created_at,
                ),
            )
            invocation_id = int(cursor.lastrowid)
        return record.with_id(invocation_id)

    def list_tool_invocations(self, session_id: str) -> List[ToolInvocation]:
        """All invocations of a session, most recent first."""
        with self.database.connect() as conn:
            rows = conn.execute(
                "SELECT * FROM ai_actions WHERE session_id = ? ORDER BY id DESC",
                (session_id,),
            ).fetchall()
        return [self._row_to_invocation(r) for r in rows]

    # -------------------------------------------------------------- helpers

    @staticmethod
    def _row_to_turn(row: sqlite3.Row) -> Turn:
        metadata: Any = None
        if row["metadata"]:
            metadata = json.loads(row["metadata"])
        return Turn(
            session_id=row["session_id"],
            role=row["role"],
            text=row["message"],
            metadata=metadata,
            created_at=row["created_at"],
            turn_id=row["id"],
        )

    @staticmethod
    def _row_to_invocation(row: sqlite3.Row) -> ToolInvocation:
        arguments: Dict[str, Any] = json.loads(row["action_data"] or "{}")
        return ToolInvocation(
            session_id=row["session_id"],
            tool_name=row["action_type"],
            arguments=arguments,
            created_at=row["created_at"],
            invocation_id=row["id"],
        )
