"""
Records persisted by the conversation store.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional

USER = "user"
ASSISTANT = "assistant"
ROLES = (USER, ASSISTANT)


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class Turn:
    """
    One logged message of a conversation.

    `turn_id` is assigned by the store on append and defines replay
    order; a turn is never modified after it has been appended.
    """

    session_id: str
    role: str
    text: str
    metadata: Optional[Dict[str, Any]] = None
    created_at: str = field(default_factory=utc_now)
    turn_id: Optional[int] = None

    def __post_init__(self) -> None:
        if self.role not in ROLES:
            raise ValueError(f"Unsupported turn role: {self.role!r}")

    def with_id(self, turn_id: int) -> "Turn":
        return replace(self, turn_id=turn_id)


@dataclass(frozen=True)
class ToolInvocation:
    """Audit record of a capability call, written before it executes."""

    session_id: str
    tool_name: str
    arguments: Dict[str, Any]
    created_at: str = field(default_factory=utc_now)
    invocation_id: Optional[int] = None

    def with_id(self, invocation_id: int) -> "ToolInvocation":
        return replace(self, invocation_id=invocation_id)
