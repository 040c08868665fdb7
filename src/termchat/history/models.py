"""Data models for conversation history.

These models define the persisted record format and the in-memory
conversation value, independent of the storage backend used.
"""

import time
from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..llm.models import ROLE_SYSTEM, ChatMessage


def now() -> int:
    """Current unix time in whole seconds."""
    return int(time.time())


def strip_system(messages: Sequence[ChatMessage]) -> tuple[ChatMessage, ...]:
    """Drop the leading system message, which is never persisted."""
    if messages and messages[0].role == ROLE_SYSTEM:
        return tuple(messages[1:])
    return tuple(messages)


class ConversationRecord(BaseModel):
    """Stored value for one title key: ``{"time": ..., "messages": [...]}``."""

    time: int = Field(description="Unix seconds of the last successful exchange")
    messages: list[ChatMessage] = Field(default_factory=list)


class Conversation(BaseModel):
    """A titled, chronological sequence of messages.

    Immutable: every exchange produces a new Conversation value, so the
    store's mirror can hand out instances without copying.
    """

    model_config = ConfigDict(frozen=True)

    title: str = Field(min_length=1, description="Unique key and display name")
    created_at: int = Field(default_factory=now, description="Sort key (unix seconds)")
    messages: tuple[ChatMessage, ...] = Field(default_factory=tuple)

    def to_record(self) -> dict[str, Any]:
        """Persisted representation, without any system message."""
        return {
            "time": self.created_at,
            "messages": [m.to_dict() for m in strip_system(self.messages)],
        }

    def to_json(self) -> str:
        return ConversationRecord.model_validate(self.to_record()).model_dump_json()

    @classmethod
    def from_record(cls, title: str, record: dict[str, Any] | str | bytes) -> "Conversation":
        """Build a conversation from a stored record (dict or JSON text)."""
        if isinstance(record, (str, bytes)):
            parsed = ConversationRecord.model_validate_json(record)
        else:
            parsed = ConversationRecord.model_validate(record)
        return cls(title=title, created_at=parsed.time, messages=strip_system(parsed.messages))

    def retitled(self, title: str) -> "Conversation":
        return self.model_copy(update={"title": title})
