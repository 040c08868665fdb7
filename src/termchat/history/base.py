"""Abstract base class for conversation history backends.

This module defines the interface for the title -> conversation store.
The abstraction hides:
- Storage format and engine (SQLite, in-memory)
- Transaction handling
- How the in-memory mirror is kept in step with the backing store
"""

from abc import ABC, abstractmethod
from typing import Any

from ..errors import ConversationNotFoundError
from .models import Conversation


class HistoryStore(ABC):
    """Abstract conversation history store keyed by title.

    Reads are served from an in-memory mirror that every implementation
    updates only after its backing write has succeeded. Mirror insertion
    order is write order (oldest first).
    """

    def __init__(self) -> None:
        self._mirror: dict[str, Conversation] = {}
        self._debug_callback: Any | None = None

    def set_debug_callback(self, callback: Any) -> None:
        """Set the debug callback: callable(level, component, message)."""
        self._debug_callback = callback

    def _debug(self, level: str, message: str) -> None:
        if self._debug_callback:
            self._debug_callback(level, "History", message)

    @abstractmethod
    async def connect(self) -> None:
        """Open the backend and load the mirror."""

    @abstractmethod
    async def close(self) -> None:
        """Close the backend gracefully."""

    @abstractmethod
    async def upsert(self, title: str, conversation: Conversation) -> Conversation:
        """Insert or replace the record at ``title``.

        Returns:
            The stored conversation (its title set to ``title``)

        Raises:
            PersistenceError: If the write fails; the mirror is unchanged
        """

    @abstractmethod
    async def delete(self, title: str) -> None:
        """Remove the record at ``title``. Does nothing if it is absent.

        Raises:
            PersistenceError: If the write fails; the mirror is unchanged
        """

    @abstractmethod
    async def rename(self, old_title: str, new_title: str) -> Conversation:
        """Move a record to a new title, all-or-nothing.

        Returns:
            The conversation under its new title

        Raises:
            ConflictError: If ``new_title`` names a different existing record
            ConversationNotFoundError: If ``old_title`` does not exist
            PersistenceError: If the write fails; nothing is changed
        """

    async def list_descending_by_time(self) -> list[tuple[str, Conversation]]:
        """All (title, conversation) pairs, most recent first.

        Served from the mirror, which only ever holds committed state.
        Equal timestamps are ordered by write recency.
        """
        newest_first = list(reversed(self._mirror.items()))
        return sorted(newest_first, key=lambda item: item[1].created_at, reverse=True)

    @property
    @abstractmethod
    def backend_type(self) -> str:
        """Get the backend type identifier."""

    def get(self, title: str) -> Conversation | None:
        """Mirror lookup; None if the title is unknown."""
        return self._mirror.get(title)

    def require(self, title: str) -> Conversation:
        """Mirror lookup that raises ConversationNotFoundError."""
        conversation = self._mirror.get(title)
        if conversation is None:
            raise ConversationNotFoundError(title)
        return conversation

    def __contains__(self, title: object) -> bool:
        return title in self._mirror

    def __len__(self) -> int:
        return len(self._mirror)

    async def __aenter__(self) -> "HistoryStore":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
