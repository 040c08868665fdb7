"""In-memory history backend.

Simple dict-based storage for session-only history.
Data is lost when the application exits.
"""

from ..errors import ConflictError
from .base import HistoryStore
from .models import Conversation


class InMemoryHistoryStore(HistoryStore):
    """In-memory history store (session-only).

    The mirror is the store.
    """

    async def connect(self) -> None:
        """Initialize memory (no-op for in-memory)."""
        pass

    async def close(self) -> None:
        """Close memory (no-op for in-memory)."""
        pass

    async def upsert(self, title: str, conversation: Conversation) -> Conversation:
        stored = conversation if conversation.title == title else conversation.retitled(title)
        self._mirror.pop(title, None)
        self._mirror[title] = stored
        return stored

    async def delete(self, title: str) -> None:
        self._mirror.pop(title, None)

    async def rename(self, old_title: str, new_title: str) -> Conversation:
        conversation = self.require(old_title)
        if new_title == old_title:
            return conversation
        if new_title in self._mirror:
            raise ConflictError(new_title)

        renamed = conversation.retitled(new_title)
        self._mirror[new_title] = renamed
        del self._mirror[old_title]
        return renamed

    @property
    def backend_type(self) -> str:
        return "memory"
