"""Conversation history module for termchat.

Provides the persistent, exclusive title -> conversation store.
"""

from .base import HistoryStore
from .factory import create_history_store
from .in_memory import InMemoryHistoryStore
from .lock import ExclusiveLock
from .models import Conversation, ConversationRecord, strip_system
from .sqlite import SQLiteHistoryStore

__all__ = [
    "Conversation",
    "ConversationRecord",
    "ExclusiveLock",
    "HistoryStore",
    "InMemoryHistoryStore",
    "SQLiteHistoryStore",
    "create_history_store",
    "strip_system",
]
