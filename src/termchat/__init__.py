"""termchat: terminal chat sessions on top of an LLM completion service.

Conversations stream into a TUI, are titled automatically, split when they
outgrow the model's context window, and persist in a local, exclusively
locked history that supports fuzzy title search.
"""

from .config import Settings
from .errors import (
    AlreadyRunningError,
    ConfigError,
    ConflictError,
    ConversationNotFoundError,
    NetworkError,
    PersistenceError,
    ServiceError,
    TermchatError,
    UnsupportedModelError,
)
from .history import Conversation, HistoryStore, create_history_store
from .llm import ChatMessage, create_llm_provider
from .search import SearchIndex
from .session import SessionCallback, SessionController, SessionState
from .titles import TitleResolver, derive_next_title
from .tokens import TokenCounter

__version__ = "0.1.0"

__all__ = [
    "AlreadyRunningError",
    "ChatMessage",
    "ConfigError",
    "ConflictError",
    "Conversation",
    "ConversationNotFoundError",
    "HistoryStore",
    "NetworkError",
    "PersistenceError",
    "SearchIndex",
    "ServiceError",
    "SessionCallback",
    "SessionController",
    "SessionState",
    "Settings",
    "TermchatError",
    "TitleResolver",
    "TokenCounter",
    "UnsupportedModelError",
    "create_history_store",
    "create_llm_provider",
    "derive_next_title",
    "__version__",
]
