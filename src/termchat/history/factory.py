"""Factory for creating history store backends."""

from typing import Any

from .base import HistoryStore


def create_history_store(
    backend: str = "sqlite",
    **kwargs: Any
) -> HistoryStore:
    """Create a history store backend.

    Args:
        backend: Backend type ("sqlite" or "memory")
        **kwargs: Backend-specific configuration
            For sqlite:
                - path: str | Path (database file, also the lock file)

    Returns:
        HistoryStore instance (not yet connected)

    Raises:
        ValueError: If backend type is not supported
    """
    if backend == "memory":
        from .in_memory import InMemoryHistoryStore
        return InMemoryHistoryStore()

    elif backend == "sqlite":
        from .sqlite import SQLiteHistoryStore
        return SQLiteHistoryStore(**kwargs)

    raise ValueError(
        f"Unsupported history backend: {backend}. "
        f"Supported backends: memory, sqlite"
    )
