"""Provider factory functions for CLI.

Centralizes creation of settings, the completion provider, the history
store and the session controller. Hides configuration details from
command implementations.
"""

import contextlib
from collections.abc import AsyncIterator

import typer
from rich.console import Console
from rich.markup import escape

from ..config import Settings
from ..errors import ConfigError
from ..history import ExclusiveLock, HistoryStore, create_history_store
from ..llm import LLMProvider, create_llm_provider
from ..session import SessionCallback, SessionController

# Default console for output
_console = Console()


def get_settings(console: Console | None = None, **overrides) -> Settings:
    """Load settings from the environment, applying command-line overrides.

    Args:
        console: Optional Rich console for output
        **overrides: Settings fields to override (None values are ignored)

    Returns:
        Resolved settings

    Raises:
        typer.Exit: With code 1 if the configuration is missing or invalid
    """
    con = console or _console
    try:
        return Settings.from_env().with_overrides(**overrides)
    except ConfigError as e:
        con.print(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(code=1) from e


def get_llm(settings: Settings) -> LLMProvider:
    """Create the completion provider for the configured model."""
    return create_llm_provider(
        "openai",
        api_key=settings.api_key,
        model=settings.model,
        base_url=settings.base_url,
    )


def get_history_store(settings: Settings, memory: bool = False) -> HistoryStore:
    """Create the history store (not yet connected).

    Args:
        settings: Resolved settings
        memory: Use a session-only store instead of the database
    """
    if memory:
        return create_history_store("memory")
    return create_history_store("sqlite", path=settings.db_path)


@contextlib.asynccontextmanager
async def open_history(settings: Settings, memory: bool = False) -> AsyncIterator[HistoryStore]:
    """Lock the history file and connect the store.

    The store is closed before the lock is released. A session-only store
    takes no lock.

    Raises:
        AlreadyRunningError: If another process holds the history lock
        ConfigError: If the data directory cannot be created
        PersistenceError: If the database cannot be opened
    """
    store = get_history_store(settings, memory=memory)
    if memory:
        async with store:
            yield store
        return

    settings.ensure_data_dir()
    lock = ExclusiveLock(
        settings.db_path,
        timeout=settings.lock_timeout,
        interval=settings.lock_interval,
    )
    async with lock, store:
        yield store


def build_controller(
    settings: Settings,
    llm: LLMProvider,
    store: HistoryStore,
    callback: SessionCallback | None = None,
) -> SessionController:
    """Wire a session controller from resolved settings."""
    return SessionController(
        llm=llm,
        store=store,
        callback=callback,
        model=settings.model,
        max_tokens=settings.max_tokens,
        system_message=settings.system_message,
    )
