"""Main CLI application using Typer."""
import asyncio
from collections.abc import Coroutine
from datetime import datetime
from typing import Any

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..errors import AlreadyRunningError, TermchatError
from ..history.models import Conversation
from ..llm.models import ROLE_USER
from ..session import SessionCallback
from ..ui.config import LogLevel
from .providers import build_controller, get_llm, get_settings, open_history

# Load environment variables
load_dotenv()

# Create Typer app
app = typer.Typer(
    name="termchat",
    help="Terminal chat sessions with persistent, searchable history",
    no_args_is_help=True,
    add_completion=True,
)

# Console for rich output
console = Console()

ALREADY_RUNNING_MESSAGE = "Another process is already running."


def _run(coro: Coroutine[Any, Any, None]) -> None:
    """Run a command coroutine, mapping termchat errors to exit codes."""
    try:
        asyncio.run(coro)
    except AlreadyRunningError:
        console.print(ALREADY_RUNNING_MESSAGE)
        raise typer.Exit(code=0) from None
    except TermchatError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(code=1) from e


def _format_time(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d %H:%M")


def _console_debug(log_level: str | None):
    """Debug callback printing to the console at or above ``log_level``."""
    if log_level is None:
        return None
    threshold = LogLevel.from_string(log_level)

    def debug_callback(level: str, component: str, message: str) -> None:
        numeric = LogLevel.from_string(level)
        if numeric >= threshold:
            console.print(f"[dim]{numeric.name:<7} \\[{component}] {escape(message)}[/dim]", highlight=False)

    return debug_callback


class ConsoleSessionCallback(SessionCallback):
    """Streams session output to the console."""

    def __init__(self, out: Console) -> None:
        self.out = out

    def on_transcript_cleared(self) -> None:
        self.out.print("[yellow]Token limit reached; continuing in a new conversation[/yellow]")

    def on_fragment(self, fragment: str) -> None:
        self.out.print(fragment, end="", markup=False, highlight=False, soft_wrap=True)

    def on_committed(self, conversation: Conversation) -> None:
        self.out.print()
        self.out.print(f"[dim]Saved as '{escape(conversation.title)}'[/dim]", highlight=False)

    def on_error(self, error: TermchatError) -> None:
        self.out.print()
        self.out.print(f"[red]{escape(str(error))}[/red]", highlight=False)


@app.command(name="tui")
def tui_command(
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Show log panel with level: debug (all), info, warning, or error"
    ),
    model: str | None = typer.Option(
        None,
        "--model",
        "-m",
        help="Chat model (overrides TERMCHAT_MODEL)"
    ),
    memory: bool = typer.Option(
        False,
        "--memory",
        help="Session-only history (nothing is written to disk)"
    ),
):
    """Launch the interactive chat TUI."""
    settings = get_settings(console, model=model)

    async def _tui():
        from ..ui import run_textual_tui

        llm = get_llm(settings)
        try:
            async with open_history(settings, memory=memory) as store:
                controller = build_controller(settings, llm, store)
                await run_textual_tui(controller, log_level=log_level)
        finally:
            await llm.close()
            console.print("\n[dim]Goodbye![/dim]")

    try:
        _run(_tui())
    except KeyboardInterrupt:
        pass


@app.command(name="list")
def list_command():
    """List conversations, most recently active first."""
    settings = get_settings(console)

    async def _list():
        async with open_history(settings) as store:
            conversations = await store.list_descending_by_time()

        if not conversations:
            console.print("[yellow]No conversations yet[/yellow]")
            return

        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("Title", style="cyan")
        table.add_column("Messages", style="dim", justify="right", width=8)
        table.add_column("Updated", style="green", width=16)

        for title, conversation in conversations:
            table.add_row(title, str(len(conversation.messages)), _format_time(conversation.created_at))

        console.print(table)

    _run(_list())


@app.command()
def show(
    title: str = typer.Argument(..., help="Conversation title"),
):
    """Print a stored conversation."""
    settings = get_settings(console)

    async def _show():
        async with open_history(settings) as store:
            conversation = store.require(title)

        console.print(f"[bold]{escape(conversation.title)}[/bold] [dim]({_format_time(conversation.created_at)})[/dim]\n", highlight=False)
        for message in conversation.messages:
            if message.role == ROLE_USER:
                console.print(Panel(message.content, title="You", title_align="left", border_style="cyan"))
            else:
                console.print(Panel(Markdown(message.content), title="ChatGPT", title_align="left", border_style="magenta"))

    _run(_show())


@app.command()
def search(
    query: str = typer.Argument(..., help="Search query"),
    limit: int = typer.Option(
        10,
        "--limit",
        "-l",
        help="Maximum number of results"
    ),
):
    """Fuzzy search over conversation titles."""
    settings = get_settings(console)

    async def _search():
        from ..search import SearchIndex

        if not query.strip():
            console.print("[red]Error: search query must not be empty[/red]")
            raise typer.Exit(code=1)

        async with open_history(settings) as store:
            titles = [title for title, _ in await store.list_descending_by_time()]

        index = SearchIndex(titles)
        hits = index.hits(query)[:limit]
        if not hits:
            console.print("[yellow]No results found[/yellow]")
            return

        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("Rank", style="dim", width=4)
        table.add_column("Title", style="cyan")
        table.add_column("Match", style="yellow", width=10)

        for i, hit in enumerate(hits, 1):
            table.add_row(str(i), titles[hit.index], hit.kind.value)

        console.print(table)

    _run(_search())


@app.command()
def rename(
    old_title: str = typer.Argument(..., help="Current title"),
    new_title: str = typer.Argument(..., help="New title"),
):
    """Rename a conversation."""
    settings = get_settings(console)

    async def _rename():
        new = new_title.strip()
        if not new:
            console.print("[red]Error: the new title must not be empty[/red]")
            raise typer.Exit(code=1)

        async with open_history(settings) as store:
            renamed = await store.rename(old_title, new)
        console.print(f"[green]Renamed '{escape(old_title)}' to '{escape(renamed.title)}'[/green]", highlight=False)

    _run(_rename())


@app.command()
def delete(
    title: str = typer.Argument(..., help="Conversation title"),
    yes: bool = typer.Option(
        False,
        "--yes",
        "-y",
        help="Skip confirmation prompt"
    ),
):
    """Delete a conversation."""
    settings = get_settings(console)

    async def _delete():
        async with open_history(settings) as store:
            store.require(title)
            if not yes and not typer.confirm(f"Delete '{title}'?"):
                console.print("[dim]Aborted.[/dim]")
                return
            await store.delete(title)
        console.print(f"[green]Deleted '{escape(title)}'[/green]", highlight=False)

    _run(_delete())


@app.command()
def ask(
    question: str = typer.Argument(..., help="Question to send"),
    title: str | None = typer.Option(
        None,
        "--title",
        "-t",
        help="Continue this conversation instead of starting a new one"
    ),
    model: str | None = typer.Option(
        None,
        "--model",
        "-m",
        help="Chat model (overrides TERMCHAT_MODEL)"
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Print logs at or above this level: debug, info, warning, or error"
    ),
):
    """Run a single exchange, streaming the reply to stdout."""
    settings = get_settings(console, model=model)

    async def _ask():
        llm = get_llm(settings)
        try:
            async with open_history(settings) as store:
                controller = build_controller(
                    settings, llm, store, callback=ConsoleSessionCallback(console)
                )
                debug_callback = _console_debug(log_level)
                if debug_callback is not None:
                    controller.set_debug_callback(debug_callback)

                await controller.load()
                if title is not None and controller.select(title) is None:
                    console.print(f"[red]Error: no conversation titled '{escape(title)}'[/red]")
                    raise typer.Exit(code=1)

                conversation = await controller.submit(question)
                await controller.close()
        finally:
            await llm.close()

        if conversation is None:
            raise typer.Exit(code=1)

    _run(_ask())


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
