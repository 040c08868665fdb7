"""Main Textual TUI application.

Orchestrates the UI components and forwards operator actions to the
session controller.
"""

import asyncio

from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.widgets import Footer, Header, Input, ListView, TextArea

from ..errors import UnsupportedModelError
from ..session import SessionController
from .callbacks import TUISessionCallback
from .config import LogLevel
from .screens import ConfirmDeleteScreen, RenameScreen
from .styles import APP_CSS
from .themes import TERMCHAT_DARK
from .widgets import ConversationView, DebugPanel, HistoryList, QuestionInput, SearchInput, StatusBar


class TermchatApp(App):
    """Textual TUI for chatting with the completion service."""

    CSS = APP_CSS
    TITLE = "termchat"

    BINDINGS = [
        Binding("ctrl+c", "quit", "Quit"),
        Binding("f1", "new_chat", "New Chat"),
        Binding("f2", "focus_history", "History"),
        Binding("f3", "focus_conversation", "Conversation"),
        Binding("f4", "focus_question", "Question"),
        Binding("ctrl+s", "focus_search", "Search"),
        Binding("ctrl+r", "copy_last_response", "Copy Response"),
        Binding("ctrl+d", "toggle_debug", "Debug"),
    ]

    def __init__(
        self,
        controller: SessionController,
        log_level: str | None = None,
    ) -> None:
        super().__init__()
        self._controller = controller
        self._log_level = log_level
        self._callback: TUISessionCallback | None = None

    @property
    def controller(self) -> SessionController:
        return self._controller

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)

        with Vertical(id="history-column"):
            yield SearchInput(id="search-input")
            yield HistoryList(id="history-list")

        with Vertical(id="conversation-column"):
            yield ConversationView(id="conversation")
            yield QuestionInput(id="question-bar")

        with Vertical(id="bottom-bar"):
            yield StatusBar(self._controller.model, id="status")
            yield DebugPanel(id="debug-panel")

        yield Footer()

    def on_mount(self) -> None:
        """Called when app is mounted."""
        self.register_theme(TERMCHAT_DARK)
        self.theme = "termchat-dark"

        log_panel = self.query_one("#debug-panel", DebugPanel)
        if self._log_level is not None:
            log_panel.log_level = LogLevel.from_string(self._log_level)
            log_panel.show()
            log_panel.info("TUI", f"Log panel enabled with level: {self._log_level.upper()}")

        def debug_callback(level: str, component: str, message: str) -> None:
            """Route debug messages to the log panel."""
            if level == "debug":
                log_panel.debug(component, message)
            elif level == "info":
                log_panel.info(component, message)
            elif level == "warning":
                log_panel.warning(component, message)
            elif level == "error":
                log_panel.error(component, message)

        self._callback = TUISessionCallback(
            conversation=self.query_one("#conversation", ConversationView),
            history=self.query_one("#history-list", HistoryList),
            search=self.query_one("#search-input", SearchInput),
            question=self.query_one("#question-bar", QuestionInput),
            status=self.query_one("#status", StatusBar),
            filter_titles=self._controller.search,
            app=self,
        )
        self._controller.set_callback(self._callback)
        self._controller.set_debug_callback(debug_callback)

        try:
            self.sub_title = f"{self._controller.model} | budget {self._controller.budget} tokens"
        except UnsupportedModelError as e:
            self.sub_title = self._controller.model
            log_panel.warning("TUI", str(e))
        self.query_one("#question-bar", QuestionInput).focus_input()
        self._load()

    def _log(self, level: str, message: str) -> None:
        panel = self.query_one("#debug-panel", DebugPanel)
        getattr(panel, level)("TUI", message)

    @work(exclusive=True, group="history")
    async def _load(self) -> None:
        titles = await self._controller.load()
        self._log("info", f"Loaded {len(titles)} conversation(s)")

    # ------------------------------------------------------------------
    # Question input
    # ------------------------------------------------------------------

    def on_text_area_changed(self, event: TextArea.Changed) -> None:
        if event.text_area.id == "question-input" and event.text_area.text:
            self._controller.begin_composing()

    def on_question_input_submitted(self, event: QuestionInput.Submitted) -> None:
        """Handle question submission."""
        if self._controller.busy:
            self.notify("Waiting for the current reply", severity="warning", timeout=2)
            return
        self._submit(event.value)

    @work(exclusive=True, group="exchange")
    async def _submit(self, content: str) -> None:
        """Run one exchange as a background async worker."""
        self._log("debug", f"Submitting: '{content[:50]}'")
        try:
            conversation = await self._controller.submit(content)
        except asyncio.CancelledError:
            self.notify("Cancelled", severity="warning", timeout=2)
            raise
        if conversation is not None:
            self._log("info", f"Exchange committed to '{conversation.title}'")

    # ------------------------------------------------------------------
    # History list and search
    # ------------------------------------------------------------------

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id != "search-input":
            return
        history = self.query_one("#history-list", HistoryList)
        history.set_titles(self._controller.search(event.value), self._controller.current_title)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "search-input":
            self.action_focus_history()

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        title = getattr(event.item, "conversation_title", None)
        if title is None:
            return
        conversation = self._controller.select(title)
        if conversation is None:
            self.notify("Finish the current exchange first", severity="warning", timeout=2)
            return

        self._callback.set_current_title(title)
        view = self.query_one("#conversation", ConversationView)
        view.show_transcript(
            [(message.role, message.content) for message in conversation.messages],
            subtitle=title,
        )
        self.query_one("#status", StatusBar).update_status(
            title=title, messages=len(conversation.messages)
        )
        self.action_focus_question()

    def on_history_list_rename_requested(self, event: HistoryList.RenameRequested) -> None:
        old_title = event.conversation_title

        def _on_dismiss(new_title: str | None) -> None:
            if new_title is not None:
                self._rename(old_title, new_title)

        self.push_screen(RenameScreen(old_title), _on_dismiss)

    def on_history_list_delete_requested(self, event: HistoryList.DeleteRequested) -> None:
        title = event.conversation_title

        def _on_dismiss(confirmed: bool | None) -> None:
            if confirmed:
                self._delete(title)

        self.push_screen(ConfirmDeleteScreen(title), _on_dismiss)

    # Writes are never cancelled by a newer worker; the store serializes them
    @work(group="history-write")
    async def _rename(self, old_title: str, new_title: str) -> None:
        renamed = await self._controller.rename(old_title, new_title)
        if renamed is None:
            return
        if self._controller.current_title == renamed.title:
            self._callback.set_current_title(renamed.title)
            self.query_one("#conversation", ConversationView).border_subtitle = renamed.title
            self.query_one("#status", StatusBar).update_status(title=renamed.title)
        self.notify(f"Renamed to '{renamed.title}'", timeout=2)

    @work(group="history-write")
    async def _delete(self, title: str) -> None:
        if not await self._controller.delete(title):
            return
        if self._controller.conversation is None:
            self._callback.set_current_title(None)
            self.query_one("#conversation", ConversationView).clear_conversation()
        self.notify(f"Deleted '{title}'", timeout=2)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def action_new_chat(self) -> None:
        """Start a new conversation."""
        if not self._controller.new_chat():
            self.notify("Finish the current exchange first", severity="warning", timeout=2)
            return
        self.query_one("#conversation", ConversationView).clear_conversation()
        self.action_focus_question()

    def action_focus_history(self) -> None:
        self.query_one("#history-list", HistoryList).focus()

    def action_focus_conversation(self) -> None:
        self.query_one("#conversation", ConversationView).focus()

    def action_focus_question(self) -> None:
        self.query_one("#question-bar", QuestionInput).focus_input()

    def action_focus_search(self) -> None:
        self.query_one("#search-input", SearchInput).focus()

    def action_toggle_debug(self) -> None:
        """Toggle the log panel visibility."""
        log_panel = self.query_one("#debug-panel", DebugPanel)
        is_visible = log_panel.toggle()
        self.notify(f"Log panel {'shown' if is_visible else 'hidden'}", timeout=2)

    def action_copy_last_response(self) -> None:
        """Copy last assistant response to clipboard."""
        response = self.query_one("#conversation", ConversationView).get_last_response()
        if response:
            self.copy_to_clipboard(response)
            self.notify("Response copied")
        else:
            self.notify("No response to copy", severity="warning")


async def run_textual_tui(
    controller: SessionController,
    log_level: str | None = None,
) -> None:
    """Run the Textual TUI.

    Args:
        controller: Session controller wired to a connected history store
        log_level: Log level for panel (debug/info/warning/error), None to hide
    """
    app = TermchatApp(controller=controller, log_level=log_level)
    try:
        await app.run_async()
    except (KeyboardInterrupt, asyncio.CancelledError):
        pass
    finally:
        await controller.close()
