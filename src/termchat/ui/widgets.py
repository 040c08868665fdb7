"""Custom Textual widgets for the TUI.

Hides widget implementation details:
- History list navigation and key handling
- Question input history management
- Streaming reply rendering
- Status line formatting
- Log rendering and level filtering
"""

from datetime import datetime

from rich.text import Text
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.message import Message
from textual.widget import Widget
from textual.widgets import Button, Input, Label, ListItem, ListView, Markdown, RichLog, Static, TextArea

from .config import (
    ASSISTANT_LABEL,
    INPUT_HISTORY_MAX_SIZE,
    LOG_MAX_MESSAGE_LENGTH,
    LOG_TIMESTAMP_FORMAT,
    STREAM_BUFFER_THRESHOLD,
    USER_LABEL,
    LogLevel,
)
from .models import TranscriptEntry


class TitleItem(ListItem):
    """One conversation title in the history list."""

    def __init__(self, conversation_title: str, *args, **kwargs) -> None:
        super().__init__(Label(conversation_title), *args, **kwargs)
        self.conversation_title = conversation_title


class HistoryList(ListView):
    """Time-ordered conversation titles.

    j/k move the cursor, Enter opens, e renames and d deletes the
    highlighted conversation.
    """

    BORDER_TITLE = "History"

    BINDINGS = [
        Binding("j", "cursor_down", "Down", show=False),
        Binding("k", "cursor_up", "Up", show=False),
        Binding("e", "rename", "Rename"),
        Binding("d", "delete", "Delete"),
    ]

    class RenameRequested(Message):
        """Posted when the operator asks to rename a conversation."""

        def __init__(self, conversation_title: str) -> None:
            super().__init__()
            self.conversation_title = conversation_title

    class DeleteRequested(Message):
        """Posted when the operator asks to delete a conversation."""

        def __init__(self, conversation_title: str) -> None:
            super().__init__()
            self.conversation_title = conversation_title

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._titles: list[str] = []

    @property
    def titles(self) -> list[str]:
        return list(self._titles)

    def set_titles(self, titles: list[str], current: str | None = None) -> None:
        """Replace the listed titles, keeping the cursor on ``current`` if shown."""
        self._titles = list(titles)
        self.clear()
        self.extend(TitleItem(title) for title in self._titles)
        if current in self._titles:
            # Old items are removed asynchronously
            self.call_after_refresh(setattr, self, "index", self._titles.index(current))
        self.border_subtitle = f"{len(self._titles)}"

    @property
    def highlighted_title(self) -> str | None:
        item = self.highlighted_child
        if isinstance(item, TitleItem):
            return item.conversation_title
        return None

    def action_rename(self) -> None:
        title = self.highlighted_title
        if title is not None:
            self.post_message(self.RenameRequested(title))

    def action_delete(self) -> None:
        title = self.highlighted_title
        if title is not None:
            self.post_message(self.DeleteRequested(title))


class SearchInput(Input):
    """Title search box above the history list."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, placeholder="Search titles (Ctrl+S)", **kwargs)


class ConversationView(VerticalScroll):
    """Scrollable transcript of the active conversation.

    The streaming reply is buffered and flushed every few dozen
    characters, then re-rendered as Markdown once complete.
    """

    BORDER_TITLE = "Conversation"
    BORDER_SUBTITLE = "New chat"
    ALLOW_SELECT = True

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._entries: list[TranscriptEntry] = []
        self._reply: Static | None = None
        self._reply_text: list[str] = []
        self._pending: list[str] = []
        self._pending_chars = 0

    @property
    def entries(self) -> list[TranscriptEntry]:
        return list(self._entries)

    @property
    def streaming(self) -> bool:
        return self._reply is not None

    def clear_conversation(self, subtitle: str = "New chat") -> None:
        """Remove every rendered message."""
        self._entries.clear()
        self._reply = None
        self._reply_text = []
        self._pending = []
        self._pending_chars = 0
        self.remove_children()
        self.border_subtitle = subtitle

    def show_transcript(self, entries: list[tuple[str, str]], subtitle: str) -> None:
        """Render a stored conversation as (role, content) pairs."""
        self.clear_conversation(subtitle)
        for role, content in entries:
            self.add_message(role, content)
        self.scroll_end(animate=False)

    def add_message(self, role: str, content: str) -> None:
        entry = TranscriptEntry(role=role, content=content)
        self._entries.append(entry)
        self.mount(self._render_entry(entry))
        self.scroll_end(animate=False)

    def _render_entry(self, entry: TranscriptEntry) -> Vertical:
        timestamp = entry.timestamp.strftime("%H:%M:%S")
        if entry.role == "user":
            header = f"> {USER_LABEL} [{timestamp}]"
            body: Widget = Static(Text(entry.content), classes="message-content")
        elif entry.role == "error":
            header = f"! Error [{timestamp}]"
            body = Static(Text(entry.content), classes="message-content")
        else:
            header = f"< {ASSISTANT_LABEL} [{timestamp}]"
            body = Markdown(entry.content, classes="message-content")

        container = Vertical(classes=f"chat-message {entry.role}-message")
        container.compose_add_child(Static(header, classes="message-header"))
        container.compose_add_child(body)
        return container

    def begin_reply(self) -> None:
        """Open an empty assistant message for streamed fragments."""
        self._reply_text = []
        self._pending = []
        self._pending_chars = 0
        self._reply = Static("", classes="message-content streaming")
        container = Vertical(classes="chat-message assistant-message")
        container.compose_add_child(Static(f"< {ASSISTANT_LABEL}", classes="message-header"))
        container.compose_add_child(self._reply)
        self.mount(container)
        self.scroll_end(animate=False)

    def append_fragment(self, fragment: str) -> None:
        """Buffer a fragment, flushing on newlines or every few dozen characters."""
        if self._reply is None:
            self.begin_reply()
        self._pending.append(fragment)
        self._pending_chars += len(fragment)
        if self._pending_chars >= STREAM_BUFFER_THRESHOLD or "\n" in fragment:
            self._flush()

    def _flush(self) -> None:
        if not self._pending or self._reply is None:
            return
        self._reply_text.extend(self._pending)
        self._pending = []
        self._pending_chars = 0
        self._reply.update(Text("".join(self._reply_text)))
        self.scroll_end(animate=False)

    def end_reply(self) -> str:
        """Finish the streaming message and return its full text."""
        if self._reply is None:
            return ""
        self._flush()
        content = "".join(self._reply_text)
        reply, self._reply = self._reply, None
        if not content:
            if reply.parent is not None:
                reply.parent.remove()
            return ""
        self._entries.append(TranscriptEntry(role="assistant", content=content))
        if reply.parent is not None:
            reply.parent.mount(Markdown(content, classes="message-content"), after=reply)
            reply.remove()
        return content

    def get_last_response(self) -> str | None:
        """Get the last assistant response."""
        for entry in reversed(self._entries):
            if entry.role == "assistant":
                return entry.content
        return None


class QuestionInput(Horizontal):
    """Question input with TextArea and Send button.

    Ctrl+J submits (terminals do not report modifiers on Enter). Up/Down at
    the start or end of the text walk the question history.
    """

    class Submitted(Message):
        """Message sent when user submits input."""

        def __init__(self, value: str) -> None:
            super().__init__()
            self.value = value

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._history: list[str] = []
        self._history_index: int = -1

    def compose(self):
        text_area = TextArea(id="question-input", show_line_numbers=False)
        text_area.cursor_blink = False
        yield text_area
        yield Button("Send", id="send-btn", variant="success").with_tooltip(
            "Submit question (Ctrl+J)"
        )

    def on_mount(self) -> None:
        self.query_one("#question-input", TextArea).highlight_cursor_line = False

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "send-btn":
            event.stop()
            self._submit()

    def on_key(self, event) -> None:
        if event.key == "ctrl+j":
            self._submit()
            event.prevent_default()
            event.stop()
        elif event.key == "up" and self._is_cursor_at_start():
            self._navigate_history(-1)
            event.prevent_default()
            event.stop()
        elif event.key == "down" and self._is_cursor_at_end():
            self._navigate_history(1)
            event.prevent_default()
            event.stop()

    def _is_cursor_at_start(self) -> bool:
        text_area = self.query_one("#question-input", TextArea)
        return text_area.cursor_location == (0, 0)

    def _is_cursor_at_end(self) -> bool:
        text_area = self.query_one("#question-input", TextArea)
        lines = text_area.text.split("\n")
        return text_area.cursor_location == (len(lines) - 1, len(lines[-1]))

    def _navigate_history(self, direction: int) -> None:
        if not self._history:
            return
        text_area = self.query_one("#question-input", TextArea)
        if direction < 0:
            if self._history_index == -1:
                self._history_index = len(self._history) - 1
            elif self._history_index > 0:
                self._history_index -= 1
        else:
            if self._history_index < len(self._history) - 1:
                self._history_index += 1
            else:
                self._history_index = -1
                text_area.text = ""
                return
        text_area.text = self._history[self._history_index]

    def _submit(self) -> None:
        if self.disabled:
            return
        text_area = self.query_one("#question-input", TextArea)
        value = text_area.text.strip()
        if not value:
            return
        if not self._history or self._history[-1] != value:
            self._history.append(value)
            del self._history[:-INPUT_HISTORY_MAX_SIZE]
        self._history_index = -1
        text_area.text = ""
        self.post_message(self.Submitted(value))

    def set_busy(self, busy: bool) -> None:
        """Disable input while an exchange is in flight."""
        self.disabled = busy
        self.border_subtitle = "Waiting for reply..." if busy else ""

    def focus_input(self) -> None:
        """Focus the text input."""
        self.query_one("#question-input", TextArea).focus()


class StatusBar(Static):
    """One-line summary: model, session state and active conversation."""

    def __init__(self, model: str, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._model = model
        self._state = "idle"
        self._title: str | None = None
        self._messages = 0

    @property
    def current_title(self) -> str | None:
        return self._title

    def on_mount(self) -> None:
        self._update_display()

    def update_status(
        self,
        state: str | None = None,
        title: str | None = None,
        messages: int | None = None,
    ) -> None:
        """Update the fields that are given."""
        if state is not None:
            self._state = state
        if title is not None:
            self._title = title or None
        if messages is not None:
            self._messages = messages
        self._update_display()

    def reset_conversation(self) -> None:
        self._title = None
        self._messages = 0
        self._update_display()

    def _update_display(self) -> None:
        state_colors = {
            "idle": "dim",
            "composing": "green",
            "dispatching": "yellow",
            "streaming": "cyan",
            "committing": "magenta",
        }
        color = state_colors.get(self._state, "white")
        parts = [
            f"[bold cyan]Model:[/] {self._model}",
            f"[bold]State:[/] [{color}]{self._state}[/]",
            f"[bold yellow]Chat:[/] {self._title or '[dim]new[/]'}",
            f"[bold magenta]Messages:[/] {self._messages}",
        ]
        self.update("  ".join(parts))


class DebugPanel(RichLog):
    """Trace panel fed by the session debug callback.

    Lines below the panel threshold are dropped. The panel starts hidden;
    --log-level shows it at startup and Ctrl+D toggles it.
    """

    BORDER_TITLE = "Log"
    BORDER_SUBTITLE = "Trace log"

    COMPONENT_COLORS = {
        "TUI": "cyan",
        "Session": "green",
        "Stream": "magenta",
        "Title": "bright_yellow",
        "History": "bright_green",
        "Search": "bright_magenta",
    }

    LEVEL_COLORS = {
        LogLevel.DEBUG: "dim white",
        LogLevel.INFO: "cyan",
        LogLevel.WARNING: "yellow",
        LogLevel.ERROR: "red",
    }

    def __init__(self, *args, log_level: int = LogLevel.DEBUG, **kwargs) -> None:
        super().__init__(
            *args,
            markup=True,
            highlight=False,
            auto_scroll=True,
            wrap=False,
            **kwargs
        )
        self._log_level = log_level

    @property
    def log_level(self) -> int:
        """Current log level threshold."""
        return self._log_level

    @log_level.setter
    def log_level(self, level: int) -> None:
        self._log_level = level
        self._update_subtitle()

    def _update_subtitle(self) -> None:
        if self.display:
            self.border_subtitle = f"Level: {LogLevel(self._log_level).name}"
        else:
            self.border_subtitle = "Hidden"

    def on_mount(self) -> None:
        """Hide by default."""
        self.display = False

    def log(
        self,
        component: str,
        message: str,
        level: int = LogLevel.DEBUG
    ) -> None:
        """Add a log entry if it meets the current level threshold.

        Args:
            component: Component name (TUI, Session, Stream, Title, History)
            message: Log message
            level: Log level (LogLevel.DEBUG, INFO, WARNING, ERROR)
        """
        if level < self._log_level:
            return

        if len(message) > LOG_MAX_MESSAGE_LENGTH:
            message = message[:LOG_MAX_MESSAGE_LENGTH] + "..."

        timestamp = datetime.now().strftime(LOG_TIMESTAMP_FORMAT)
        level_color = self.LEVEL_COLORS.get(level, "white")
        comp_color = self.COMPONENT_COLORS.get(component, "white")

        line = Text.from_markup(
            f"[dim]{timestamp}[/] "
            f"[{level_color}]{LogLevel(level).name:<7}[/] "
            f"[{comp_color}]\\[{component}][/] "
        )
        line.append(message)
        self.write(line)

    def debug(self, component: str, message: str) -> None:
        """Log a DEBUG level message."""
        self.log(component, message, LogLevel.DEBUG)

    def info(self, component: str, message: str) -> None:
        """Log an INFO level message."""
        self.log(component, message, LogLevel.INFO)

    def warning(self, component: str, message: str) -> None:
        """Log a WARNING level message."""
        self.log(component, message, LogLevel.WARNING)

    def error(self, component: str, message: str) -> None:
        """Log an ERROR level message."""
        self.log(component, message, LogLevel.ERROR)

    def show(self) -> None:
        """Show the log panel."""
        self.display = True
        self._update_subtitle()

    def hide(self) -> None:
        """Hide the log panel."""
        self.display = False
        self.border_subtitle = "Hidden"

    def toggle(self) -> bool:
        """Toggle visibility. Returns new state."""
        if self.display:
            self.hide()
            return False
        self.show()
        return True
