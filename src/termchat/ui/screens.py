"""Modal screens for the TUI.

This module hides the design decisions about:
- Dialog appearance (CSS, layout)
- Button styling and variants
- Keyboard shortcuts for dialogs

To change how the rename and delete dialogs look, modify only this file.
"""

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Static

from .config import RENAME_MAX_LENGTH

DIALOG_CSS = """
.dialog {
    width: 60;
    height: auto;
    max-height: 20;
    border: tall $accent;
    background: $surface;
    padding: 1 2;
}

.dialog-title {
    width: 100%;
    text-align: center;
    text-style: bold;
    color: $accent;
    padding: 0 0 1 0;
    border-bottom: solid $border;
    margin-bottom: 1;
}

.dialog-prompt {
    width: 100%;
    text-align: center;
    padding: 1 2;
    background: $panel;
    border: round $border;
    margin-bottom: 1;
}

.dialog-buttons {
    width: 100%;
    height: 3;
    align: center middle;
    margin-top: 1;
}

.dialog-buttons Button {
    margin: 0 1;
    min-width: 10;
}
"""


class RenameScreen(ModalScreen[str | None]):
    """Asks for a new conversation title.

    Dismisses with the entered title, or None when cancelled.
    """

    CSS = DIALOG_CSS + """
    RenameScreen {
        align: center middle;
        background: $background 70%;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel", show=False),
    ]

    def __init__(self, current_title: str) -> None:
        super().__init__()
        self._current_title = current_title

    def compose(self) -> ComposeResult:
        with Vertical(classes="dialog"):
            yield Static("Rename Conversation", classes="dialog-title")
            yield Input(
                value=self._current_title[:RENAME_MAX_LENGTH],
                max_length=RENAME_MAX_LENGTH,
                id="rename-input",
            )
            with Horizontal(classes="dialog-buttons"):
                yield Button("Save", id="btn-save", variant="success")
                yield Button("Cancel", id="btn-cancel", variant="error")

    def on_mount(self) -> None:
        self.query_one("#rename-input", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        self.dismiss(event.value)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "btn-save":
            self.dismiss(self.query_one("#rename-input", Input).value)
        else:
            self.dismiss(None)

    def action_cancel(self) -> None:
        self.dismiss(None)


class ConfirmDeleteScreen(ModalScreen[bool]):
    """Yes/No confirmation before deleting a conversation."""

    CSS = DIALOG_CSS + """
    ConfirmDeleteScreen {
        align: center middle;
        background: $background 70%;
    }
    """

    BINDINGS = [
        Binding("y", "confirm_yes", "Yes", show=False),
        Binding("n", "confirm_no", "No", show=False),
        Binding("escape", "confirm_no", "Cancel", show=False),
    ]

    def __init__(self, conversation_title: str) -> None:
        super().__init__()
        self._conversation_title = conversation_title

    def compose(self) -> ComposeResult:
        with Vertical(classes="dialog"):
            yield Static("Delete Conversation", classes="dialog-title")
            yield Static(
                f"Delete '{self._conversation_title}'? This cannot be undone.",
                classes="dialog-prompt",
                markup=False,
            )
            with Horizontal(classes="dialog-buttons"):
                yield Button("Yes", id="btn-yes", variant="success")
                yield Button("No", id="btn-no", variant="error")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "btn-yes")

    def action_confirm_yes(self) -> None:
        self.dismiss(True)

    def action_confirm_no(self) -> None:
        self.dismiss(False)
