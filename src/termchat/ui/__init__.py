"""Terminal UI module for termchat.

Provides a Textual-based TUI driving the SessionController.

Module structure (each module hides a design decision):
- models.py: Data structures (transcript entries)
- widgets.py: Custom widgets (history list, conversation view, question input, log)
- styles.py: CSS styling (layout decisions)
- themes.py: Color palette
- screens.py: Modal dialogs (rename, delete confirmation)
- callbacks.py: Session integration (how the TUI receives updates)
- app.py: Application orchestration (user interaction flow)
"""

from .app import TermchatApp, run_textual_tui
from .callbacks import TUISessionCallback
from .config import LogLevel
from .models import TranscriptEntry
from .screens import ConfirmDeleteScreen, RenameScreen
from .widgets import ConversationView, DebugPanel, HistoryList, QuestionInput, StatusBar

__all__ = [
    "ConfirmDeleteScreen",
    "ConversationView",
    "DebugPanel",
    "HistoryList",
    "LogLevel",
    "QuestionInput",
    "RenameScreen",
    "StatusBar",
    "TUISessionCallback",
    "TermchatApp",
    "TranscriptEntry",
    "run_textual_tui",
]
