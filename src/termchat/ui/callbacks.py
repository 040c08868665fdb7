"""Session callback for the TUI.

Hides how the TUI receives updates from the session controller.
Updates are marshalled onto the app thread when they arrive from
elsewhere.
"""

import threading
from typing import TYPE_CHECKING, Any

from ..llm.models import ROLE_SYSTEM
from ..session import SessionCallback, SessionState

if TYPE_CHECKING:
    from textual.app import App

    from ..errors import TermchatError
    from ..history.models import Conversation
    from .widgets import ConversationView, HistoryList, QuestionInput, SearchInput, StatusBar


class TUISessionCallback(SessionCallback):
    """Renders session events into the TUI widgets."""

    def __init__(
        self,
        conversation: "ConversationView",
        history: "HistoryList",
        search: "SearchInput",
        question: "QuestionInput",
        status: "StatusBar",
        filter_titles: Any,
        app: "App | None" = None,
    ) -> None:
        self.conversation = conversation
        self.history = history
        self.search = search
        self.question = question
        self.status = status
        self.filter_titles = filter_titles
        self.app = app
        self._current_title: str | None = None

    def _call_thread_safe(self, func: Any, *args: Any, **kwargs: Any) -> None:
        """Call a function in a thread-safe manner for UI updates."""
        if self.app is not None and self.app._thread_id != threading.get_ident():
            self.app.call_from_thread(func, *args, **kwargs)
        else:
            func(*args, **kwargs)

    def on_state_changed(self, state: SessionState) -> None:
        self._call_thread_safe(self.status.update_status, state=state.value)
        self._call_thread_safe(self.question.set_busy, not state.accepts_input)
        if state is SessionState.IDLE:
            self._current_title = None
            self._call_thread_safe(self.status.reset_conversation)

    def on_user_message(self, content: str) -> None:
        self._call_thread_safe(self.conversation.add_message, "user", content)
        self._call_thread_safe(self.conversation.begin_reply)

    def on_fragment(self, fragment: str) -> None:
        self._call_thread_safe(self.conversation.append_fragment, fragment)

    def on_transcript_cleared(self) -> None:
        self._call_thread_safe(self.conversation.clear_conversation, "Continued")

    def on_committed(self, conversation: "Conversation") -> None:
        self._current_title = conversation.title
        self._call_thread_safe(self.conversation.end_reply)
        self._call_thread_safe(setattr, self.conversation, "border_subtitle", conversation.title)
        messages = sum(1 for m in conversation.messages if m.role != ROLE_SYSTEM)
        self._call_thread_safe(
            self.status.update_status, title=conversation.title, messages=messages
        )
        self._call_thread_safe(
            self.history.set_titles, self.filter_titles(self.search.value), conversation.title
        )

    def on_titles_changed(self, titles: list[str]) -> None:
        self._call_thread_safe(
            self.history.set_titles, self.filter_titles(self.search.value), self._current_title
        )

    def on_error(self, error: "TermchatError") -> None:
        if self.conversation.streaming:
            self._call_thread_safe(self.conversation.end_reply)
        self._call_thread_safe(self.conversation.add_message, "error", str(error))
        if self.app is not None:
            self._call_thread_safe(
                self.app.notify, str(error)[:80], severity="error", timeout=5
            )

    def set_current_title(self, title: str | None) -> None:
        """Track the conversation opened from the history list."""
        self._current_title = title
