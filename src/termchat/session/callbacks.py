"""Callback interface between the session controller and a presentation layer.

Hides how a front end learns about session progress. The controller calls
these hooks on its own task, in order; the default implementation ignores
everything so front ends override only what they render.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..errors import TermchatError
    from ..history.models import Conversation
    from .models import SessionState


class SessionCallback:
    """No-op session event handler."""

    def on_state_changed(self, state: "SessionState") -> None:
        """The controller moved to a new state."""

    def on_user_message(self, content: str) -> None:
        """A submission was accepted and is about to be sent."""

    def on_fragment(self, fragment: str) -> None:
        """A content fragment arrived, in server order."""

    def on_transcript_cleared(self) -> None:
        """The conversation was split; the visible transcript starts over."""

    def on_committed(self, conversation: "Conversation") -> None:
        """An exchange was persisted."""

    def on_titles_changed(self, titles: list[str]) -> None:
        """The time-ordered title list changed."""

    def on_error(self, error: "TermchatError") -> None:
        """An operation failed and was aborted."""
