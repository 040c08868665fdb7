from enum import Enum


class SessionState(str, Enum):
    """Lifecycle of the session controller."""

    IDLE = "idle"                # No active conversation (startup, after new chat)
    COMPOSING = "composing"      # Operator may type and submit
    DISPATCHING = "dispatching"  # Budget check and optional split
    STREAMING = "streaming"      # Completion fragments arriving
    COMMITTING = "committing"    # Awaiting the title, then persisting

    @property
    def accepts_input(self) -> bool:
        """Whether a submission may start in this state."""
        return self in (SessionState.IDLE, SessionState.COMPOSING)
