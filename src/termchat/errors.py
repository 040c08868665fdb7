"""Error taxonomy for termchat.

Every failure the session layer can report derives from TermchatError.
Only ConfigError is fatal; everything else is resolved at the
SessionController boundary and reported to the operator.
"""


class TermchatError(Exception):
    """Base class for termchat errors."""

    def is_recoverable(self) -> bool:
        """Override in subclasses to control whether the process may continue."""
        return True


class ConfigError(TermchatError):
    """Missing or invalid configuration (fatal)."""

    def __init__(self, message: str):
        super().__init__(f"Configuration error: {message}")

    def is_recoverable(self) -> bool:
        return False


class AlreadyRunningError(TermchatError):
    """Exclusivity lock on the history file was not acquired in time."""

    def __init__(self, path: str):
        super().__init__(f"Another process is already running (lock held on {path})")
        self.path = path


class UnsupportedModelError(TermchatError):
    """No token encoding or context window is known for the model."""

    def __init__(self, model: str):
        super().__init__(f"Unsupported model: {model}")
        self.model = model


class CompletionError(TermchatError):
    """Base class for failures talking to the completion service."""


class NetworkError(CompletionError):
    """Connection or transport failure (request never completed)."""

    def __init__(self, message: str):
        super().__init__(f"Network error: {message}")


class ServiceError(CompletionError):
    """The completion service answered with an error status or bad payload."""

    def __init__(self, message: str, status_code: int | None = None):
        msg = f"Service error: {message}"
        if status_code is not None:
            msg += f" (status: {status_code})"
        super().__init__(msg)
        self.status_code = status_code


class ConflictError(TermchatError):
    """Rename target already names another conversation."""

    def __init__(self, title: str):
        super().__init__(f"A conversation titled '{title}' already exists")
        self.title = title


class PersistenceError(TermchatError):
    """Read or write failure in the history store."""

    def __init__(self, message: str):
        super().__init__(f"Persistence error: {message}")


class ConversationNotFoundError(PersistenceError):
    """The requested title has no stored conversation."""

    def __init__(self, title: str):
        super().__init__(f"no conversation titled '{title}'")
        self.title = title
