"""UI configuration constants.

Centralizes magic numbers and configuration values for the UI module.
"""

from enum import IntEnum

from ..config import MAX_TITLE_LENGTH


class LogLevel(IntEnum):
    """Log panel levels; a panel shows messages at or above its level."""

    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40

    @classmethod
    def from_string(cls, value: str) -> "LogLevel":
        """Parse a level name. Unknown names mean DEBUG (show everything)."""
        try:
            return cls[value.upper()]
        except KeyError:
            return cls.DEBUG


# Streaming configuration
STREAM_BUFFER_THRESHOLD = 50  # Characters before flushing the reply buffer

# Input history configuration
INPUT_HISTORY_MAX_SIZE = 100  # Maximum entries in question history

# Rename dialog
RENAME_MAX_LENGTH = MAX_TITLE_LENGTH

# Log panel configuration
LOG_TIMESTAMP_FORMAT = "%H:%M:%S"
LOG_MAX_MESSAGE_LENGTH = 500  # Characters before truncating log messages

# Conversation view labels
USER_LABEL = "You"
ASSISTANT_LABEL = "ChatGPT"
