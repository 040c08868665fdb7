"""Data models for the TUI.

Hides how a rendered transcript entry is represented.
"""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class TranscriptEntry:
    """A message shown in the conversation view."""

    role: str  # "user", "assistant" or "error"
    content: str
    timestamp: datetime = field(default_factory=datetime.now)
