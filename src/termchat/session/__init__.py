"""Session module.

Owns the active conversation and drives one exchange at a time through
the state machine, coordinating the completion service, the title
resolver and the history store.
"""

from .callbacks import SessionCallback
from .controller import SessionController
from .models import SessionState

__all__ = [
    "SessionCallback",
    "SessionController",
    "SessionState",
]
