"""Token budget accounting for chat message lists."""

from .counter import TokenCounter, context_window, tokens_per_message

__all__ = ["TokenCounter", "context_window", "tokens_per_message"]
