"""Token budget accounting.

Hides which tokenizer table a model uses and the per-message framing
overhead of the chat format.
"""

from collections.abc import Callable, Sequence
from typing import Any

import tiktoken

from ..errors import UnsupportedModelError
from ..llm.models import ChatMessage

# Every reply is primed with <|start|>assistant<|message|>
REPLY_PRIMING_TOKENS = 3

# Models whose chat framing costs 4 tokens per message; all others cost 3
_FOUR_TOKEN_MODELS = {"gpt-3.5-turbo", "gpt-3.5-turbo-0301"}

# Maximum context budget per model family, longest prefix wins
_CONTEXT_WINDOWS = {
    "gpt-3.5-turbo": 4097,
    "gpt-3.5-turbo-16k": 16385,
    "gpt-4": 8192,
    "gpt-4-32k": 32768,
    "gpt-4-turbo": 128000,
    "gpt-4o": 128000,
    "gpt-4o-mini": 128000,
    "gpt-4.1": 1047576,
}


def context_window(model: str) -> int:
    """Return the maximum context budget for a model.

    Dated snapshots (``gpt-4-0613``) resolve through their family prefix.

    Raises:
        UnsupportedModelError: If no budget is known for the model
    """
    if model in _CONTEXT_WINDOWS:
        return _CONTEXT_WINDOWS[model]
    family = max(
        (name for name in _CONTEXT_WINDOWS if model.startswith(name + "-")),
        key=len,
        default=None,
    )
    if family is None:
        raise UnsupportedModelError(model)
    return _CONTEXT_WINDOWS[family]


def tokens_per_message(model: str) -> int:
    """Fixed framing cost of one message for the model."""
    return 4 if model in _FOUR_TOKEN_MODELS else 3


class TokenCounter:
    """Estimates the prompt cost of a message list.

    The estimate is a pure function of (messages, model); encodings are
    cached per model after the first lookup.
    """

    def __init__(self, encoding_for_model: Callable[[str], Any] | None = None):
        """Initialize the counter.

        Args:
            encoding_for_model: Resolver returning an object with ``encode``
                for a model name; raises KeyError for unknown models.
                Defaults to ``tiktoken.encoding_for_model``.
        """
        self._encoding_for_model = encoding_for_model or tiktoken.encoding_for_model
        self._encodings: dict[str, Any] = {}

    def encoding(self, model: str) -> Any:
        """Return the (cached) encoding for a model.

        Raises:
            UnsupportedModelError: If the model has no known encoding
        """
        if model not in self._encodings:
            try:
                self._encodings[model] = self._encoding_for_model(model)
            except KeyError:
                raise UnsupportedModelError(model) from None
        return self._encodings[model]

    def estimate(self, messages: Sequence[ChatMessage], model: str) -> int:
        """Estimate the token cost of a message list.

        Args:
            messages: Messages in request order
            model: Model the messages will be sent to

        Returns:
            Estimated prompt tokens including framing overhead

        Raises:
            UnsupportedModelError: If the model has no known encoding
        """
        enc = self.encoding(model)
        per_message = tokens_per_message(model)

        num_tokens = 0
        for message in messages:
            num_tokens += per_message
            num_tokens += len(enc.encode(message.content, disallowed_special=()))
            num_tokens += len(enc.encode(message.role, disallowed_special=()))
        num_tokens += REPLY_PRIMING_TOKENS
        return num_tokens

    def fits(self, messages: Sequence[ChatMessage], model: str, budget: int) -> bool:
        """Whether the estimate for messages stays within budget."""
        return self.estimate(messages, model) <= budget
