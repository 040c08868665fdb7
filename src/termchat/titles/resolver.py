"""Conversation titles.

Hides how a title is obtained for a new conversation (a side request to
the completion service) and how a split conversation is renamed (the
trailing `` - <n>`` suffix rule).
"""

import asyncio
import re
from collections.abc import Container
from typing import Any

from ..llm.base import LLMProvider
from ..llm.models import ROLE_USER, ChatMessage

TITLE_PROMPT_PREFIX = "suggest me a short title for "

# Longest title derived from the seed when the service returns nothing usable
FALLBACK_TITLE_LENGTH = 40

_SUFFIX_PATTERN = re.compile(r"(.*) - ([0-9]+)", re.DOTALL)

_QUOTES = "\"'“”"


def derive_next_title(title: str) -> str:
    """Return the title of the conversation that continues ``title`` after a split.

    ``"Chat A"`` becomes ``"Chat A - 2"`` and ``"Chat A - 2"`` becomes
    ``"Chat A - 3"``. Only a trailing `` - <digits>`` suffix is recognized.
    """
    match = _SUFFIX_PATTERN.fullmatch(title)
    if match is None:
        return f"{title} - 2"
    base, number = match.groups()
    return f"{base} - {int(number) + 1}"


def unique_title(title: str, taken: Container[str]) -> str:
    """Apply the suffix rule until the title no longer collides with ``taken``."""
    while title in taken:
        title = derive_next_title(title)
    return title


def clean_title(raw: str) -> str:
    """Strip whitespace and surrounding quotes from a generated title."""
    return raw.strip().strip(_QUOTES).strip()


def fallback_title(seed: str) -> str:
    """Title derived from the first line of the seed content."""
    first_line = seed.strip().splitlines()[0] if seed.strip() else "New chat"
    return first_line[:FALLBACK_TITLE_LENGTH].strip()


class TitleResolver:
    """Asks the completion service for a short title of a new conversation."""

    def __init__(self, llm: LLMProvider, model: str | None = None):
        self._llm = llm
        self._model = model
        self._debug_callback: Any | None = None

    def set_debug_callback(self, callback: Any) -> None:
        """Set the debug callback: callable(level, component, message)."""
        self._debug_callback = callback

    def _debug(self, level: str, message: str) -> None:
        if self._debug_callback:
            self._debug_callback(level, "Title", message)

    def build_request(self, seed: str) -> list[ChatMessage]:
        """The single-message request sent for a seed."""
        return [ChatMessage(role=ROLE_USER, content=TITLE_PROMPT_PREFIX + seed)]

    async def resolve(self, seed: str) -> str:
        """Request a title and wait for it.

        Args:
            seed: The first user message of the conversation

        Returns:
            Non-empty title with surrounding quotes trimmed

        Raises:
            NetworkError: If the service could not be reached
            ServiceError: If the service rejected the request
        """
        self._debug("debug", "Requesting title")
        response = await self._llm.chat_completion(self.build_request(seed), model=self._model)
        title = clean_title(response.content)
        if not title:
            title = fallback_title(seed)
            self._debug("warning", f"Empty title returned, using '{title}'")
        else:
            self._debug("info", f"Resolved title '{title}'")
        return title

    def request_title(self, seed: str) -> "asyncio.Task[str]":
        """Start resolving a title concurrently.

        The returned task is the one-shot result channel; cancelling it
        abandons the request.
        """
        return asyncio.create_task(self.resolve(seed), name="termchat-title")
