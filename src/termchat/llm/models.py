from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

ROLE_SYSTEM = "system"
ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"

Role = Literal["system", "user", "assistant"]


class StreamingResponse:
    """Wrapper for a streaming completion.

    Acts as an async iterator of content fragments and owns the underlying
    HTTP response, which is released by aclose() (or by leaving an
    ``async with`` block).

    Usage:
        async with await provider.chat_completion_stream(messages) as stream:
            async for fragment in stream:
                print(fragment, end="")
    """

    def __init__(
        self,
        async_iter: AsyncIterator[str],
        on_close: Callable[[], Awaitable[None]] | None = None,
    ):
        """Initialize with an async iterator of fragments.

        Args:
            async_iter: Async iterator yielding content fragments
            on_close: Coroutine function releasing the transport
        """
        self._iter = async_iter
        self._on_close = on_close
        self._closed = False

    def __aiter__(self) -> "StreamingResponse":
        return self

    async def __anext__(self) -> str:
        return await self._iter.__anext__()

    async def aclose(self) -> None:
        """Release the underlying response. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        aclose = getattr(self._iter, "aclose", None)
        if aclose is not None:
            await aclose()
        if self._on_close is not None:
            await self._on_close()

    async def __aenter__(self) -> "StreamingResponse":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()


class ChatMessage(BaseModel):
    """A single role-tagged message in a conversation."""

    model_config = ConfigDict(frozen=True)

    role: Role = Field(description="Role of the message sender: 'system', 'user' or 'assistant'")
    content: str = Field(description="Content of the message")

    def to_dict(self) -> dict[str, str]:
        """Wire representation used by the completion API and the store."""
        return {"role": self.role, "content": self.content}


class LLMResponse(BaseModel):
    """Non-streaming response from the completion service."""

    model_config = ConfigDict(frozen=True)

    content: str = Field(description="Generated text content")
    model: str = Field(description="Model that generated the response")
