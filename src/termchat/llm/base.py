from abc import ABC, abstractmethod
from typing import Any

from .models import ChatMessage, LLMResponse, StreamingResponse


class LLMProvider(ABC):
    """Abstract base class for completion providers.

    This module hides the design decision of how the completion service is
    reached. Implementations must handle:
    - API client setup and authentication
    - Request/response format conversion
    - Translating transport failures into NetworkError / ServiceError

    Supports async context manager protocol for proper resource cleanup:
        async with provider:
            response = await provider.chat_completion(messages)
    """

    @property
    @abstractmethod
    def model(self) -> str:
        """Default model name."""

    @abstractmethod
    async def chat_completion(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        **kwargs: Any
    ) -> LLMResponse:
        """Generate a complete (non-streaming) chat completion.

        Args:
            messages: Conversation history sent to the model
            model: Model to use (None uses provider's default)
            **kwargs: Provider-specific parameters

        Returns:
            LLMResponse with the generated content

        Raises:
            NetworkError: If the service could not be reached
            ServiceError: If the service rejected the request
        """

    @abstractmethod
    async def chat_completion_stream(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        **kwargs: Any
    ) -> StreamingResponse:
        """Start a streaming chat completion.

        The request is fully initiated before this returns: a connection
        failure or error status raises here, before any body is read.

        Args:
            messages: Conversation history sent to the model
            model: Model to use (None uses provider's default)
            **kwargs: Provider-specific parameters

        Returns:
            StreamingResponse yielding content fragments in arrival order

        Raises:
            NetworkError: If the service could not be reached
            ServiceError: If the service rejected the request
        """

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections or resources."""

    async def __aenter__(self) -> "LLMProvider":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit with automatic cleanup.

        Note: Suppresses "Event loop is closed" errors during cleanup.
        This is a known harmless race condition in httpx/anyio cleanup:
        https://github.com/encode/httpx/issues/914
        """
        try:
            await self.close()
        except RuntimeError as e:
            if "Event loop is closed" not in str(e):
                raise
