import contextlib
from collections.abc import AsyncIterator
from typing import Any

import openai
from openai import AsyncOpenAI

from ...errors import NetworkError, ServiceError
from ..base import LLMProvider
from ..models import ChatMessage, LLMResponse, StreamingResponse
from ..stream import StreamConsumer


def translate_error(error: Exception) -> Exception:
    """Map an OpenAI SDK exception onto the termchat error taxonomy."""
    if isinstance(error, openai.APIConnectionError):
        return NetworkError(str(error))
    if isinstance(error, openai.APIStatusError):
        return ServiceError(error.message, status_code=error.status_code)
    if isinstance(error, openai.OpenAIError):
        return ServiceError(str(error))
    return error


class OpenAIProvider(LLMProvider):
    """OpenAI Chat Completions provider.

    Hidden design decisions:
    - OpenAI API client initialization and authentication
    - Message format conversion
    - Raw SSE body handed to StreamConsumer instead of the SDK's stream parser
    - SDK exception translation
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-3.5-turbo",
        base_url: str | None = None,
        organization: str | None = None,
        consumer: StreamConsumer | None = None,
        **client_kwargs: Any
    ):
        """Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key
            model: Default model to use
            base_url: Optional custom API base URL
            organization: Optional organization ID
            consumer: Stream consumer used to parse streamed bodies
            **client_kwargs: Additional kwargs for AsyncOpenAI client
        """
        self._model = model
        self._consumer = consumer or StreamConsumer()
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            organization=organization,
            **client_kwargs
        )

    @property
    def model(self) -> str:
        """Get the default model name."""
        return self._model

    @property
    def consumer(self) -> StreamConsumer:
        return self._consumer

    async def chat_completion(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        **kwargs: Any
    ) -> LLMResponse:
        """Generate a chat completion using OpenAI.

        Args:
            messages: Conversation history
            model: Model to use (overrides default)
            **kwargs: Additional OpenAI-specific parameters

        Returns:
            LLMResponse with generated content
        """
        model_to_use = model or self._model

        try:
            completion = await self._client.chat.completions.create(
                model=model_to_use,
                messages=[msg.to_dict() for msg in messages],
                stream=False,
                **kwargs
            )
        except openai.OpenAIError as e:
            raise translate_error(e) from e

        if not completion.choices:
            raise ServiceError("completion returned no choices")

        return LLMResponse(
            content=completion.choices[0].message.content or "",
            model=completion.model or model_to_use,
        )

    async def chat_completion_stream(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        **kwargs: Any
    ) -> StreamingResponse:
        """Start a streaming chat completion using OpenAI.

        The HTTP request is sent and its status checked before returning, so
        an initiation failure never reaches the body reader.

        Args:
            messages: Conversation history
            model: Model to use (overrides default)
            **kwargs: Additional OpenAI-specific parameters

        Returns:
            StreamingResponse yielding content fragments
        """
        model_to_use = model or self._model

        stack = contextlib.AsyncExitStack()
        try:
            response = await stack.enter_async_context(
                self._client.chat.completions.with_streaming_response.create(
                    model=model_to_use,
                    messages=[msg.to_dict() for msg in messages],
                    stream=True,
                    **kwargs
                )
            )
        except openai.OpenAIError as e:
            await stack.aclose()
            raise translate_error(e) from e

        return StreamingResponse(
            self._fragments(response.iter_bytes()),
            on_close=stack.aclose,
        )

    async def _fragments(self, body: AsyncIterator[bytes]) -> AsyncIterator[str]:
        """Internal generator feeding the raw body through the consumer."""
        try:
            async for fragment in self._consumer.consume(body):
                yield fragment
        except openai.OpenAIError as e:
            raise translate_error(e) from e

    async def close(self) -> None:
        """Close the OpenAI client."""
        await self._client.close()
