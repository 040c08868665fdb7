from .base import LLMProvider
from .factory import create_llm_provider
from .models import (
    ROLE_ASSISTANT,
    ROLE_SYSTEM,
    ROLE_USER,
    ChatMessage,
    LLMResponse,
    StreamingResponse,
)
from .providers import OpenAIProvider
from .stream import StreamConsumer

__all__ = [
    "LLMProvider",
    "create_llm_provider",
    "ChatMessage",
    "LLMResponse",
    "StreamingResponse",
    "StreamConsumer",
    "OpenAIProvider",
    "ROLE_ASSISTANT",
    "ROLE_SYSTEM",
    "ROLE_USER",
]
