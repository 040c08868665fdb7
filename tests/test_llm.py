"""Unit tests for the llm module."""
import json

import httpx
import openai
import pytest

from termchat.errors import NetworkError, ServiceError
from termchat.llm import ChatMessage, LLMProvider, OpenAIProvider, create_llm_provider
from termchat.llm.providers.openai import translate_error

CHAT_URL = "https://api.openai.com/v1/chat/completions"


def sse(*contents: str) -> bytes:
    lines = []
    for content in contents:
        event = {"id": "c1", "object": "chat.completion.chunk", "choices": [{"index": 0, "delta": {"content": content}}]}
        lines.append(f"data: {json.dumps(event)}\n\n")
    lines.append("data: [DONE]\n\n")
    return "".join(lines).encode()


def completion(content: str) -> dict:
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion",
        "created": 0,
        "model": "gpt-3.5-turbo",
        "choices": [{
            "index": 0,
            "message": {"role": "assistant", "content": content},
            "finish_reason": "stop",
        }],
    }


def provider_with(handler) -> OpenAIProvider:
    """Provider whose HTTP traffic is answered by ``handler``."""
    return OpenAIProvider(
        api_key="sk-test",
        max_retries=0,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


USER_HELLO = [ChatMessage(role="user", content="Hello")]


class TestLLMProvider:
    """Tests for the LLMProvider interface."""

    def test_llm_provider_is_abstract(self):
        with pytest.raises(TypeError):
            LLMProvider()  # type: ignore


class TestFactory:
    """Tests for create_llm_provider."""

    def test_create_openai(self):
        provider = create_llm_provider("openai", api_key="sk-test", model="gpt-4")
        assert isinstance(provider, OpenAIProvider)
        assert provider.model == "gpt-4"

    def test_provider_name_is_case_insensitive(self):
        assert isinstance(create_llm_provider("OpenAI", api_key="sk-test"), OpenAIProvider)

    def test_missing_api_key(self):
        with pytest.raises(TypeError, match="api_key"):
            create_llm_provider("openai")

    def test_unsupported_provider(self):
        with pytest.raises(ValueError, match="Unsupported provider"):
            create_llm_provider("nope", api_key="x")


class TestTranslateError:
    """Tests for SDK error translation."""

    def test_connection_error(self):
        error = openai.APIConnectionError(request=httpx.Request("POST", CHAT_URL))
        assert isinstance(translate_error(error), NetworkError)

    def test_status_error_keeps_status(self):
        request = httpx.Request("POST", CHAT_URL)
        response = httpx.Response(429, request=request)
        error = openai.APIStatusError("rate limited", response=response, body=None)

        translated = translate_error(error)

        assert isinstance(translated, ServiceError)
        assert translated.status_code == 429

    def test_other_errors_pass_through(self):
        error = RuntimeError("boom")
        assert translate_error(error) is error


class TestOpenAIProvider:
    """Tests for OpenAIProvider against a mocked transport."""

    @pytest.mark.asyncio
    async def test_chat_completion(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(json.loads(request.content))
            return httpx.Response(200, json=completion('"Greeting"'))

        provider = provider_with(handler)
        response = await provider.chat_completion(USER_HELLO)
        await provider.close()

        assert response.content == '"Greeting"'
        assert requests[0]["stream"] is False
        assert requests[0]["messages"] == [{"role": "user", "content": "Hello"}]

    @pytest.mark.asyncio
    async def test_stream_yields_fragments(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(json.loads(request.content))
            return httpx.Response(
                200,
                content=sse("Hi", " there"),
                headers={"content-type": "text/event-stream"},
            )

        provider = provider_with(handler)
        async with await provider.chat_completion_stream(USER_HELLO, model="gpt-4") as stream:
            fragments = [fragment async for fragment in stream]
        await provider.close()

        assert fragments == ["Hi", " there"]
        assert requests[0]["stream"] is True
        assert requests[0]["model"] == "gpt-4"

    @pytest.mark.asyncio
    async def test_stream_initiation_failure_raises_before_reading(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"error": {"message": "bad key", "type": "invalid_request_error"}})

        provider = provider_with(handler)
        with pytest.raises(ServiceError) as excinfo:
            await provider.chat_completion_stream(USER_HELLO)
        await provider.close()

        assert excinfo.value.status_code == 401

    @pytest.mark.asyncio
    async def test_connection_failure_is_network_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        provider = provider_with(handler)
        with pytest.raises(NetworkError):
            await provider.chat_completion(USER_HELLO)
        await provider.close()


@pytest.mark.integration
class TestOpenAIIntegration:
    """Tests against the real completion service."""

    @pytest.mark.asyncio
    async def test_stream_real_api(self, api_keys):
        if not api_keys["openai"]:
            pytest.skip("OPENAI_API_KEY not set")

        provider = create_llm_provider("openai", api_key=api_keys["openai"])
        try:
            async with await provider.chat_completion_stream(
                [ChatMessage(role="user", content="Say 'ok'.")]
            ) as stream:
                fragments = [fragment async for fragment in stream]
        finally:
            await provider.close()

        assert "".join(fragments).strip()
