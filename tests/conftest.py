"""Pytest configuration and shared fixtures."""
import asyncio
import os
from pathlib import Path

import pytest

from termchat.history import Conversation, InMemoryHistoryStore, SQLiteHistoryStore
from termchat.llm import LLMProvider, LLMResponse, StreamingResponse
from termchat.llm.models import ROLE_ASSISTANT, ROLE_USER, ChatMessage
from termchat.session import SessionCallback, SessionController
from termchat.tokens import TokenCounter


class FakeEncoding:
    """Whitespace tokenizer: one token per word."""

    def encode(self, text: str, disallowed_special=()) -> list[str]:
        return text.split()


def fake_encoding_for_model(model: str) -> FakeEncoding:
    if model.startswith("unknown"):
        raise KeyError(model)
    return FakeEncoding()


class FakeLLM(LLMProvider):
    """Scripted completion provider.

    ``fragments`` are streamed in order, then ``stream_error`` (if set) is
    raised. ``title_gate`` / ``stream_gate`` hold the title request or the
    first fragment until set.
    """

    def __init__(
        self,
        model: str = "gpt-3.5-turbo",
        fragments: list[str] | None = None,
        title: str = "Greeting",
    ):
        self._model = model
        self.fragments = list(fragments or [])
        self.title = title
        self.stream_error: Exception | None = None
        self.initiation_error: Exception | None = None
        self.title_error: Exception | None = None
        self.title_gate: asyncio.Event | None = None
        self.stream_gate: asyncio.Event | None = None
        self.stream_requests: list[list[ChatMessage]] = []
        self.title_requests: list[list[ChatMessage]] = []
        self.title_cancelled = False
        self.stream_closed = 0
        self.closed = False

    @property
    def model(self) -> str:
        return self._model

    async def chat_completion(self, messages, model=None, **kwargs) -> LLMResponse:
        self.title_requests.append(list(messages))
        try:
            if self.title_gate is not None:
                await self.title_gate.wait()
        except asyncio.CancelledError:
            self.title_cancelled = True
            raise
        if self.title_error is not None:
            raise self.title_error
        return LLMResponse(content=self.title, model=model or self._model)

    async def chat_completion_stream(self, messages, model=None, **kwargs) -> StreamingResponse:
        self.stream_requests.append(list(messages))
        if self.initiation_error is not None:
            raise self.initiation_error
        return StreamingResponse(self._fragments(), on_close=self._on_close)

    async def _fragments(self):
        if self.stream_gate is not None:
            await self.stream_gate.wait()
        for fragment in self.fragments:
            await asyncio.sleep(0)
            yield fragment
        if self.stream_error is not None:
            raise self.stream_error

    async def _on_close(self) -> None:
        self.stream_closed += 1

    async def close(self) -> None:
        self.closed = True


class RecordingCallback(SessionCallback):
    """Records every session event as (name, payload)."""

    def __init__(self) -> None:
        self.events: list[tuple[str, object]] = []

    def names(self) -> list[str]:
        return [name for name, _ in self.events]

    def payloads(self, name: str) -> list[object]:
        return [payload for event, payload in self.events if event == name]

    def on_state_changed(self, state) -> None:
        self.events.append(("state", state))

    def on_user_message(self, content: str) -> None:
        self.events.append(("user_message", content))

    def on_fragment(self, fragment: str) -> None:
        self.events.append(("fragment", fragment))

    def on_transcript_cleared(self) -> None:
        self.events.append(("cleared", None))

    def on_committed(self, conversation) -> None:
        self.events.append(("committed", conversation))

    def on_titles_changed(self, titles: list[str]) -> None:
        self.events.append(("titles", titles))

    def on_error(self, error) -> None:
        self.events.append(("error", error))


def make_conversation(title: str, *pairs: tuple[str, str], created_at: int = 1) -> Conversation:
    """Conversation from (user, assistant) content pairs."""
    messages = []
    for question, answer in pairs:
        messages.append(ChatMessage(role=ROLE_USER, content=question))
        messages.append(ChatMessage(role=ROLE_ASSISTANT, content=answer))
    return Conversation(title=title, created_at=created_at, messages=tuple(messages))


@pytest.fixture(scope="session")
def api_keys():
    """Return API keys from environment."""
    return {"openai": os.getenv("OPENAI_API_KEY")}


@pytest.fixture
def counter():
    """Token counter backed by the whitespace tokenizer."""
    return TokenCounter(encoding_for_model=fake_encoding_for_model)


@pytest.fixture
def fake_llm():
    return FakeLLM(fragments=["Hi", " there"])


@pytest.fixture
def recorder():
    return RecordingCallback()


@pytest.fixture
async def memory_store():
    store = InMemoryHistoryStore()
    await store.connect()
    yield store
    await store.close()


@pytest.fixture
async def sqlite_store(tmp_path: Path):
    store = SQLiteHistoryStore(tmp_path / "history.db")
    await store.connect()
    yield store
    await store.close()


@pytest.fixture(params=["memory", "sqlite"])
async def store(request, tmp_path: Path):
    """Each history backend in turn."""
    if request.param == "memory":
        backend = InMemoryHistoryStore()
    else:
        backend = SQLiteHistoryStore(tmp_path / "history.db")
    await backend.connect()
    yield backend
    await backend.close()


@pytest.fixture
def make_controller(fake_llm, memory_store, counter, recorder):
    """Factory for a controller over the fake provider and in-memory store."""

    def _make(**kwargs) -> SessionController:
        options = {
            "llm": fake_llm,
            "store": memory_store,
            "counter": counter,
            "callback": recorder,
        }
        options.update(kwargs)
        return SessionController(**options)

    return _make


@pytest.fixture
def conversation():
    """Builder for stored conversations: conversation(title, (q, a), ...)."""
    return make_conversation
