"""Session controller.

Orchestrates one exchange at a time: budget check and split, streaming,
the concurrent title request, and the commit to the history store.

Hidden design decisions:
- The state machine (IDLE -> COMPOSING -> DISPATCHING -> STREAMING ->
  COMMITTING -> COMPOSING)
- When a conversation is split and how the continuation is seeded
- Ordering between fragment delivery, title resolution and persistence
"""

import asyncio
import contextlib
from typing import Any

from ..config import DEFAULT_SYSTEM_MESSAGE
from ..errors import TermchatError
from ..history.base import HistoryStore
from ..history.models import Conversation, now, strip_system
from ..llm.base import LLMProvider
from ..llm.models import ROLE_ASSISTANT, ROLE_SYSTEM, ROLE_USER, ChatMessage
from ..search.index import SearchIndex
from ..titles.resolver import TitleResolver, derive_next_title, unique_title
from ..tokens.counter import TokenCounter, context_window
from .callbacks import SessionCallback
from .models import SessionState


class SessionController:
    """Single owner of the active conversation and the title list.

    Background work (the title request) reports back only through its
    task result; it never touches controller state.
    """

    def __init__(
        self,
        llm: LLMProvider,
        store: HistoryStore,
        counter: TokenCounter | None = None,
        title_resolver: TitleResolver | None = None,
        search_index: SearchIndex | None = None,
        callback: SessionCallback | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
        system_message: str = DEFAULT_SYSTEM_MESSAGE,
    ):
        """Initialize the controller.

        Args:
            llm: Completion provider for the main exchange
            store: Connected history store
            counter: Token counter (default: tiktoken-backed)
            title_resolver: Title resolver (default: one using ``llm``)
            search_index: Index used for title search
            callback: Presentation hooks
            model: Model for every request (default: the provider's model)
            max_tokens: Token budget (default: the model's context window)
            system_message: Prompt placed at position 0 of every request
        """
        self._llm = llm
        self._store = store
        self._model = model or llm.model
        self._counter = counter or TokenCounter()
        self._title_resolver = title_resolver or TitleResolver(llm, model=self._model)
        self._search_index = search_index or SearchIndex()
        self._callback = callback or SessionCallback()
        self._max_tokens = max_tokens
        self._system_message = ChatMessage(role=ROLE_SYSTEM, content=system_message)

        self._state = SessionState.IDLE
        self._conversation: Conversation | None = None
        self._is_new_chat = True
        self._title_task: asyncio.Task[str] | None = None
        self._titles: list[str] = []
        self._debug_callback: Any | None = None
        self.last_error: TermchatError | None = None

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------

    def set_callback(self, callback: SessionCallback) -> None:
        """Replace the presentation hooks."""
        self._callback = callback

    def set_debug_callback(self, callback: Any) -> None:
        """Set the debug callback for detailed execution logging.

        Args:
            callback: Callable(level: str, component: str, message: str)
                      level: 'debug', 'info', 'warning', 'error'
                      component: Source component name
                      message: Log message
        """
        self._debug_callback = callback
        self._store.set_debug_callback(callback)
        self._title_resolver.set_debug_callback(callback)
        consumer = getattr(self._llm, "consumer", None)
        if consumer is not None:
            consumer.set_debug_callback(callback)

    def _debug(self, level: str, message: str) -> None:
        if self._debug_callback:
            self._debug_callback(level, "Session", message)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def busy(self) -> bool:
        """True while an exchange is in flight."""
        return not self._state.accepts_input

    @property
    def model(self) -> str:
        return self._model

    @property
    def budget(self) -> int:
        """Maximum token estimate a request may have.

        Raises:
            UnsupportedModelError: If no context window is known for the model
        """
        if self._max_tokens is not None:
            return self._max_tokens
        return context_window(self._model)

    @property
    def conversation(self) -> Conversation | None:
        """The active conversation, None for a new chat."""
        return self._conversation

    @property
    def current_title(self) -> str | None:
        return self._conversation.title if self._conversation else None

    @property
    def is_new_chat(self) -> bool:
        return self._is_new_chat

    @property
    def pending_title(self) -> bool:
        """Whether a title request is outstanding."""
        return self._title_task is not None and not self._title_task.done()

    def _set_state(self, state: SessionState) -> None:
        if state is self._state:
            return
        self._debug("debug", f"State {self._state.value} -> {state.value}")
        self._state = state
        self._callback.on_state_changed(state)

    def _report(self, error: TermchatError) -> None:
        self.last_error = error
        self._debug("error", str(error))
        self._callback.on_error(error)

    def _abandon_title(self) -> None:
        """Drop an outstanding title request; its result is never observed."""
        task, self._title_task = self._title_task, None
        if task is None:
            return
        if not task.done():
            task.cancel()
            self._debug("debug", "Abandoned pending title request")
        elif not task.cancelled() and task.exception() is not None:
            self._debug("debug", f"Discarded failed title request: {task.exception()}")

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    async def load(self) -> list[str]:
        """Populate the title list from the store."""
        await self._refresh_titles()
        self._debug("info", f"{len(self._titles)} conversation(s) available")
        return self.titles()

    def new_chat(self) -> bool:
        """Start a fresh conversation. Rejected while an exchange is in flight."""
        if self.busy:
            self._debug("warning", "New chat rejected: exchange in flight")
            return False
        self._abandon_title()
        self._conversation = None
        self._is_new_chat = True
        self._set_state(SessionState.IDLE)
        return True

    def begin_composing(self) -> None:
        """The operator started typing."""
        if self._state is SessionState.IDLE:
            self._set_state(SessionState.COMPOSING)

    def select(self, title: str) -> Conversation | None:
        """Make an existing conversation the active one."""
        if self.busy:
            self._debug("warning", f"Select of '{title}' rejected: exchange in flight")
            return None
        conversation = self._store.get(title)
        if conversation is None:
            self._debug("warning", f"Select of unknown title '{title}'")
            return None
        self._abandon_title()
        self._conversation = conversation
        self._is_new_chat = False
        self._set_state(SessionState.COMPOSING)
        return conversation

    def titles(self) -> list[str]:
        """Titles, most recently active first."""
        return list(self._titles)

    def transcript(self, title: str | None = None) -> tuple[ChatMessage, ...]:
        """Stored messages of a conversation (the active one by default)."""
        if title is None:
            return self._conversation.messages if self._conversation else ()
        conversation = self._store.get(title)
        return conversation.messages if conversation else ()

    def search(self, query: str) -> list[str]:
        """Titles matching a query, best first.

        A blank query returns the unfiltered, time-ordered list.
        """
        titles = self.titles()
        if not query.strip():
            return titles
        index = self._search_index.build(titles)
        return [titles[i] for i in index.search(query)]

    async def _refresh_titles(self) -> None:
        self._titles = [title for title, _ in await self._store.list_descending_by_time()]
        self._callback.on_titles_changed(self.titles())

    # ------------------------------------------------------------------
    # Rename / delete
    # ------------------------------------------------------------------

    async def rename(self, old_title: str, new_title: str) -> Conversation | None:
        """Rename a conversation; errors are reported, not raised."""
        new_title = new_title.strip()
        if self.busy:
            self._debug("warning", "Rename rejected: exchange in flight")
            return None
        if not new_title:
            self._debug("warning", "Rename to an empty title ignored")
            return None
        if new_title == old_title:
            return self._store.get(old_title)

        try:
            renamed = await self._store.rename(old_title, new_title)
        except TermchatError as e:
            self._report(e)
            return None

        if self.current_title == old_title:
            self._conversation = renamed
        self._debug("info", f"Renamed '{old_title}' to '{new_title}'")
        await self._refresh_titles()
        return renamed

    async def delete(self, title: str) -> bool:
        """Delete a conversation; errors are reported, not raised."""
        if self.busy:
            self._debug("warning", "Delete rejected: exchange in flight")
            return False

        try:
            await self._store.delete(title)
        except TermchatError as e:
            self._report(e)
            return False

        if self.current_title == title:
            self.new_chat()
        self._debug("info", f"Deleted '{title}'")
        await self._refresh_titles()
        return True

    # ------------------------------------------------------------------
    # Exchange
    # ------------------------------------------------------------------

    async def submit(self, content: str) -> Conversation | None:
        """Run one exchange for the operator's input.

        Args:
            content: The user's message

        Returns:
            The persisted conversation, or None if the input was rejected or
            the exchange failed (the error is reported through the callback
            and ``last_error``)
        """
        if not content.strip():
            return None
        if self.busy:
            self._debug("warning", "Submission rejected: exchange in flight")
            return None

        self.last_error = None
        self._set_state(SessionState.DISPATCHING)
        try:
            conversation = await self._exchange(content)
        except TermchatError as e:
            self._abandon_title()
            self._report(e)
            self._set_state(SessionState.COMPOSING)
            return None
        except BaseException:
            self._abandon_title()
            self._set_state(SessionState.COMPOSING)
            raise

        self._set_state(SessionState.COMPOSING)
        return conversation

    async def _exchange(self, content: str) -> Conversation:
        is_new = self._conversation is None or self._is_new_chat
        title = None if is_new else self._conversation.title

        messages = [self._system_message]
        if not is_new:
            messages.extend(strip_system(self._conversation.messages))
        messages.append(ChatMessage(role=ROLE_USER, content=content))

        budget = self.budget
        num_tokens = self._counter.estimate(messages, self._model)
        self._debug("debug", f"Estimated {num_tokens} tokens (budget {budget})")

        if num_tokens > budget and not is_new:
            title, messages = self._split(title, content)
        elif num_tokens > budget:
            self._debug("warning", "New conversation exceeds the token budget; sending as-is")

        self._callback.on_user_message(content)

        self._set_state(SessionState.STREAMING)
        if is_new:
            self._title_task = self._title_resolver.request_title(content)
        reply = await self._stream(messages)
        messages.append(ChatMessage(role=ROLE_ASSISTANT, content=reply))

        self._set_state(SessionState.COMMITTING)
        if self._title_task is not None:
            task = self._title_task
            title = unique_title(await task, self._store)
            self._title_task = None

        conversation = await self._store.upsert(
            title,
            Conversation(title=title, created_at=now(), messages=strip_system(messages)),
        )
        self._conversation = conversation
        self._is_new_chat = False
        self._debug("info", f"Committed '{title}' ({len(conversation.messages)} messages)")

        await self._refresh_titles()
        self._callback.on_committed(conversation)
        return conversation

    def _split(self, title: str, content: str) -> tuple[str, list[ChatMessage]]:
        """Start a continuation conversation seeded with the new content."""
        self._abandon_title()
        next_title = unique_title(derive_next_title(title), self._store)
        messages = [
            self._system_message,
            ChatMessage(role=ROLE_USER, content=f"{title}: {content}"),
        ]
        self._is_new_chat = False
        self._debug("info", f"Token budget exceeded; continuing '{title}' as '{next_title}'")
        self._callback.on_transcript_cleared()
        return next_title, messages

    async def _stream(self, messages: list[ChatMessage]) -> str:
        """Stream the completion, forwarding each fragment as it arrives."""
        fragments: list[str] = []
        stream = await self._llm.chat_completion_stream(messages, model=self._model)
        async with stream:
            async for fragment in stream:
                fragments.append(fragment)
                self._callback.on_fragment(fragment)
        self._debug("debug", f"Stream ended after {len(fragments)} fragment(s)")
        return "".join(fragments)

    async def close(self) -> None:
        """Cancel background work owned by the controller."""
        task = self._title_task
        self._abandon_title()
        if task is not None and not task.done():
            with contextlib.suppress(asyncio.CancelledError):
                await task
