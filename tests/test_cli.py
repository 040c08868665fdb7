"""Tests for the command-line interface."""
import asyncio
import sys

import pytest
from typer.testing import CliRunner

from termchat.cli.app import ALREADY_RUNNING_MESSAGE, app
from termchat.history import ExclusiveLock, SQLiteHistoryStore
from termchat.tokens import TokenCounter

from conftest import FakeLLM, fake_encoding_for_model, make_conversation

runner = CliRunner()


@pytest.fixture
def env(tmp_path):
    return {
        "OPENAI_API_KEY": "sk-test",
        "TERMCHAT_DATA_DIR": str(tmp_path),
    }


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "history.db"


def seed(db_path, *conversations):
    async def _seed():
        async with SQLiteHistoryStore(db_path) as store:
            for conversation in conversations:
                await store.upsert(conversation.title, conversation)

    asyncio.run(_seed())


def stored_titles(db_path) -> list[str]:
    async def _read():
        async with SQLiteHistoryStore(db_path) as store:
            return [title for title, _ in await store.list_descending_by_time()]

    return asyncio.run(_read())


class TestStartup:
    """Configuration and exclusivity failures."""

    def test_missing_api_key_exits_1(self, env):
        env["OPENAI_API_KEY"] = ""
        result = runner.invoke(app, ["list"], env=env)

        assert result.exit_code == 1
        assert "OPENAI_API_KEY" in result.output

    def test_second_process_exits_0(self, env, db_path):
        holder = ExclusiveLock(db_path)
        asyncio.run(holder.acquire())
        try:
            result = runner.invoke(app, ["list"], env=env)
        finally:
            holder.release()

        assert result.exit_code == 0
        assert ALREADY_RUNNING_MESSAGE in result.output

    def test_lock_released_after_command(self, env, db_path):
        assert runner.invoke(app, ["list"], env=env).exit_code == 0
        assert runner.invoke(app, ["list"], env=env).exit_code == 0


class TestHistoryCommands:
    """list, show, search, rename and delete against a seeded database."""

    def test_list_empty(self, env):
        result = runner.invoke(app, ["list"], env=env)

        assert result.exit_code == 0
        assert "No conversations yet" in result.output

    def test_list(self, env, db_path):
        seed(
            db_path,
            make_conversation("Chat A", ("q", "a"), created_at=1),
            make_conversation("Chat B", ("q", "a"), created_at=2),
        )

        result = runner.invoke(app, ["list"], env=env)

        assert result.exit_code == 0
        assert result.output.index("Chat B") < result.output.index("Chat A")

    def test_show(self, env, db_path):
        seed(db_path, make_conversation("Chat A", ("What is 2+2?", "Four."), created_at=1))

        result = runner.invoke(app, ["show", "Chat A"], env=env)

        assert result.exit_code == 0
        assert "What is 2+2?" in result.output
        assert "Four." in result.output

    def test_show_missing(self, env):
        result = runner.invoke(app, ["show", "missing"], env=env)
        assert result.exit_code == 1

    def test_search(self, env, db_path):
        seed(
            db_path,
            make_conversation("Python tips", ("q", "a"), created_at=1),
            make_conversation("Weekend plans", ("q", "a"), created_at=2),
        )

        result = runner.invoke(app, ["search", "pythn"], env=env)

        assert result.exit_code == 0
        assert "Python tips" in result.output
        assert "Weekend plans" not in result.output

    def test_blank_search(self, env):
        result = runner.invoke(app, ["search", "  "], env=env)
        assert result.exit_code == 1

    def test_rename(self, env, db_path):
        seed(db_path, make_conversation("Chat A", ("q", "a")))

        result = runner.invoke(app, ["rename", "Chat A", "Chat B"], env=env)

        assert result.exit_code == 0
        assert stored_titles(db_path) == ["Chat B"]

    def test_rename_conflict(self, env, db_path):
        seed(
            db_path,
            make_conversation("Chat A", ("q", "a"), created_at=1),
            make_conversation("Chat B", ("q", "a"), created_at=2),
        )

        result = runner.invoke(app, ["rename", "Chat A", "Chat B"], env=env)

        assert result.exit_code == 1
        assert "already exists" in result.output
        assert stored_titles(db_path) == ["Chat B", "Chat A"]

    def test_rename_to_blank(self, env, db_path):
        seed(db_path, make_conversation("Chat A", ("q", "a")))

        result = runner.invoke(app, ["rename", "Chat A", "  "], env=env)

        assert result.exit_code == 1
        assert stored_titles(db_path) == ["Chat A"]

    def test_delete_confirmed(self, env, db_path):
        seed(db_path, make_conversation("Chat A", ("q", "a")))

        result = runner.invoke(app, ["delete", "Chat A"], env=env, input="y\n")

        assert result.exit_code == 0
        assert stored_titles(db_path) == []

    def test_delete_declined(self, env, db_path):
        seed(db_path, make_conversation("Chat A", ("q", "a")))

        result = runner.invoke(app, ["delete", "Chat A"], env=env, input="n\n")

        assert result.exit_code == 0
        assert stored_titles(db_path) == ["Chat A"]

    def test_delete_missing(self, env):
        result = runner.invoke(app, ["delete", "missing", "--yes"], env=env)
        assert result.exit_code == 1


class TestAsk:
    """The one-shot exchange command."""

    @pytest.fixture
    def fake_llm(self, monkeypatch):
        llm = FakeLLM(fragments=["Hi", " there"])
        monkeypatch.setattr(sys.modules["termchat.cli.app"], "get_llm", lambda settings: llm)
        monkeypatch.setattr(
            "termchat.session.controller.TokenCounter",
            lambda: TokenCounter(encoding_for_model=fake_encoding_for_model),
        )
        return llm

    def test_new_conversation(self, env, db_path, fake_llm):
        result = runner.invoke(app, ["ask", "Hello"], env=env)

        assert result.exit_code == 0
        assert "Hi there" in result.output
        assert "Saved as 'Greeting'" in result.output
        assert stored_titles(db_path) == ["Greeting"]
        assert fake_llm.closed

    def test_continue_conversation(self, env, db_path, fake_llm):
        seed(db_path, make_conversation("Chat A", ("q", "a")))

        result = runner.invoke(app, ["ask", "More", "--title", "Chat A"], env=env)

        assert result.exit_code == 0
        assert fake_llm.title_requests == []
        assert [m.content for m in fake_llm.stream_requests[0][1:]] == ["q", "a", "More"]

    def test_unknown_title(self, env, fake_llm):
        result = runner.invoke(app, ["ask", "More", "--title", "missing"], env=env)

        assert result.exit_code == 1
        assert fake_llm.stream_requests == []

    def test_failed_exchange_exits_1(self, env, db_path, fake_llm):
        from termchat.errors import NetworkError

        fake_llm.stream_error = NetworkError("connection reset")

        result = runner.invoke(app, ["ask", "Hello"], env=env)

        assert result.exit_code == 1
        assert "connection reset" in result.output
        assert stored_titles(db_path) == []
