"""Unit tests for runtime configuration."""
import stat
from pathlib import Path

import pytest
from pydantic import ValidationError

from termchat.config import DEFAULT_MODEL, DEFAULT_SYSTEM_MESSAGE, Settings
from termchat.errors import ConfigError


class TestSettingsFromEnv:
    """Tests for Settings.from_env."""

    def test_missing_api_key(self):
        with pytest.raises(ConfigError, match="OPENAI_API_KEY"):
            Settings.from_env({})

    def test_blank_api_key(self):
        with pytest.raises(ConfigError):
            Settings.from_env({"OPENAI_API_KEY": "   "})

    def test_config_error_is_fatal(self):
        with pytest.raises(ConfigError) as excinfo:
            Settings.from_env({})
        assert not excinfo.value.is_recoverable()

    def test_defaults(self):
        settings = Settings.from_env({"OPENAI_API_KEY": "sk-test"})

        assert settings.api_key == "sk-test"
        assert settings.model == DEFAULT_MODEL
        assert settings.max_tokens is None
        assert settings.base_url is None
        assert settings.system_message == DEFAULT_SYSTEM_MESSAGE
        assert settings.data_dir == Path.home() / ".termchat"

    def test_overrides_from_env(self, tmp_path):
        settings = Settings.from_env({
            "OPENAI_API_KEY": "sk-test",
            "OPENAI_BASE_URL": "http://localhost:8080/v1",
            "TERMCHAT_MODEL": "gpt-4",
            "TERMCHAT_MAX_TOKENS": "2048",
            "TERMCHAT_DATA_DIR": str(tmp_path),
            "TERMCHAT_SYSTEM_MESSAGE": "Be brief.",
        })

        assert settings.base_url == "http://localhost:8080/v1"
        assert settings.model == "gpt-4"
        assert settings.max_tokens == 2048
        assert settings.data_dir == tmp_path
        assert settings.db_path == tmp_path / "history.db"
        assert settings.system_message == "Be brief."

    @pytest.mark.parametrize("value", ["lots", "1.5"])
    def test_non_integer_max_tokens(self, value: str):
        with pytest.raises(ConfigError, match="integer"):
            Settings.from_env({"OPENAI_API_KEY": "sk-test", "TERMCHAT_MAX_TOKENS": value})

    @pytest.mark.parametrize("value", ["0", "-5"])
    def test_non_positive_max_tokens(self, value: str):
        with pytest.raises(ConfigError, match="positive"):
            Settings.from_env({"OPENAI_API_KEY": "sk-test", "TERMCHAT_MAX_TOKENS": value})


class TestSettings:
    """Tests for Settings helpers."""

    def test_with_overrides_ignores_none(self):
        settings = Settings(api_key="sk-test", model="gpt-4")

        updated = settings.with_overrides(model=None, max_tokens=100)

        assert updated.model == "gpt-4"
        assert updated.max_tokens == 100
        assert settings.max_tokens is None

    def test_settings_are_frozen(self):
        settings = Settings(api_key="sk-test")
        with pytest.raises(ValidationError):
            settings.model = "gpt-4"

    def test_lock_timing_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(api_key="sk-test", lock_timeout=0)

    def test_ensure_data_dir(self, tmp_path):
        settings = Settings(api_key="sk-test", data_dir=tmp_path / "nested" / "termchat")

        path = settings.ensure_data_dir()

        assert path.is_dir()
        assert stat.S_IMODE(path.stat().st_mode) & 0o077 == 0

    def test_ensure_data_dir_failure(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("")
        settings = Settings(api_key="sk-test", data_dir=blocker / "termchat")

        with pytest.raises(ConfigError):
            settings.ensure_data_dir()
