"""Runtime configuration.

Centralizes environment variables, paths and defaults so the rest of the
package never reads os.environ directly.
"""

import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from .errors import ConfigError

API_KEY_ENV = "OPENAI_API_KEY"

DEFAULT_MODEL = "gpt-3.5-turbo"

DEFAULT_SYSTEM_MESSAGE = (
    "You are ChatGPT, a large language model trained by OpenAI. "
    "Answer as concisely as possible."
)

DB_FILENAME = "history.db"

# Exclusivity lock: retry every LOCK_INTERVAL seconds for LOCK_TIMEOUT seconds
LOCK_TIMEOUT = 1.0
LOCK_INTERVAL = 0.05

# Longest title accepted by the rename dialog
MAX_TITLE_LENGTH = 40


class Settings(BaseModel):
    """Resolved application settings."""

    model_config = ConfigDict(frozen=True)

    api_key: str = Field(description="Bearer credential for the completion service")
    base_url: str | None = Field(default=None, description="Optional API base URL override")
    model: str = Field(default=DEFAULT_MODEL, description="Chat model used for every request")
    max_tokens: int | None = Field(
        default=None,
        description="Token budget override (None uses the model's context window)"
    )
    data_dir: Path = Field(default_factory=lambda: Path.home() / ".termchat")
    system_message: str = Field(default=DEFAULT_SYSTEM_MESSAGE)
    lock_timeout: float = Field(default=LOCK_TIMEOUT, gt=0)
    lock_interval: float = Field(default=LOCK_INTERVAL, gt=0)

    @property
    def db_path(self) -> Path:
        """Path of the history database (also the lock file)."""
        return self.data_dir / DB_FILENAME

    @classmethod
    def from_env(cls, env: dict[str, str] | None = None) -> "Settings":
        """Build settings from environment variables.

        Environment variables:
            OPENAI_API_KEY: API key (required)
            OPENAI_BASE_URL: API base URL (optional)
            TERMCHAT_MODEL: Chat model (default: gpt-3.5-turbo)
            TERMCHAT_MAX_TOKENS: Token budget override (default: model context window)
            TERMCHAT_DATA_DIR: Data directory (default: ~/.termchat)
            TERMCHAT_SYSTEM_MESSAGE: System prompt

        Raises:
            ConfigError: If the API key is missing or a value is invalid
        """
        env = os.environ if env is None else env

        api_key = env.get(API_KEY_ENV, "").strip()
        if not api_key:
            raise ConfigError(
                f"Please set `{API_KEY_ENV}` environment variable. You can find your "
                "API key at https://platform.openai.com/account/api-keys."
            )

        max_tokens = None
        raw_max = env.get("TERMCHAT_MAX_TOKENS")
        if raw_max:
            try:
                max_tokens = int(raw_max)
            except ValueError:
                raise ConfigError(f"TERMCHAT_MAX_TOKENS must be an integer, got {raw_max!r}") from None
            if max_tokens <= 0:
                raise ConfigError("TERMCHAT_MAX_TOKENS must be positive")

        kwargs = {
            "api_key": api_key,
            "base_url": env.get("OPENAI_BASE_URL") or None,
            "model": env.get("TERMCHAT_MODEL") or DEFAULT_MODEL,
            "max_tokens": max_tokens,
        }
        if env.get("TERMCHAT_DATA_DIR"):
            kwargs["data_dir"] = Path(env["TERMCHAT_DATA_DIR"]).expanduser()
        if env.get("TERMCHAT_SYSTEM_MESSAGE"):
            kwargs["system_message"] = env["TERMCHAT_SYSTEM_MESSAGE"]

        return cls(**kwargs)

    def with_overrides(self, **overrides) -> "Settings":
        """Return a copy with the non-None overrides applied."""
        updates = {k: v for k, v in overrides.items() if v is not None}
        return self.model_copy(update=updates)

    def ensure_data_dir(self) -> Path:
        """Create the data directory (mode 0700) and return it."""
        try:
            self.data_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigError(f"cannot create data directory {self.data_dir}: {e}") from e
        return self.data_dir
