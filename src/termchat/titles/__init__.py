"""Title generation and the split naming rule."""

from .resolver import (
    TITLE_PROMPT_PREFIX,
    TitleResolver,
    clean_title,
    derive_next_title,
    fallback_title,
    unique_title,
)

__all__ = [
    "TITLE_PROMPT_PREFIX",
    "TitleResolver",
    "clean_title",
    "derive_next_title",
    "fallback_title",
    "unique_title",
]
