"""Command-line interface for termchat."""

from .app import app, main

__all__ = ["app", "main"]
