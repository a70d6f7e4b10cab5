"""CLI package for ask-sh."""

from .app import app

__all__ = ["app"]
