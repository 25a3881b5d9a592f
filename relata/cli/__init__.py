"""Command line interface for relata."""

from .app import app

__all__ = ["app"]
