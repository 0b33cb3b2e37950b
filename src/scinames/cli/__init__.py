"""Command-line interface for the scinames package."""

from .main import app

__all__ = ["app"]
