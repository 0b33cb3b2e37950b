"""Utility helpers shared across the reconciliation engine."""

from .helpers import ensure_directory, normalize_whitespace, unique_in_order
from .logging import configure_logging, get_logger, log_timing, logging_context

__all__ = [
    "configure_logging",
    "get_logger",
    "log_timing",
    "logging_context",
    "ensure_directory",
    "normalize_whitespace",
    "unique_in_order",
]
