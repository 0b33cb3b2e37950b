"""Top-level package for the SciNames name-change reconciliation engine."""

from __future__ import annotations

from importlib.metadata import version

try:
    __version__ = version("scinames")
except Exception:  # pragma: no cover - fallback during local development
    __version__ = "0.1.0"

from .config.settings import Settings, get_settings
from .entities import Change, ChangeType, Dataset, Name, SimplifiedDate
from .project import Project

__all__ = [
    "__version__",
    "Settings",
    "get_settings",
    "Project",
    "Dataset",
    "Change",
    "ChangeType",
    "Name",
    "SimplifiedDate",
]
