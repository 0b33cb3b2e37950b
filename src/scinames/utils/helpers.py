"""General-purpose helpers."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Hashable, Iterable, List, TypeVar

T = TypeVar("T", bound=Hashable)
_WHITESPACE_PATTERN = re.compile(r"\s+")


def normalize_whitespace(text: str) -> str:
    """Collapse repeated whitespace into single spaces."""

    return _WHITESPACE_PATTERN.sub(" ", text.strip())


def ensure_directory(path: Path | str) -> Path:
    """Ensure that a directory exists and return the resolved Path."""

    target = Path(path)
    target.mkdir(parents=True, exist_ok=True)
    return target.resolve()


def unique_in_order(items: Iterable[T]) -> List[T]:
    """Drop repeated items while keeping first-seen order."""

    return list(dict.fromkeys(items))


__all__ = ["normalize_whitespace", "ensure_directory", "unique_in_order"]
