"""Exception hierarchy for the reconciliation engine."""

from __future__ import annotations


class SciNamesError(Exception):
    """Base class for errors raised by scinames."""


class ParseError(SciNamesError, ValueError):
    """Raised when textual input cannot be parsed."""


class NameExtractorParseError(ParseError):
    """A name extractor specification is malformed."""


class ProjectParseError(ParseError):
    """A persisted project document is malformed."""


class FilterParseError(ProjectParseError):
    """A change filter description names an unknown filter or bad attributes."""


class ConsistencyError(SciNamesError, RuntimeError):
    """An internal invariant was violated; indicates a programming error."""


class GeneratorConfigurationError(SciNamesError, ValueError):
    """A change generator was requested or configured incorrectly."""


__all__ = [
    "SciNamesError",
    "ParseError",
    "NameExtractorParseError",
    "ProjectParseError",
    "FilterParseError",
    "ConsistencyError",
    "GeneratorConfigurationError",
]
