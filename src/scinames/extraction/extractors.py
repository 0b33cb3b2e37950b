"""Configurable extraction of scientific names from dataset rows.

An extractor specification is a chain of alternatives such as::

    scientificName(scientificName) or genusAndEpithets(genus, species)

Alternatives are tried in order; the first one producing names wins unless
every alternative is requested.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, ClassVar, Dict, Iterable, List, Sequence, Tuple, Type

from ..config.policies import DEFAULT_NAME_EXTRACTORS
from ..exceptions import NameExtractorParseError
from ..utils.helpers import normalize_whitespace
from ..utils.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover
    from ..entities.dataset import DatasetRow
    from ..entities.name import Name, NameRegistry

_LOGGER = get_logger(module=__name__)

_EXTRACTOR_PATTERN = re.compile(r"^\s*(\w+)\(([\w,\s]+)\)\s*$")
_ALTERNATIVES_SPLIT = re.compile(r"\s+or\s+")
_ARGUMENTS_SPLIT = re.compile(r"\s*,\s*")


class NameExtractor(ABC):
    """One alternative of an extractor chain, bound to column names."""

    name: ClassVar[str]
    min_arguments: ClassVar[int] = 1
    max_arguments: ClassVar[int] = 1
    help: ClassVar[str] = ""

    def __init__(self, columns: Sequence[str]) -> None:
        columns = tuple(column.strip() for column in columns if column.strip())
        if not self.min_arguments <= len(columns) <= self.max_arguments:
            if self.min_arguments == self.max_arguments:
                expected = str(self.min_arguments)
            else:
                expected = f"{self.min_arguments} to {self.max_arguments}"
            raise NameExtractorParseError(
                f"Extractor '{self.name}' takes {expected} column(s), got {len(columns)}: {', '.join(columns)}"
            )
        self.columns: Tuple[str, ...] = columns

    @abstractmethod
    def extract(self, row: "DatasetRow", registry: "NameRegistry") -> List["Name"]:
        """Return the names found in ``row`` (possibly none)."""

    def _cell(self, row: "DatasetRow", column: str) -> str:
        return normalize_whitespace(row.get(column) or "")

    def __str__(self) -> str:
        return f"{self.name}({', '.join(self.columns)})"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self)!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NameExtractor):
            return NotImplemented
        return type(self) is type(other) and self.columns == other.columns

    def __hash__(self) -> int:
        return hash((type(self), self.columns))


class ScientificNameExtractor(NameExtractor):
    name = "scientificName"
    help = "scientificName(column): parse the whole cell as a scientific name."

    def extract(self, row: "DatasetRow", registry: "NameRegistry") -> List["Name"]:
        parsed = registry.get_from_full_name(self._cell(row, self.columns[0]))
        return [parsed] if parsed is not None else []


class BinomialNameExtractor(NameExtractor):
    name = "binomialName"
    help = "binomialName(column): parse the cell and keep only genus and specific epithet."

    def extract(self, row: "DatasetRow", registry: "NameRegistry") -> List["Name"]:
        parsed = registry.get_from_full_name(self._cell(row, self.columns[0]))
        if parsed is None:
            return []
        binomial = registry.binomial(parsed)
        return [binomial] if binomial is not None else []


class GenusAndEpithetsExtractor(NameExtractor):
    name = "genusAndEpithets"
    max_arguments = 3
    help = (
        "genusAndEpithets(genus[, specificEpithet[, infraspecificEpithets]]): "
        "assemble a name from separate columns."
    )

    def extract(self, row: "DatasetRow", registry: "NameRegistry") -> List["Name"]:
        # Absent genus or species columns let the next alternative try;
        # an absent infraspecific column just yields the binomial.
        if not all(row.has_column(column) for column in self.columns[:2]):
            return []
        genus = self._cell(row, self.columns[0])
        if not genus:
            return []
        epithet = self._cell(row, self.columns[1]) if len(self.columns) > 1 else ""
        if not epithet:
            return [registry.get(genus)]
        infraspecific = self._cell(row, self.columns[2]) if len(self.columns) > 2 else ""
        return [registry.get(genus, epithet, infraspecific or None)]


class NameExtractorFactory:
    """Parses, serialises and runs extractor chains."""

    EXTRACTORS: ClassVar[Dict[str, Type[NameExtractor]]] = {
        ScientificNameExtractor.name: ScientificNameExtractor,
        BinomialNameExtractor.name: BinomialNameExtractor,
        GenusAndEpithetsExtractor.name: GenusAndEpithetsExtractor,
    }

    @classmethod
    def parse(cls, text: str | None) -> List[NameExtractor]:
        """Parse an ``a(x) or b(y, z)`` chain; blank input yields no extractors."""

        if text is None or not text.strip():
            return []
        extractors: List[NameExtractor] = []
        for alternative in _ALTERNATIVES_SPLIT.split(text.strip()):
            match = _EXTRACTOR_PATTERN.match(alternative)
            if match is None:
                raise NameExtractorParseError(f"Could not parse name extractor '{alternative}'")
            extractor_name, arguments = match.group(1), match.group(2)
            extractor_type = cls.EXTRACTORS.get(extractor_name)
            if extractor_type is None:
                raise NameExtractorParseError(
                    f"Unknown name extractor '{extractor_name}'; expected one of: {', '.join(cls.EXTRACTORS)}"
                )
            extractors.append(extractor_type(_ARGUMENTS_SPLIT.split(arguments.strip())))
        return extractors

    @staticmethod
    def serialize(extractors: Iterable[NameExtractor]) -> str:
        return " or ".join(str(extractor) for extractor in extractors)

    @classmethod
    def default_extractors(cls) -> List[NameExtractor]:
        return cls.parse(DEFAULT_NAME_EXTRACTORS)

    @staticmethod
    def extract(
        extractors: Sequence[NameExtractor],
        row: "DatasetRow",
        registry: "NameRegistry",
        *,
        find_all: bool = False,
    ) -> List["Name"]:
        """Run the chain over ``row``; stop at the first match unless ``find_all``."""

        found: Dict["Name", None] = {}
        for extractor in extractors:
            names = extractor.extract(row, registry)
            if not names:
                continue
            found.update(dict.fromkeys(names))
            if not find_all:
                break
        return list(found)

    @classmethod
    def supported_extractors(cls) -> str:
        lines = [extractor.help for extractor in cls.EXTRACTORS.values()]
        lines.append("Combine alternatives with 'or'; the first one producing a name is used.")
        return "\n".join(lines)


def parse_name_extractors(text: str | None) -> List[NameExtractor]:
    """Module-level shortcut for :meth:`NameExtractorFactory.parse`."""

    extractors = NameExtractorFactory.parse(text)
    _LOGGER.debug("Parsed name extractors", spec=text, count=len(extractors))
    return extractors


__all__ = [
    "NameExtractor",
    "ScientificNameExtractor",
    "BinomialNameExtractor",
    "GenusAndEpithetsExtractor",
    "NameExtractorFactory",
    "parse_name_extractors",
]
