"""Taxonomic changes asserted by, or inferred for, a dataset."""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass, field
from functools import total_ordering
from typing import TYPE_CHECKING, ClassVar, Dict, FrozenSet, Iterable, List, Optional, Tuple
from uuid import uuid4

from pydantic import BaseModel, Field

from ..exceptions import ParseError
from ..utils.helpers import unique_in_order
from .dates import SimplifiedDate
from .name import Name, NameRegistry

if TYPE_CHECKING:  # pragma: no cover
    from .dataset import Dataset

_AND_SPLIT = re.compile(r"\s*\band\b\s*")


@total_ordering
class ChangeType:
    """An interned, lower-cased change type such as ``lump`` or ``added``.

    The set is open: persisted projects may carry types this engine does not
    interpret, and those survive a load/save cycle untouched.
    """

    _registry: ClassVar[Dict[str, "ChangeType"]] = {}
    _lock: ClassVar[threading.Lock] = threading.Lock()

    ADDITION: ClassVar["ChangeType"]
    DELETION: ClassVar["ChangeType"]
    RENAME: ClassVar["ChangeType"]
    LUMP: ClassVar["ChangeType"]
    SPLIT: ClassVar["ChangeType"]
    COMPLEX: ClassVar["ChangeType"]
    ERROR: ClassVar["ChangeType"]

    __slots__ = ("_type",)

    def __init__(self, type_name: str) -> None:
        self._type = type_name

    @classmethod
    def of(cls, type_name: str) -> "ChangeType":
        key = (type_name or "").strip().lower()
        if not key:
            raise ValueError("Change type must not be blank")
        existing = cls._registry.get(key)
        if existing is not None:
            return existing
        with cls._lock:
            return cls._registry.setdefault(key, cls(key))

    @property
    def type(self) -> str:
        return self._type

    @property
    def is_recognized(self) -> bool:
        return self in RECOGNIZED_TYPES

    def invert(self) -> "ChangeType":
        try:
            return _INVERSES[self]
        except KeyError:
            raise ValueError(f"Change type {self._type!r} has no inverse") from None

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, ChangeType):
            return NotImplemented
        return self._type < other._type

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ChangeType):
            return NotImplemented
        return self._type == other._type

    def __hash__(self) -> int:
        return hash(self._type)

    def __str__(self) -> str:
        return self._type

    def __repr__(self) -> str:
        return f"ChangeType({self._type!r})"


ChangeType.ADDITION = ChangeType.of("added")
ChangeType.DELETION = ChangeType.of("deleted")
ChangeType.RENAME = ChangeType.of("rename")
ChangeType.LUMP = ChangeType.of("lump")
ChangeType.SPLIT = ChangeType.of("split")
ChangeType.COMPLEX = ChangeType.of("complex")
ChangeType.ERROR = ChangeType.of("error")

RECOGNIZED_TYPES: FrozenSet[ChangeType] = frozenset(
    {
        ChangeType.ADDITION,
        ChangeType.DELETION,
        ChangeType.RENAME,
        ChangeType.LUMP,
        ChangeType.SPLIT,
        ChangeType.COMPLEX,
        ChangeType.ERROR,
    }
)

_INVERSES: Dict[ChangeType, ChangeType] = {
    ChangeType.ADDITION: ChangeType.DELETION,
    ChangeType.DELETION: ChangeType.ADDITION,
    ChangeType.RENAME: ChangeType.RENAME,
    ChangeType.LUMP: ChangeType.SPLIT,
    ChangeType.SPLIT: ChangeType.LUMP,
    ChangeType.COMPLEX: ChangeType.COMPLEX,
    ChangeType.ERROR: ChangeType.ERROR,
}


class Citation(BaseModel):
    """A bibliographic reference supporting a change."""

    text: str
    date: SimplifiedDate = Field(default_factory=SimplifiedDate)
    url: Optional[str] = None
    properties: Dict[str, str] = Field(default_factory=dict)
    tags: List[str] = Field(default_factory=list)

    def __str__(self) -> str:
        return f"{self.text} ({self.date})"


def names_to_string(names: Iterable[Name]) -> str:
    """Render names the way :func:`convert_and_string_to_names` reads them."""

    ordered = sorted(set(names))
    if len(ordered) == 1:
        return ordered[0].full_name
    return " and ".join(f'"{name.full_name}"' for name in ordered)


def convert_and_string_to_names(text: str, registry: NameRegistry) -> List[Name]:
    """Parse ``"Alpha beta" and "Gamma delta"`` into canonical names."""

    value = (text or "").strip()
    if not value:
        return []
    names: List[Name] = []
    for token in _AND_SPLIT.split(value):
        cleaned = token.strip().strip("'\"").strip()
        if not cleaned:
            continue
        try:
            name = registry.get_from_full_name(cleaned)
        except ValueError as exc:
            raise ParseError(f"Could not parse name {token!r} in {text!r}") from exc
        if name is not None and name not in names:
            names.append(name)
    return names


def _distinct(names: Iterable[Name]) -> Tuple[Name, ...]:
    return tuple(unique_in_order(names))


class Change:
    """A taxonomic change recorded in, or inferred for, one dataset.

    ``from_names`` and ``to_names`` are ordered sets. Changes are identified
    by their ``id``; two changes with identical content are still distinct.
    """

    def __init__(
        self,
        dataset: "Dataset",
        change_type: ChangeType | str,
        from_names: Iterable[Name] = (),
        to_names: Iterable[Name] = (),
        *,
        explicit: bool = True,
        change_id: Optional[str] = None,
        properties: Optional[Dict[str, str]] = None,
        citations: Optional[Iterable[Citation]] = None,
    ) -> None:
        self.id = change_id or str(uuid4())
        self.dataset = dataset
        self._type = change_type if isinstance(change_type, ChangeType) else ChangeType.of(change_type)
        self._from = _distinct(from_names)
        self._to = _distinct(to_names)
        self.explicit = explicit
        self.properties: Dict[str, str] = dict(properties or {})
        self.citations: List[Citation] = list(citations or [])

    @property
    def type(self) -> ChangeType:
        return self._type

    @property
    def from_names(self) -> Tuple[Name, ...]:
        return self._from

    @property
    def to_names(self) -> Tuple[Name, ...]:
        return self._to

    def set_type(self, change_type: ChangeType | str) -> None:
        self._type = change_type if isinstance(change_type, ChangeType) else ChangeType.of(change_type)
        self._notify()

    def set_from(self, names: Iterable[Name]) -> None:
        self._from = _distinct(names)
        self._notify()

    def set_to(self, names: Iterable[Name]) -> None:
        self._to = _distinct(names)
        self._notify()

    def set_property(self, key: str, value: str) -> None:
        self.properties[key] = value
        self._notify()

    def add_citation(self, citation: Citation) -> None:
        self.citations.append(citation)

    def _notify(self) -> None:
        if self.explicit and self.dataset is not None:
            self.dataset.on_change_changed(self)

    def is_property_set_true(self, key: str) -> bool:
        return self.properties.get(key, "").strip().lower() == "yes"

    def get_all_names(self) -> Tuple[Name, ...]:
        return _distinct((*self._from, *self._to))

    def touches(self, names: Iterable[Name]) -> bool:
        wanted = set(names)
        return any(name in wanted for name in self.get_all_names())

    @property
    def from_string(self) -> str:
        return " and ".join(name.full_name for name in self._from)

    @property
    def to_string(self) -> str:
        return " and ".join(name.full_name for name in self._to)

    def __str__(self) -> str:
        if self._type == ChangeType.ADDITION and not self._from:
            return f"{self._type} {' + '.join(name.full_name for name in self._to)}"
        if self._type == ChangeType.DELETION and not self._to:
            return f"{self._type} {' + '.join(name.full_name for name in self._from)}"
        source = " + ".join(name.full_name for name in self._from)
        target = " + ".join(name.full_name for name in self._to)
        citation = self.dataset.citation if self.dataset is not None else "(no dataset)"
        return f"{source} -> {target} [{self._type}, {citation}]"

    def __repr__(self) -> str:
        return f"Change(id={self.id!r}, {self})"


class PotentialChange(Change):
    """A change proposed by a generator, pending review."""

    def __init__(
        self,
        dataset: "Dataset",
        change_type: ChangeType | str,
        from_names: Iterable[Name] = (),
        to_names: Iterable[Name] = (),
        *,
        generator: str,
        note: str = "",
    ) -> None:
        super().__init__(dataset, change_type, from_names, to_names, explicit=False)
        self.generator = generator
        self.note = note
        if note:
            self.properties["note"] = note

    def submit(self) -> Change:
        """Record this proposal as an explicit change of its dataset."""

        self.explicit = True
        self.dataset.add_explicit_change(self)
        return self

    def cancel(self) -> None:
        """Discard the proposal; nothing was recorded, so nothing to undo."""


@dataclass(frozen=True)
class Synonymy:
    """A directed ``from -> to`` synonym relation observed in a dataset."""

    from_name: Name
    to_name: Name
    dataset: "Dataset"
    note: str = field(default="", compare=False)

    def to_potential_change(self, generator: str) -> PotentialChange:
        return PotentialChange(
            self.dataset,
            ChangeType.RENAME,
            [self.from_name],
            [self.to_name],
            generator=generator,
            note=self.note,
        )


__all__ = [
    "ChangeType",
    "RECOGNIZED_TYPES",
    "Citation",
    "Change",
    "PotentialChange",
    "Synonymy",
    "names_to_string",
    "convert_and_string_to_names",
]
