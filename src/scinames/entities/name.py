"""Scientific names and the per-project registry that canonicalises them."""

from __future__ import annotations

import re
import threading
from functools import total_ordering
from typing import Dict, Iterable, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

_EPITHET_PATTERN = re.compile(r"^[a-z\-]+$")
_WHITESPACE = re.compile(r"\s+")

# Epithets that mark an unidentified or tentative species within a genus.
_UNCERTAIN_EPITHETS = frozenset(
    {"sp", "spp", "sp.", "spp.", "af", "af.", "aff", "aff.", "cf", "cf."}
)


def _split_tokens(value: object) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return tuple(token for token in _WHITESPACE.split(value.strip()) if token)
    return tuple(token for item in value for token in _WHITESPACE.split(str(item).strip()) if token)


@total_ordering
class Name(BaseModel):
    """An immutable scientific name: a genus with optional epithets.

    Names compare by value; the :class:`NameRegistry` of a project hands out
    one shared instance per distinct name so identity checks are cheap.
    Ordering is case-insensitive on the full name, falling back to a
    case-sensitive comparison to break ties.
    """

    model_config = ConfigDict(frozen=True)

    genus: str = Field(min_length=1)
    specific_epithet: Optional[str] = None
    infraspecific_epithets: Tuple[str, ...] = ()

    @field_validator("genus")
    @classmethod
    def _genus_is_a_single_token(cls, value: str) -> str:
        value = value.strip()
        if not value or _WHITESPACE.search(value):
            raise ValueError(f"Genus must be a single non-empty token, got {value!r}")
        return value

    @field_validator("specific_epithet")
    @classmethod
    def _blank_epithet_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        return value or None

    @field_validator("infraspecific_epithets", mode="before")
    @classmethod
    def _split_epithets(cls, value: object) -> Tuple[str, ...]:
        return _split_tokens(value)

    @classmethod
    def create(
        cls,
        genus: str,
        specific_epithet: Optional[str] = None,
        infraspecific_epithets: Iterable[str] | str | None = None,
    ) -> "Name":
        """Build a name, demoting uncertain specific epithets to the infraspecific list.

        ``Alpha sp. 3`` and ``Alpha Beta`` are not species names, so they are
        stored as the genus ``Alpha`` carrying the trailing tokens.
        """

        infra = _split_tokens(infraspecific_epithets)
        epithet = specific_epithet.strip() if specific_epithet else None
        if epithet and (
            not _EPITHET_PATTERN.match(epithet) or epithet.lower() in _UNCERTAIN_EPITHETS
        ):
            return cls(genus=genus, specific_epithet=None, infraspecific_epithets=(epithet, *infra))
        return cls(genus=genus, specific_epithet=epithet, infraspecific_epithets=infra)

    @classmethod
    def from_full_name(cls, text: str | None) -> Optional["Name"]:
        """Parse ``Genus [species [infraspecific ...]]``; blank input yields ``None``."""

        if text is None:
            return None
        tokens = _WHITESPACE.split(text.strip())
        if not tokens or not tokens[0]:
            return None
        if len(tokens) == 1:
            return cls.create(tokens[0])
        return cls.create(tokens[0], tokens[1], tokens[2:])

    @property
    def full_name(self) -> str:
        if self.specific_epithet is None:
            if not self.infraspecific_epithets:
                return self.genus
            parts = list(self.infraspecific_epithets)
            if parts[0].lower() not in _UNCERTAIN_EPITHETS:
                parts.insert(0, "sp")
            return " ".join([self.genus, *parts])
        return " ".join([self.genus, self.specific_epithet, *self.infraspecific_epithets])

    @property
    def binomial_name(self) -> Optional[str]:
        if self.specific_epithet is None:
            return None
        return f"{self.genus} {self.specific_epithet}"

    @property
    def infraspecific_epithets_as_string(self) -> str:
        return " ".join(self.infraspecific_epithets)

    @property
    def has_specific_epithet(self) -> bool:
        return self.specific_epithet is not None

    @property
    def has_subspecific_epithet(self) -> bool:
        return self.specific_epithet is not None and bool(self.infraspecific_epithets)

    def as_binomial(self) -> Optional["Name"]:
        if self.specific_epithet is None:
            return None
        if not self.infraspecific_epithets:
            return self
        return Name(genus=self.genus, specific_epithet=self.specific_epithet)

    def as_genus(self) -> "Name":
        if self.specific_epithet is None and not self.infraspecific_epithets:
            return self
        return Name(genus=self.genus)

    def sort_key(self) -> Tuple[str, str]:
        full = self.full_name
        return (full.lower(), full)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Name):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    def __str__(self) -> str:
        return self.full_name

    def __repr__(self) -> str:
        return f"Name({self.full_name!r})"


class NameRegistry:
    """Hands out one shared :class:`Name` per distinct full name.

    Lookups are lock-free dictionary reads; inserts take a lock so concurrent
    readers and writers always agree on the canonical instance. Entries live
    as long as the registry, which is owned by a single project.
    """

    def __init__(self) -> None:
        self._names: Dict[str, Name] = {}
        self._lock = threading.Lock()

    def canonical(self, name: Name) -> Name:
        key = name.full_name
        existing = self._names.get(key)
        if existing is not None and existing == name:
            return existing
        with self._lock:
            existing = self._names.setdefault(key, name)
        # Structurally different names may render alike; only equal ones are shared.
        return existing if existing == name else name

    def get(
        self,
        genus: str,
        specific_epithet: Optional[str] = None,
        infraspecific_epithets: Iterable[str] | str | None = None,
    ) -> Name:
        return self.canonical(Name.create(genus, specific_epithet, infraspecific_epithets))

    def get_from_full_name(self, text: str | None) -> Optional[Name]:
        parsed = Name.from_full_name(text)
        return None if parsed is None else self.canonical(parsed)

    def genus(self, name: Name) -> Name:
        return self.canonical(name.as_genus())

    def binomial(self, name: Name) -> Optional[Name]:
        binomial = name.as_binomial()
        return None if binomial is None else self.canonical(binomial)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, Name) and self._names.get(name.full_name) == name

    def __len__(self) -> int:
        return len(self._names)

    def __iter__(self):
        return iter(list(self._names.values()))


__all__ = ["Name", "NameRegistry"]
