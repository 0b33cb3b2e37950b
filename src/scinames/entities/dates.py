"""Partial calendar dates attached to datasets and citations."""

from __future__ import annotations

import calendar
import re
from datetime import date
from functools import total_ordering
from typing import Dict, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

_MONTHS_BY_NAME: Dict[str, int] = {}
for _index in range(1, 13):
    _MONTHS_BY_NAME[calendar.month_name[_index].lower()] = _index
    _MONTHS_BY_NAME[calendar.month_abbr[_index].lower()] = _index

_MONTH_DAY_YEAR = re.compile(r"^([A-Za-z]+)\.?\s+(\d{1,2}),\s*(\d{1,4})$")
_MONTH_YEAR = re.compile(r"^([A-Za-z]+)\.?\s+(\d{1,4})$")
_ISO_LIKE = re.compile(r"^(\d{1,4})(?:-(\d{1,2}))?(?:-(\d{1,2}))?$")


@total_ordering
class SimplifiedDate(BaseModel):
    """A year with optional month and day; ``0`` marks a missing component.

    Dates order by the first calendar day they cover, so ``1990`` sorts with
    ``January 1, 1990``. A date without a year sorts before every other date.
    """

    model_config = ConfigDict(frozen=True)

    year: int = Field(default=0, ge=0)
    month: int = Field(default=0, ge=0, le=12)
    day: int = Field(default=0, ge=0, le=31)

    @model_validator(mode="after")
    def _check_components(self) -> "SimplifiedDate":
        if self.day and not self.month:
            raise ValueError("A day requires a month")
        if self.day and self.year:
            last_day = calendar.monthrange(self.year, self.month)[1]
            if self.day > last_day:
                raise ValueError(f"Day {self.day} does not exist in {self.year}-{self.month:02d}")
        return self

    @classmethod
    def parse(cls, text: str) -> "SimplifiedDate":
        """Parse ``March 5, 1990``, ``Mar 1990``, ``1990-03-05``, ``1990-3`` or ``1990``."""

        value = text.strip()
        match = _MONTH_DAY_YEAR.match(value)
        if match:
            return cls(year=int(match.group(3)), month=_month_number(match.group(1)), day=int(match.group(2)))
        match = _MONTH_YEAR.match(value)
        if match:
            return cls(year=int(match.group(2)), month=_month_number(match.group(1)))
        match = _ISO_LIKE.match(value)
        if match:
            year, month, day = match.groups()
            return cls(year=int(year), month=int(month or 0), day=int(day or 0))
        raise ValueError(f"Could not parse date {text!r}")

    @classmethod
    def from_attributes(cls, attributes: Mapping[str, str]) -> "SimplifiedDate":
        """Read ``year``/``month``/``day`` attributes, treating absent ones as unset."""

        def _component(key: str) -> int:
            raw = (attributes.get(key) or "").strip()
            if not raw:
                return 0
            try:
                return int(raw)
            except ValueError as exc:
                raise ValueError(f"Date attribute {key!r} is not an integer: {raw!r}") from exc

        return cls(year=_component("year"), month=_component("month"), day=_component("day"))

    def to_attributes(self) -> Dict[str, str]:
        attributes = {"year": str(self.year)}
        if self.month:
            attributes["month"] = str(self.month)
            if self.day:
                attributes["day"] = str(self.day)
        return attributes

    @property
    def is_set(self) -> bool:
        return self.year != 0

    @property
    def year_as_string(self) -> str:
        return str(self.year) if self.year else "NA"

    def as_date(self) -> Optional[date]:
        """The first day covered by this date, or ``None`` without a year."""

        if not self.year:
            return None
        return date(self.year, self.month or 1, self.day or 1)

    def as_yyyymmdd(self, separator: str = "-") -> str:
        parts = [f"{self.year:04d}"]
        if self.month:
            parts.append(f"{self.month:02d}")
            if self.day:
                parts.append(f"{self.day:02d}")
        return separator.join(parts)

    def sort_key(self) -> Tuple[int, int, int]:
        if not self.year:
            return (0, 0, 0)
        return (self.year, self.month or 1, self.day or 1)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, SimplifiedDate):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    def __str__(self) -> str:
        if not self.year:
            return "(none)"
        if not self.month:
            return str(self.year)
        month = calendar.month_name[self.month]
        if not self.day:
            return f"{month} {self.year}"
        return f"{month} {self.day}, {self.year}"


def _month_number(text: str) -> int:
    number = _MONTHS_BY_NAME.get(text.lower())
    if number is None:
        raise ValueError(f"Unknown month name {text!r}")
    return number


__all__ = ["SimplifiedDate"]
