"""Chainable change filters deciding which changes a project accepts."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import Counter
from typing import TYPE_CHECKING, Callable, ClassVar, Dict, List, Mapping, Optional, Set

from ..entities.change import Change, ChangeType
from ..exceptions import FilterParseError
from ..utils.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover
    from ..project import Project

_LOGGER = get_logger(module=__name__)


class ChangeFilter(ABC):
    """A predicate over changes, linked to the filters that run before it.

    ``test`` consults the earlier filters first; a change rejected anywhere
    in the chain is rejected. Every rejection is remembered so the caller
    can report what a filter removed.
    """

    short_name: ClassVar[str]

    def __init__(self, *, active: bool = True) -> None:
        self._active = active
        self.previous: Optional[ChangeFilter] = None
        self._filtered: Set[Change] = set()
        self._revision = 0

    @property
    def active(self) -> bool:
        return self._active

    @active.setter
    def active(self, value: bool) -> None:
        if value != self._active:
            self._active = value
            self._revision += 1
            self._filtered.clear()

    @property
    def version(self) -> int:
        """Changes whenever this filter or an earlier one is reconfigured."""

        own = self._revision
        return own + (self.previous.version if self.previous is not None else 0)

    @abstractmethod
    def accepts(self, change: Change) -> bool:
        """Return ``True`` if this filter alone keeps ``change``."""

    def test(self, change: Change) -> bool:
        if self.previous is not None and not self.previous.test(change):
            return False
        if not self._active:
            return True
        if self.accepts(change):
            return True
        self._filtered.add(change)
        return False

    __call__ = test

    def add_change_filter(self, change_filter: "ChangeFilter") -> None:
        """Append ``change_filter`` to the end of this chain."""

        if change_filter is self:
            raise ValueError("A filter cannot follow itself")
        if self.previous is None:
            self.previous = change_filter
            self._revision += 1
        else:
            self.previous.add_change_filter(change_filter)

    def chain(self) -> List["ChangeFilter"]:
        """This filter followed by every filter added after it."""

        ordered: List[ChangeFilter] = []
        cursor: Optional[ChangeFilter] = self
        while cursor is not None:
            ordered.append(cursor)
            cursor = cursor.previous
        return ordered

    @property
    def filtered_changes(self) -> Set[Change]:
        return set(self._filtered)

    @property
    def filtered_count(self) -> int:
        return len(self._filtered)

    def filtered_by_type(self) -> Dict[ChangeType, int]:
        return dict(Counter(change.type for change in self._filtered))

    @property
    def own_description(self) -> str:
        return f"{self.short_name} filter"

    @property
    def description(self) -> str:
        text = self.own_description if self._active else f"{self.own_description} (inactive)"
        if self.previous is not None:
            return f"{text} enclosing {self.previous.description}"
        return text

    def to_attributes(self) -> Dict[str, str]:
        return {"name": self.short_name, "active": "yes" if self._active else "no"}

    def __str__(self) -> str:
        return self.description


class NullChangeFilter(ChangeFilter):
    """Accepts every change; heads the chain of a fresh project."""

    short_name = "null"

    def accepts(self, change: Change) -> bool:
        return True


class IgnoreIgnoredChangeFilter(ChangeFilter):
    """Rejects changes whose ``ignored`` property is ``yes``."""

    short_name = "ignoreIgnored"

    def accepts(self, change: Change) -> bool:
        return not change.is_property_set_true("ignored")


class IgnoreErrorChangeTypeFilter(ChangeFilter):
    short_name = "ignoreErrorChangeType"

    def accepts(self, change: Change) -> bool:
        return change.type != ChangeType.ERROR


class IgnoreSelfRenamesChangeFilter(ChangeFilter):
    """Rejects renames that map a name set onto itself."""

    short_name = "ignoreSelfRenames"

    def accepts(self, change: Change) -> bool:
        if change.type != ChangeType.RENAME:
            return True
        return set(change.from_names) != set(change.to_names)


class SkipChangesUnlessAddedBeforeChangeFilter(ChangeFilter):
    """Keeps a change only if one of its names appeared in a dataset before ``year``.

    Appearance is judged on the names themselves (rows and explicit changes),
    not on clusters, because clusters are built from the accepted changes.
    """

    short_name = "skipChangesUnlessAddedBefore"

    def __init__(self, project: "Project", year: int, *, active: bool = True) -> None:
        super().__init__(active=active)
        self.project = project
        self.year = year

    @property
    def own_description(self) -> str:
        return f"{self.short_name} filter (year {self.year})"

    def accepts(self, change: Change) -> bool:
        for name in change.get_all_names():
            datasets = self.project.get_datasets_for_name(name)
            if any(0 < dataset.date.year < self.year for dataset in datasets):
                return True
        return False

    def to_attributes(self) -> Dict[str, str]:
        attributes = super().to_attributes()
        attributes["year"] = str(self.year)
        return attributes


_SIMPLE_FILTERS: Dict[str, Callable[..., ChangeFilter]] = {
    NullChangeFilter.short_name: NullChangeFilter,
    IgnoreIgnoredChangeFilter.short_name: IgnoreIgnoredChangeFilter,
    IgnoreErrorChangeTypeFilter.short_name: IgnoreErrorChangeTypeFilter,
    IgnoreSelfRenamesChangeFilter.short_name: IgnoreSelfRenamesChangeFilter,
}

FILTER_NAMES = (*_SIMPLE_FILTERS, SkipChangesUnlessAddedBeforeChangeFilter.short_name)


def _parse_active(value: Optional[str]) -> bool:
    if value is None:
        return True
    lowered = value.strip().lower()
    if lowered in {"yes", "true"}:
        return True
    if lowered in {"no", "false"}:
        return False
    raise FilterParseError(f"Filter attribute 'active' must be yes or no, got {value!r}")


def create_filter(project: "Project", attributes: Mapping[str, str]) -> ChangeFilter:
    """Build a filter from its persisted attributes (``name``, ``active``, ``year``)."""

    name = (attributes.get("name") or "").strip()
    if not name:
        raise FilterParseError("Filter is missing its 'name' attribute")
    active = _parse_active(attributes.get("active"))
    _LOGGER.debug("Creating change filter", name=name, active=active)
    if name in _SIMPLE_FILTERS:
        return _SIMPLE_FILTERS[name](active=active)
    if name == SkipChangesUnlessAddedBeforeChangeFilter.short_name:
        raw_year = (attributes.get("year") or "").strip()
        try:
            year = int(raw_year)
        except ValueError:
            raise FilterParseError(f"Filter '{name}' needs an integer 'year' attribute, got {raw_year!r}") from None
        return SkipChangesUnlessAddedBeforeChangeFilter(project, year, active=active)
    raise FilterParseError(f"Unknown change filter '{name}'; expected one of: {', '.join(FILTER_NAMES)}")


__all__ = [
    "ChangeFilter",
    "NullChangeFilter",
    "IgnoreIgnoredChangeFilter",
    "IgnoreErrorChangeTypeFilter",
    "IgnoreSelfRenamesChangeFilter",
    "SkipChangesUnlessAddedBeforeChangeFilter",
    "FILTER_NAMES",
    "create_filter",
]
