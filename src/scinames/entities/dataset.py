"""Datasets: dated tables of rows plus the changes they assert."""

from __future__ import annotations

import threading
from collections import Counter
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar, Dict, Iterable, Iterator, List, Mapping, Optional, Set, Tuple

from ..extraction.extractors import NameExtractor, NameExtractorFactory
from ..utils.logging import get_logger
from .change import Change, ChangeType
from .dates import SimplifiedDate
from .name import Name, NameRegistry

if TYPE_CHECKING:  # pragma: no cover
    from ..project import Project

_LOGGER = get_logger(module=__name__)


@dataclass(frozen=True)
class DatasetColumn:
    """A named column; ``DatasetColumn.of`` returns one shared instance per name."""

    name: str

    _interned: ClassVar[Dict[str, "DatasetColumn"]] = {}
    _lock: ClassVar[threading.Lock] = threading.Lock()

    @classmethod
    def of(cls, name: str | None) -> "DatasetColumn":
        if name is None or not name.strip():
            raise ValueError("Dataset column names must not be blank")
        existing = cls._interned.get(name)
        if existing is not None:
            return existing
        with cls._lock:
            return cls._interned.setdefault(name, cls(name))

    def __str__(self) -> str:
        return f"column '{self.name}'"


def _column(column: DatasetColumn | str) -> DatasetColumn:
    return column if isinstance(column, DatasetColumn) else DatasetColumn.of(column)


class DatasetRow:
    """An ordered mapping of columns to cell values.

    Rows hash by identity: two rows with the same cells are still two rows.
    """

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[DatasetColumn | str, str] | None = None) -> None:
        self._values: Dict[DatasetColumn, str] = {}
        for column, value in (values or {}).items():
            self._values[_column(column)] = "" if value is None else str(value)

    def get(self, column: DatasetColumn | str) -> Optional[str]:
        return self._values.get(_column(column))

    def has_column(self, column: DatasetColumn | str) -> bool:
        return _column(column) in self._values

    @property
    def columns(self) -> List[DatasetColumn]:
        return list(self._values)

    def items(self) -> Iterator[Tuple[DatasetColumn, str]]:
        return iter(self._values.items())

    def as_dict(self) -> Dict[str, str]:
        return {column.name: value for column, value in self._values.items()}

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"DatasetRow({self.as_dict()!r})"


class Dataset:
    """A dated checklist or dataset within a project.

    A checklist lists every name recognised at its date, so the names it
    gains or loses relative to the previous dataset become implicit
    additions and deletions. A plain dataset only asserts its explicit
    changes; its recognised names are inherited from the previous dataset.

    Derived views (names per row, implicit changes) are cached and keyed by
    version counters, so any mutation through this class invalidates them.
    """

    def __init__(
        self,
        name: str,
        date: SimplifiedDate | None = None,
        *,
        is_checklist: bool = True,
        name_extractors: str | None = None,
        registry: NameRegistry | None = None,
    ) -> None:
        self.name = name
        self._date = date or SimplifiedDate()
        self._is_checklist = is_checklist
        self._rows: List[DatasetRow] = []
        self._columns: List[DatasetColumn] = []
        self._explicit_changes: List[Change] = []
        self._previous: Optional[Dataset] = None
        self.properties: Dict[str, str] = {}
        self.project: Optional["Project"] = None
        self.registry = registry or NameRegistry()
        self.find_all_names = False
        self._name_extractors: List[NameExtractor] = []
        self.name_extractors_explicit = False
        self._own_lock = threading.RLock()

        self._version = 0
        self._rows_version = 0
        self._names_key: Optional[Tuple[int, int]] = None
        self._names_by_row: Dict[DatasetRow, List[Name]] = {}
        self._rows_by_name: Dict[Name, List[DatasetRow]] = {}
        self._names_in_all_rows: Tuple[Name, ...] = ()
        self._referenced_key: Optional[Tuple[int, int]] = None
        self._referenced_names: Tuple[Name, ...] = ()
        self._implicit_key: Optional[Tuple[object, ...]] = None
        self._implicit_changes: Tuple[Change, ...] = ()

        if name_extractors is None:
            self._name_extractors = NameExtractorFactory.default_extractors()
        else:
            self.set_name_extractors(name_extractors)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------
    @property
    def lock(self) -> threading.RLock:
        return self.project.lock if self.project is not None else self._own_lock

    @property
    def version(self) -> int:
        return self._version

    @property
    def rows_version(self) -> int:
        return self._rows_version

    def _touch(self, *, rows: bool = False) -> None:
        self._version += 1
        if rows:
            self._rows_version += 1

    @property
    def date(self) -> SimplifiedDate:
        return self._date

    def set_date(self, date: SimplifiedDate) -> None:
        with self.lock:
            self._date = date
            self._touch()

    @property
    def is_checklist(self) -> bool:
        return self._is_checklist

    def set_is_checklist(self, is_checklist: bool) -> None:
        with self.lock:
            self._is_checklist = is_checklist
            self._touch(rows=True)

    @property
    def rows(self) -> Tuple[DatasetRow, ...]:
        return tuple(self._rows)

    @property
    def columns(self) -> Tuple[DatasetColumn, ...]:
        return tuple(self._columns)

    def set_columns(self, columns: Iterable[DatasetColumn | str]) -> None:
        with self.lock:
            self._columns = list(dict.fromkeys(_column(column) for column in columns))
            self._touch(rows=True)

    def add_row(self, row: DatasetRow | Mapping[str, str]) -> DatasetRow:
        return self.add_rows([row])[0]

    def add_rows(self, rows: Iterable[DatasetRow | Mapping[str, str]]) -> List[DatasetRow]:
        added: List[DatasetRow] = []
        with self.lock:
            known = set(self._columns)
            for row in rows:
                if not isinstance(row, DatasetRow):
                    row = DatasetRow(row)
                for column in row.columns:
                    if column not in known:
                        known.add(column)
                        self._columns.append(column)
                self._rows.append(row)
                added.append(row)
            self._touch(rows=True)
        return added

    def set_rows(self, rows: Iterable[DatasetRow | Mapping[str, str]]) -> None:
        with self.lock:
            self._rows = []
            self.add_rows(rows)

    @property
    def name_extractors(self) -> Tuple[NameExtractor, ...]:
        return tuple(self._name_extractors)

    @property
    def name_extractors_as_string(self) -> str:
        return NameExtractorFactory.serialize(self._name_extractors)

    def set_name_extractors(self, text: str) -> None:
        """Replace the extractor chain; raises ``NameExtractorParseError`` when malformed."""

        extractors = NameExtractorFactory.parse(text)
        with self.lock:
            self._name_extractors = extractors
            self.name_extractors_explicit = True
            self._touch(rows=True)

    def use_registry(self, registry: NameRegistry) -> None:
        with self.lock:
            if registry is not self.registry:
                self.registry = registry
                self._touch(rows=True)

    @property
    def previous_dataset(self) -> Optional["Dataset"]:
        return self._previous

    def set_previous_dataset(self, dataset: Optional["Dataset"]) -> None:
        cursor = dataset
        while cursor is not None:
            if cursor is self:
                raise ValueError(f"Making {dataset} precede {self} would create a cycle")
            cursor = cursor.previous_dataset
        with self.lock:
            self._previous = dataset
            self._touch()

    @property
    def explicit_changes(self) -> Tuple[Change, ...]:
        return tuple(self._explicit_changes)

    def add_explicit_change(self, change: Change) -> None:
        if change.dataset is not self:
            raise ValueError(f"Change {change.id} belongs to {change.dataset}, not {self}")
        with self.lock:
            change.explicit = True
            self._explicit_changes.append(change)
            self._touch()

    def add_explicit_changes(self, changes: Iterable[Change]) -> None:
        for change in changes:
            self.add_explicit_change(change)

    def remove_explicit_change(self, change: Change) -> None:
        with self.lock:
            self._explicit_changes.remove(change)
            self._touch()

    def on_change_changed(self, change: Change) -> None:
        with self.lock:
            self._touch()

    # ------------------------------------------------------------------
    # Names
    # ------------------------------------------------------------------
    def _ensure_names(self) -> None:
        key = (self._rows_version, id(self.registry))
        if self._names_key == key:
            return
        with self.lock:
            if self._names_key == key:
                return
            names_by_row: Dict[DatasetRow, List[Name]] = {}
            rows_by_name: Dict[Name, List[DatasetRow]] = {}
            for row in self._rows:
                names = NameExtractorFactory.extract(
                    self._name_extractors, row, self.registry, find_all=self.find_all_names
                )
                names_by_row[row] = names
                for name in names:
                    rows_by_name.setdefault(name, []).append(row)
            self._names_by_row = names_by_row
            self._rows_by_name = rows_by_name
            self._names_in_all_rows = tuple(rows_by_name)
            self._names_key = key
            _LOGGER.debug("Extracted names", dataset=self.name, rows=len(self._rows), names=len(rows_by_name))

    def get_names_by_row(self) -> Dict[DatasetRow, List[Name]]:
        self._ensure_names()
        return dict(self._names_by_row)

    def get_names_in_row(self, row: DatasetRow) -> List[Name]:
        self._ensure_names()
        return list(self._names_by_row.get(row, ()))

    def get_names_in_all_rows(self) -> Tuple[Name, ...]:
        self._ensure_names()
        return self._names_in_all_rows

    def get_rows_by_name(self) -> Dict[Name, List[DatasetRow]]:
        self._ensure_names()
        return {name: list(rows) for name, rows in self._rows_by_name.items()}

    def get_rows_by_name_for(self, name: Name) -> List[DatasetRow]:
        self._ensure_names()
        return list(self._rows_by_name.get(name, ()))

    def get_referenced_names(self) -> Tuple[Name, ...]:
        """Names from rows and from explicit changes, first-seen order."""

        key = (self._version, id(self.registry))
        if self._referenced_key != key:
            referenced: Dict[Name, None] = dict.fromkeys(self.get_names_in_all_rows())
            for change in self._explicit_changes:
                referenced.update(dict.fromkeys(change.get_all_names()))
            self._referenced_names = tuple(referenced)
            self._referenced_key = key
        return self._referenced_names

    # ------------------------------------------------------------------
    # Changes
    # ------------------------------------------------------------------
    def get_implicit_changes(self, project: Optional["Project"] = None) -> List[Change]:
        """Additions and deletions implied by this checklist's rows.

        With a project, only changes accepted by its change filter are returned.
        """

        changes = list(self._compute_implicit_changes())
        if project is None:
            return changes
        return [change for change in changes if project.change_filter.test(change)]

    def _compute_implicit_changes(self) -> Tuple[Change, ...]:
        previous = self._previous
        key = (
            self._rows_version,
            id(self.registry),
            self._is_checklist,
            id(previous) if previous is not None else None,
            previous.rows_version if previous is not None else None,
        )
        if self._implicit_key == key:
            return self._implicit_changes
        with self.lock:
            if self._implicit_key == key:
                return self._implicit_changes
            changes: List[Change] = []
            if self._is_checklist:
                current = self.get_names_in_all_rows()
                before = previous.get_names_in_all_rows() if previous is not None else ()
                current_set, before_set = set(current), set(before)
                for name in sorted(current_set - before_set):
                    changes.append(Change(self, ChangeType.ADDITION, (), [name], explicit=False))
                for name in sorted(before_set - current_set):
                    changes.append(Change(self, ChangeType.DELETION, [name], (), explicit=False))
            self._implicit_changes = tuple(changes)
            self._implicit_key = key
            _LOGGER.debug("Computed implicit changes", dataset=self.name, count=len(changes))
            return self._implicit_changes

    def get_all_changes(self, change_type: ChangeType | None = None) -> List[Change]:
        """Explicit then implicit changes, unfiltered."""

        changes = [*self._explicit_changes, *self._compute_implicit_changes()]
        if change_type is not None:
            changes = [change for change in changes if change.type == change_type]
        return changes

    def get_changes(self, project: "Project", change_type: ChangeType | None = None) -> List[Change]:
        """Changes accepted by ``project``'s change filter."""

        return [change for change in self.get_all_changes(change_type) if project.change_filter.test(change)]

    def get_explicit_changes(self, project: "Project") -> List[Change]:
        return [change for change in self._explicit_changes if project.change_filter.test(change)]

    def get_recognized_names(self, project: "Project") -> Set[Name]:
        """Names in use once this dataset's accepted changes are applied."""

        changes = self.get_changes(project)
        if self._is_checklist:
            recognized: Set[Name] = set(self.get_names_in_all_rows())
        elif self._previous is not None:
            recognized = set(project.get_recognized_names(self._previous))
        else:
            recognized = set()
        for change in changes:
            recognized.update(change.to_names)
        for change in changes:
            recognized.difference_update(change.from_names)
        return recognized

    # ------------------------------------------------------------------
    # Presentation
    # ------------------------------------------------------------------
    @property
    def citation(self) -> str:
        return f"{self.name} ({self._date})"

    @property
    def type_label(self) -> str:
        return "Checklist" if self._is_checklist else "Dataset"

    def sort_key(self) -> Tuple[Tuple[int, int, int], str]:
        return (self._date.sort_key(), self.name)

    def get_name_count_summary(self, project: "Project") -> str:
        rows = len(self._rows)
        names = len(self.get_names_in_all_rows())
        recognized = len(project.get_recognized_names(self))
        return f"{rows} rows, {names} names in rows, {recognized} recognized"

    def get_changes_count_summary(self, project: "Project") -> str:
        counts = Counter(change.type for change in self.get_changes(project))
        if not counts:
            return "No changes"
        return ", ".join(f"{counts[change_type]} {change_type}" for change_type in sorted(counts))

    def __str__(self) -> str:
        return f"{self.type_label} {self.name} ({self._date})"

    def __repr__(self) -> str:
        return f"Dataset({self.name!r}, {self._date!s}, is_checklist={self._is_checklist})"


__all__ = ["DatasetColumn", "DatasetRow", "Dataset"]
