"""A reconciliation project: an ordered series of datasets and their changes."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Set, Tuple

from .config.policies import Policies
from .entities.change import Change, ChangeType
from .entities.dataset import Dataset, DatasetRow
from .entities.name import Name, NameRegistry
from .pipeline.clustering.manager import NameClusterManager
from .pipeline.filters import ChangeFilter, NullChangeFilter
from .utils.helpers import unique_in_order
from .utils.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover
    from .pipeline.validation.base import ValidationError

_LOGGER = get_logger(module=__name__)

_REVERSIBLE_TYPES = (ChangeType.LUMP, ChangeType.SPLIT)


class Project:
    """Datasets in chronological order plus everything derived from them.

    The project owns the name registry, the change filter chain and the
    name cluster manager. ``lock`` is the reconciliation lock: dataset
    mutations and cluster rebuilds both take it. Derived views are cached
    against :attr:`revision` and recomputed after any mutation.
    """

    def __init__(
        self,
        name: str = "Unnamed project",
        file: Path | str | None = None,
        *,
        policies: Policies | None = None,
    ) -> None:
        self.name = name
        self.file = Path(file) if file is not None else None
        self.properties: Dict[str, str] = {}
        self.policies = policies or Policies()
        self.names = NameRegistry()
        self.lock = threading.RLock()
        self._datasets: List[Dataset] = []
        self._change_filter: ChangeFilter = NullChangeFilter()
        self._filter_serial = 0
        self._cluster_manager = NameClusterManager(
            merge_subspecies_into_binomial=self.policies.clustering.merge_subspecies_into_binomial
        )
        self._cache_revision: object = None
        self._recognized: Dict[Dataset, Set[Name]] = {}
        self._datasets_by_name: Optional[Dict[Name, List[Dataset]]] = None

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------
    @property
    def revision(self) -> Tuple[object, ...]:
        """Changes whenever anything that feeds accepted changes changes."""

        return (
            self._filter_serial,
            self._change_filter.version,
            tuple((id(dataset), dataset.version) for dataset in self._datasets),
        )

    @property
    def datasets(self) -> Tuple[Dataset, ...]:
        return tuple(self._datasets)

    def add_dataset(self, dataset: Dataset) -> Dataset:
        """Append ``dataset`` after the current last dataset."""

        with self.lock:
            if dataset in self._datasets:
                raise ValueError(f"{dataset} is already part of project {self.name!r}")
            if dataset.project is not None and dataset.project is not self:
                raise ValueError(f"{dataset} already belongs to project {dataset.project.name!r}")
            dataset.project = self
            dataset.use_registry(self.names)
            dataset.find_all_names = self.policies.extraction.find_all_names
            if not dataset.name_extractors_explicit:
                dataset.set_name_extractors(self.policies.extraction.default_name_extractors)
                dataset.name_extractors_explicit = False
            dataset.set_previous_dataset(self._datasets[-1] if self._datasets else None)
            self._datasets.append(dataset)
        _LOGGER.debug("Added dataset", project=self.name, dataset=dataset.name, position=len(self._datasets))
        return dataset

    def get_dataset(self, name: str) -> Optional[Dataset]:
        for dataset in self._datasets:
            if dataset.name == name:
                return dataset
        return None

    @property
    def first_dataset(self) -> Optional[Dataset]:
        return self._datasets[0] if self._datasets else None

    @property
    def last_dataset(self) -> Optional[Dataset]:
        return self._datasets[-1] if self._datasets else None

    @property
    def checklists(self) -> List[Dataset]:
        return [dataset for dataset in self._datasets if dataset.is_checklist]

    def is_property_set_true(self, key: str) -> bool:
        return self.properties.get(key, "").strip().lower() == "yes"

    def get_name_extractors(self) -> List[str]:
        """Distinct extractor chains in use across datasets."""

        return unique_in_order(dataset.name_extractors_as_string for dataset in self._datasets)

    # ------------------------------------------------------------------
    # Change filters
    # ------------------------------------------------------------------
    @property
    def change_filter(self) -> ChangeFilter:
        return self._change_filter

    def set_change_filter(self, change_filter: ChangeFilter) -> None:
        with self.lock:
            self._change_filter = change_filter
            self._filter_serial += 1

    def add_change_filter(self, change_filter: ChangeFilter) -> None:
        with self.lock:
            self._change_filter.add_change_filter(change_filter)
            self._filter_serial += 1

    # ------------------------------------------------------------------
    # Changes and names
    # ------------------------------------------------------------------
    def _ensure_cache(self) -> None:
        revision = self.revision
        if self._cache_revision != revision:
            self._recognized = {}
            self._datasets_by_name = None
            self._cache_revision = revision

    def get_changes(self, change_type: ChangeType | None = None) -> List[Change]:
        """Accepted changes of every dataset, in dataset order."""

        changes: List[Change] = []
        for dataset in self._datasets:
            changes.extend(dataset.get_changes(self, change_type))
        return changes

    def get_all_changes(self) -> List[Change]:
        changes: List[Change] = []
        for dataset in self._datasets:
            changes.extend(dataset.get_all_changes())
        return changes

    @property
    def change_types(self) -> List[ChangeType]:
        return sorted({change.type for change in self.get_all_changes()})

    def get_recognized_names(self, dataset: Dataset) -> Set[Name]:
        with self.lock:
            self._ensure_cache()
            cached = self._recognized.get(dataset)
            if cached is None:
                cached = dataset.get_recognized_names(self)
                self._recognized[dataset] = cached
            return set(cached)

    def get_datasets_for_name(self, name: Name) -> List[Dataset]:
        """Datasets referencing ``name`` in rows or explicit changes."""

        with self.lock:
            self._ensure_cache()
            if self._datasets_by_name is None:
                index: Dict[Name, List[Dataset]] = {}
                for dataset in self._datasets:
                    for referenced in dataset.get_referenced_names():
                        index.setdefault(referenced, []).append(dataset)
                self._datasets_by_name = index
            return list(self._datasets_by_name.get(name, ()))

    def get_rows_for_name(self, name: Name) -> List[Tuple[Dataset, DatasetRow]]:
        return [(dataset, row) for dataset in self._datasets for row in dataset.get_rows_by_name_for(name)]

    def get_data_for_name(self, name: Name) -> Dict[str, List[str]]:
        """Distinct non-blank cell values per column across every row carrying ``name``."""

        data: Dict[str, Dict[str, None]] = {}
        for _dataset, row in self.get_rows_for_name(name):
            for column, value in row.items():
                if value.strip():
                    data.setdefault(column.name, {})[value] = None
        return {column: list(values) for column, values in data.items()}

    # ------------------------------------------------------------------
    # Clusters
    # ------------------------------------------------------------------
    @property
    def name_cluster_manager(self) -> NameClusterManager:
        self._cluster_manager.ensure_current(self)
        return self._cluster_manager

    def recluster(self) -> bool:
        return self._cluster_manager.rebuild(self)

    # ------------------------------------------------------------------
    # Lumps, splits and their reversals
    # ------------------------------------------------------------------
    def get_lumps_and_splits(self) -> List[Change]:
        return [change for change in self.get_changes() if change.type in _REVERSIBLE_TYPES]

    def get_changes_reversing(self, change: Change) -> List[Change]:
        """Lumps or splits of the inverse type sharing at least two names across swapped sides."""

        if change.type not in _REVERSIBLE_TYPES:
            return []
        inverse = change.type.invert()
        source, target = set(change.from_names), set(change.to_names)
        reversing: List[Change] = []
        for other in self.get_lumps_and_splits():
            if other is change or other.type != inverse:
                continue
            shared = (source & set(other.to_names)) | (target & set(other.from_names))
            if len(shared) >= 2:
                reversing.append(other)
        return reversing

    def get_changes_perfectly_reversing(self, change: Change) -> List[Change]:
        """Reversals whose sides are exactly this change's sides, swapped."""

        source, target = set(change.from_names), set(change.to_names)
        return [
            other
            for other in self.get_changes_reversing(change)
            if set(other.from_names) == target and set(other.to_names) == source
        ]

    def get_perfectly_reversing_summary(self) -> List[str]:
        """One line per chain of lumps and splits that undo each other in turn."""

        position = {dataset: index for index, dataset in enumerate(self._datasets)}
        seen: Set[str] = set()
        summaries: List[str] = []
        for change in self.get_lumps_and_splits():
            if change.id in seen:
                continue
            chain = [change]
            current = change
            while True:
                later = [
                    other
                    for other in self.get_changes_perfectly_reversing(current)
                    if position[other.dataset] > position[current.dataset] and other not in chain
                ]
                if not later:
                    break
                current = min(later, key=lambda other: position[other.dataset])
                chain.append(current)
            if len(chain) < 2:
                continue
            seen.update(link.id for link in chain)
            steps = " -> ".join(f"{link.type} ({link.dataset.date.year_as_string})" for link in chain)
            summaries.append(f"{steps} [starting with change id {change.id}]")
        return summaries

    # ------------------------------------------------------------------
    # Validation and persistence
    # ------------------------------------------------------------------
    def validate(self, validators: Sequence[str] | None = None) -> List["ValidationError"]:
        from .pipeline.validation import run_validators

        return list(run_validators(self, validators))

    @classmethod
    def load(cls, path: Path | str, *, policies: Policies | None = None) -> "Project":
        from .persistence.reader import read_project

        return read_project(path, policies=policies)

    def save(self, path: Path | str | None = None, *, compress: bool | None = None) -> Path:
        from .persistence.writer import write_project

        target = Path(path) if path is not None else self.file
        if target is None:
            raise ValueError(f"Project {self.name!r} has no file to save to")
        written = write_project(self, target, compress=compress)
        self.file = written
        return written

    def describe(self) -> Dict[str, object]:
        return {
            "name": self.name,
            "file": str(self.file) if self.file else None,
            "datasets": len(self._datasets),
            "names": len(self.names),
            "changes": len(self.get_changes()),
            "filter": self._change_filter.description,
        }

    def __str__(self) -> str:
        return f"Project {self.name!r} ({len(self._datasets)} datasets)"


__all__ = ["Project"]
