"""Common contract for change generators."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, ClassVar, Iterable, Iterator, Optional, Set

from ...entities.change import PotentialChange, Synonymy
from ...entities.dataset import Dataset, DatasetColumn
from ...exceptions import GeneratorConfigurationError
from ...utils.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover
    from ...project import Project

_LOGGER = get_logger(module=__name__)


class ChangeGenerator(ABC):
    """Proposes candidate changes without touching the project.

    ``generate(project)`` covers every dataset; ``generate(project, dataset)``
    only the given one. Proposals are :class:`PotentialChange` objects that
    a reviewer accepts with ``submit()``.
    """

    key: ClassVar[str]
    name: ClassVar[str]
    description: ClassVar[str] = ""
    needs_dataset_column: ClassVar[bool] = False

    def __init__(self, dataset_column: DatasetColumn | str | None = None) -> None:
        self._column: Optional[DatasetColumn] = None
        if dataset_column is not None:
            self.dataset_column = dataset_column  # type: ignore[assignment]

    @property
    def dataset_column(self) -> Optional[DatasetColumn]:
        return self._column

    @dataset_column.setter
    def dataset_column(self, column: DatasetColumn | str) -> None:
        if not self.needs_dataset_column:
            raise GeneratorConfigurationError(f"{self.name} does not use a dataset column")
        self._column = column if isinstance(column, DatasetColumn) else DatasetColumn.of(column)

    def _require_column(self) -> DatasetColumn:
        if self._column is None:
            raise GeneratorConfigurationError(f"{self.name} needs a dataset column")
        return self._column

    def generate(self, project: "Project", dataset: Dataset | None = None) -> Iterator[PotentialChange]:
        if self.needs_dataset_column:
            self._require_column()
        targets = [dataset] if dataset is not None else list(project.datasets)
        total = 0
        for target in targets:
            for change in self.generate_for_dataset(project, target):
                total += 1
                yield change
        _LOGGER.info("Generated candidate changes", generator=self.key, datasets=len(targets), candidates=total)

    @abstractmethod
    def generate_for_dataset(self, project: "Project", dataset: Dataset) -> Iterator[PotentialChange]:
        """Yield candidates for one dataset."""


class SynonymyChangeGenerator(ChangeGenerator):
    """A generator whose candidates are renames derived from synonym pairs.

    Repeated ``(from, to, dataset)`` pairs within one dataset are dropped
    before they become candidates.
    """

    def generate_for_dataset(self, project: "Project", dataset: Dataset) -> Iterator[PotentialChange]:
        seen: Set[Synonymy] = set()
        for synonymy in self.find_synonymies(project, dataset):
            if synonymy.from_name == synonymy.to_name or synonymy in seen:
                continue
            seen.add(synonymy)
            yield synonymy.to_potential_change(self.key)

    @abstractmethod
    def find_synonymies(self, project: "Project", dataset: Dataset) -> Iterable[Synonymy]:
        """Yield raw synonym pairs, duplicates allowed."""


__all__ = ["ChangeGenerator", "SynonymyChangeGenerator"]
