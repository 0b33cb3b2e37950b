"""Renames inferred from identifiers shared between rows."""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Iterator, List, Set, Tuple

from ...entities.change import ChangeType, Synonymy
from ...entities.dataset import Dataset, DatasetColumn
from ...entities.name import Name
from ...utils.logging import get_logger
from .base import SynonymyChangeGenerator

if TYPE_CHECKING:  # pragma: no cover
    from ...project import Project

_LOGGER = get_logger(module=__name__)


def _identifiers(dataset: Dataset, name: Name, column: DatasetColumn) -> Set[str]:
    values = (row.get(column) for row in dataset.get_rows_by_name_for(name))
    return {value.strip() for value in values if value and value.strip()}


def _names_by_identifier(dataset: Dataset, column: DatasetColumn) -> Dict[str, List[Name]]:
    index: Dict[str, List[Name]] = {}
    for row, names in dataset.get_names_by_row().items():
        value = (row.get(column) or "").strip()
        if value:
            index.setdefault(value, []).extend(names)
    return index


class RenamesFromIdsInData(SynonymyChangeGenerator):
    """Links each added name to every other name carrying one of its identifiers.

    The whole project is searched, so identifiers reused across distant
    datasets are found too. Pairs already joined by a change are skipped.
    """

    key = "renames-from-ids"
    name = "Renames from identifiers in data"
    description = "Renames from any name sharing an identifier with a newly added name."
    needs_dataset_column = True

    def find_synonymies(self, project: "Project", dataset: Dataset) -> Iterator[Synonymy]:
        column = self._require_column()
        linked: Set[Tuple[Name, Name]] = set()
        for change in project.get_changes():
            for source in change.from_names:
                for target in change.to_names:
                    linked.add((source, target))
                    linked.add((target, source))
        indexes = [_names_by_identifier(other, column) for other in project.datasets]

        for addition in dataset.get_changes(project, ChangeType.ADDITION):
            for added in addition.to_names:
                for identifier in sorted(_identifiers(dataset, added, column)):
                    for index in indexes:
                        for other in index.get(identifier, ()):
                            if other == added or (other, added) in linked:
                                continue
                            yield Synonymy(
                                other,
                                added,
                                dataset,
                                note=(
                                    "Found novel association between partially overlapping names "
                                    f"sharing {column} value {identifier!r}"
                                ),
                            )


class RenamesByIdChangeGenerator(SynonymyChangeGenerator):
    """Links names added in a dataset to names in the previous dataset with the same identifier."""

    key = "renames-by-id"
    name = "Renames by identifier"
    description = "Renames from the previous dataset's names to added names with the same identifier."
    needs_dataset_column = True

    def find_synonymies(self, project: "Project", dataset: Dataset) -> Iterator[Synonymy]:
        column = self._require_column()
        previous = dataset.previous_dataset
        if previous is None:
            return
        earlier = _names_by_identifier(previous, column)
        for change in dataset.get_implicit_changes(project):
            if change.type == ChangeType.DELETION:
                # TODO: decide whether deletions should pair with later additions; no rule exists yet.
                _LOGGER.debug("Skipping deletion in identifier matching", dataset=dataset.name, change=str(change))
                continue
            if change.type != ChangeType.ADDITION:
                continue
            for added in change.to_names:
                for identifier in sorted(_identifiers(dataset, added, column)):
                    for old in earlier.get(identifier, ()):
                        if old != added:
                            yield Synonymy(
                                old,
                                added,
                                dataset,
                                note=f"{old} in {previous.citation} shares {column} value {identifier!r}",
                            )


__all__ = ["RenamesFromIdsInData", "RenamesByIdChangeGenerator"]
