"""Genus-level candidates: composition drift and reorganisations."""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Iterable, Iterator, Set

from ...entities.change import ChangeType, PotentialChange, Synonymy
from ...entities.dataset import Dataset
from ...entities.name import Name
from ...exceptions import ConsistencyError
from ...utils.logging import get_logger
from .base import ChangeGenerator, SynonymyChangeGenerator

if TYPE_CHECKING:  # pragma: no cover
    from ...project import Project

_LOGGER = get_logger(module=__name__)

CHANGED = ChangeType.of("changed")


def _binomials_by_genus(names: Iterable[Name]) -> Dict[str, Set[Name]]:
    grouped: Dict[str, Set[Name]] = {}
    for name in names:
        binomial = name.as_binomial()
        if binomial is not None:
            grouped.setdefault(name.genus, set()).add(binomial)
    return grouped


def _format(names: Set[Name]) -> str:
    return "[" + ", ".join(name.full_name for name in sorted(names)) + "]"


class GenusChangesFromComposition(ChangeGenerator):
    """Flags genera whose species differ from the previous dataset.

    The candidates are informational ``changed`` entries; clustering treats
    them like any other change only once submitted.
    """

    key = "genus-composition"
    name = "Genus changes from composition"
    description = "One 'changed' entry per genus whose binomials differ from the previous dataset."

    def generate_for_dataset(self, project: "Project", dataset: Dataset) -> Iterator[PotentialChange]:
        previous = dataset.previous_dataset
        if previous is None:
            return
        before = _binomials_by_genus(previous.get_names_in_all_rows())
        after = _binomials_by_genus(dataset.get_names_in_all_rows())
        for genus in sorted(set(before) | set(after)):
            old, new = before.get(genus, set()), after.get(genus, set())
            if old == new:
                continue
            genus_name = project.names.get(genus)
            yield PotentialChange(
                dataset,
                CHANGED,
                [genus_name],
                [genus_name],
                generator=self.key,
                note=f"Genus changed from {_format(old)} to {_format(new)}",
            )


class GenusReorganizationFromRenames(SynonymyChangeGenerator):
    """Proposes renames into the current genus for synonyms placed in other live genera."""

    key = "genus-reorganization"
    name = "Genus reorganization from renames"
    description = "Renames for cluster members sitting in a different, still recognised genus."

    def find_synonymies(self, project: "Project", dataset: Dataset) -> Iterator[Synonymy]:
        recognized = project.get_recognized_names(dataset)
        recognized_genera = {name.genus for name in recognized}
        manager = project.name_cluster_manager
        for name in sorted(recognized):
            cluster = manager.get_cluster(name)
            if cluster is None:
                raise ConsistencyError(f"Recognized name {name} in {dataset} has no name cluster")
            for other in cluster.names:
                if other.genus == name.genus or other.genus not in recognized_genera:
                    continue
                if other in recognized:
                    _LOGGER.warning(
                        "Conflicting recognized names in one cluster",
                        dataset=dataset.name,
                        name=name.full_name,
                        other=other.full_name,
                    )
                    continue
                yield Synonymy(
                    other,
                    name,
                    dataset,
                    note=f"{other} synonym of {name} but in a currently recognized genus ({other.genus})",
                )


__all__ = ["GenusChangesFromComposition", "GenusReorganizationFromRenames", "CHANGED"]
