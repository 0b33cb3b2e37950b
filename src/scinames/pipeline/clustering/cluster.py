"""Name clusters and the taxon concepts carved out of them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, FrozenSet, Iterable, List, Optional, Sequence, Set, Tuple
from uuid import uuid4

from ...entities.change import Change, ChangeType
from ...entities.dataset import Dataset
from ...entities.name import Name

if TYPE_CHECKING:  # pragma: no cover
    from ...project import Project


def _date_range(datasets: Sequence[Dataset]) -> str:
    if not datasets:
        return "No timepoints"
    ordered = sorted(datasets, key=Dataset.sort_key)
    first, last = ordered[0].date, ordered[-1].date
    if first == last:
        return str(first)
    return f"{first} to {last}"


class NameCluster:
    """Names linked, directly or transitively, by accepted changes.

    Clusters are rebuilt from scratch whenever the accepted changes move, so
    their ``id`` only identifies them within one build.
    """

    def __init__(
        self,
        names: Iterable[Name],
        found_in: Iterable[Dataset] = (),
        *,
        binomial_name_by_dataset: Optional[Dict[Dataset, Name]] = None,
        cluster_id: Optional[str] = None,
    ) -> None:
        self.id = cluster_id or str(uuid4())
        self.names: Tuple[Name, ...] = tuple(sorted(set(names)))
        if not self.names:
            raise ValueError("A name cluster needs at least one name")
        self._members: FrozenSet[Name] = frozenset(self.names)
        self.found_in: Tuple[Dataset, ...] = tuple(dict.fromkeys(found_in))
        self.binomial_name_by_dataset: Dict[Dataset, Name] = dict(binomial_name_by_dataset or {})

    @property
    def representative(self) -> Name:
        """The member whose full name sorts first."""

        return min(self.names, key=lambda name: name.full_name)

    @property
    def size(self) -> int:
        return len(self.names)

    @property
    def contains_superspecific_names(self) -> bool:
        return any(not name.has_specific_epithet for name in self.names)

    @property
    def binomial_names(self) -> List[Name]:
        binomials = {name.as_binomial() for name in self.names}
        binomials.discard(None)
        return sorted(binomials)  # type: ignore[arg-type]

    def contains(self, name: Name) -> bool:
        return name in self._members

    __contains__ = contains

    def contains_any(self, names: Iterable[Name]) -> bool:
        return any(name in self._members for name in names)

    def get_found_in_sorted(self) -> List[Dataset]:
        return sorted(self.found_in, key=Dataset.sort_key)

    @property
    def earliest_dataset(self) -> Optional[Dataset]:
        ordered = self.get_found_in_sorted()
        return ordered[0] if ordered else None

    def get_date_range(self) -> str:
        return _date_range(self.found_in)

    def changes_touching(self, project: "Project", dataset: Dataset) -> List[Change]:
        return [change for change in dataset.get_changes(project) if change.touches(self._members)]

    def is_polytypic(self, project: "Project") -> bool:
        """Whether the cluster ever covered more than one taxon."""

        if any(name.has_subspecific_epithet for name in self.names):
            return True
        for dataset in self.found_in:
            for change in self.changes_touching(project, dataset):
                if change.type in (ChangeType.LUMP, ChangeType.SPLIT):
                    return True
        return False

    def get_taxon_concepts(self, project: "Project") -> List["TaxonConcept"]:
        """Split the cluster's history at each boundary change.

        Boundary types come from the project's clustering policy. A concept
        runs from the dataset where it started to the dataset before the
        next boundary; the last concept has no ``ends_with`` changes.
        """

        boundaries = {ChangeType.of(item) for item in project.policies.clustering.taxon_concept_boundaries}
        concepts: List[TaxonConcept] = []
        current: Optional[TaxonConcept] = None
        for dataset in self.get_found_in_sorted():
            changes = self.changes_touching(project, dataset)
            boundary = [change for change in changes if change.type in boundaries]
            if current is None:
                current = TaxonConcept(
                    cluster=self,
                    starts_with=[change for change in changes if self.contains_any(change.to_names)],
                )
            elif boundary:
                current.ends_with = boundary
                concepts.append(current)
                current = TaxonConcept(cluster=self, starts_with=boundary)
            current.found_in.append(dataset)
            recognized = project.get_recognized_names(dataset)
            current.names.update(dict.fromkeys(name for name in self.names if name in recognized))
        if current is not None:
            concepts.append(current)
        return concepts

    def __len__(self) -> int:
        return len(self.names)

    def __str__(self) -> str:
        return f"{self.representative} ({', '.join(name.full_name for name in self.names)})"

    def __repr__(self) -> str:
        return f"NameCluster(id={self.id!r}, names={[name.full_name for name in self.names]!r})"


@dataclass(eq=False)
class TaxonConcept:
    """A time-bounded stretch of a cluster between two boundary changes."""

    cluster: NameCluster
    starts_with: List[Change] = field(default_factory=list)
    ends_with: List[Change] = field(default_factory=list)
    names: Dict[Name, None] = field(default_factory=dict)
    found_in: List[Dataset] = field(default_factory=list)

    @property
    def name_list(self) -> List[Name]:
        return list(self.names)

    def contains_any(self, names: Iterable[Name]) -> bool:
        return any(name in self.names for name in names)

    def get_date_range(self) -> str:
        return _date_range(self.found_in)

    def is_ongoing(self, project: "Project") -> bool:
        """No closing boundary and still recognised in the last dataset."""

        if self.ends_with:
            return False
        last = project.last_dataset
        if last is None:
            return False
        recognized: Set[Name] = project.get_recognized_names(last)
        return self.contains_any(recognized)

    def __str__(self) -> str:
        names = ", ".join(name.full_name for name in self.names) or self.cluster.representative.full_name
        return f"{names} ({self.get_date_range()})"


__all__ = ["NameCluster", "TaxonConcept"]
