"""Reconciliation of names into clusters over a whole project."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from time import perf_counter
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Tuple

from ...entities.dataset import Dataset
from ...entities.name import Name
from ...utils.logging import get_logger
from .cluster import NameCluster
from .union_find import UnionFind

if TYPE_CHECKING:  # pragma: no cover
    from ...project import Project

_LOGGER = get_logger(module=__name__)


@dataclass
class ClusterIndex:
    """An immutable snapshot of clusters published by one rebuild."""

    revision: object
    generation: int
    clusters: List[NameCluster] = field(default_factory=list)
    by_name: Dict[Name, NameCluster] = field(default_factory=dict)
    stats: Dict[str, object] = field(default_factory=dict)


class NameClusterManager:
    """Owns the current name clusters of a project.

    Clusters are never patched in place: :meth:`rebuild` snapshots the
    project under its reconciliation lock, unions names along every accepted
    change and swaps in a fresh :class:`ClusterIndex`. Each request bumps a
    generation counter; a request overtaken by a newer one is skipped, and
    an older result is never published over a newer one.
    """

    def __init__(self, *, merge_subspecies_into_binomial: bool = True) -> None:
        self.merge_subspecies_into_binomial = merge_subspecies_into_binomial
        self._index = ClusterIndex(revision=None, generation=0)
        self._generation = 0
        self._request_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Rebuilding
    # ------------------------------------------------------------------
    @property
    def generation(self) -> int:
        return self._index.generation

    @property
    def revision(self) -> object:
        return self._index.revision

    @property
    def stats(self) -> Dict[str, object]:
        return dict(self._index.stats)

    def request_rebuild(self) -> int:
        with self._request_lock:
            self._generation += 1
            return self._generation

    def ensure_current(self, project: "Project") -> None:
        if self._index.revision != project.revision:
            self.rebuild(project)

    def rebuild(self, project: "Project", generation: Optional[int] = None) -> bool:
        """Recompute clusters; returns ``False`` if a newer request superseded this one."""

        if generation is None:
            generation = self.request_rebuild()
        with project.lock:
            if generation < self._generation:
                _LOGGER.debug("Skipping superseded cluster rebuild", generation=generation, latest=self._generation)
                return False
            start = perf_counter()
            index = self._build(project, generation)
            if index.generation < self._index.generation:
                return False
            self._index = index
        _LOGGER.info(
            "Rebuilt name clusters",
            project=project.name,
            generation=generation,
            names=index.stats["names"],
            clusters=index.stats["clusters"],
            seconds=round(perf_counter() - start, 4),
        )
        return True

    def _build(self, project: "Project", generation: int) -> ClusterIndex:
        datasets = list(project.datasets)
        union_find = UnionFind()
        names: List[Name] = []
        ids: Dict[Name, int] = {}

        def slot(name: Name) -> int:
            existing = ids.get(name)
            if existing is not None:
                return existing
            item = union_find.add()
            ids[name] = item
            names.append(name)
            if self.merge_subspecies_into_binomial and name.has_subspecific_epithet:
                binomial = project.names.binomial(name)
                if binomial is not None:
                    union_find.union(item, slot(binomial))
            return item

        for dataset in datasets:
            for name in dataset.get_referenced_names():
                slot(name)
            for change in dataset.get_all_changes():
                for name in change.get_all_names():
                    slot(name)

        accepted = 0
        for dataset in datasets:
            for change in dataset.get_changes(project):
                members = [slot(name) for name in change.get_all_names()]
                for other in members[1:]:
                    union_find.union(members[0], other)
                accepted += 1

        referenced_by_dataset: List[Tuple[Dataset, frozenset]] = [
            (dataset, frozenset(dataset.get_referenced_names())) for dataset in datasets
        ]
        clusters: List[NameCluster] = []
        by_name: Dict[Name, NameCluster] = {}
        for members in union_find.components().values():
            member_names = [names[item] for item in members]
            found_in = [dataset for dataset, referenced in referenced_by_dataset if any(n in referenced for n in member_names)]
            cluster = NameCluster(
                member_names,
                found_in,
                binomial_name_by_dataset=self._binomials_by_dataset(member_names, found_in),
            )
            clusters.append(cluster)
            for name in member_names:
                by_name[name] = cluster
        clusters.sort(key=lambda cluster: cluster.representative.full_name)

        return ClusterIndex(
            revision=project.revision,
            generation=generation,
            clusters=clusters,
            by_name=by_name,
            stats={"names": len(names), "clusters": len(clusters), "accepted_changes": accepted},
        )

    @staticmethod
    def _binomials_by_dataset(names: List[Name], datasets: Iterable[Dataset]) -> Dict[Dataset, Name]:
        result: Dict[Dataset, Name] = {}
        ordered = sorted(names)
        for dataset in datasets:
            referenced = set(dataset.get_referenced_names())
            for name in ordered:
                if name in referenced and name.has_specific_epithet:
                    result[dataset] = dataset.registry.binomial(name) or name
                    break
        return result

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    @property
    def clusters(self) -> List[NameCluster]:
        return list(self._index.clusters)

    @property
    def species_clusters(self) -> List[NameCluster]:
        return [cluster for cluster in self._index.clusters if not cluster.contains_superspecific_names]

    def has_cluster(self, name: Name) -> bool:
        return name in self._index.by_name

    def get_cluster(self, name: Name) -> Optional[NameCluster]:
        return self._index.by_name.get(name)

    def get_clusters(self, names: Iterable[Name]) -> List[NameCluster]:
        """Distinct clusters of ``names`` in first-seen order; unknown names are skipped."""

        index = self._index
        seen: Dict[str, NameCluster] = {}
        for name in names:
            cluster = index.by_name.get(name)
            if cluster is not None and cluster.id not in seen:
                seen[cluster.id] = cluster
        return list(seen.values())

    def __len__(self) -> int:
        return len(self._index.clusters)


__all__ = ["ClusterIndex", "NameClusterManager"]
