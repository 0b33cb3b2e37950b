"""Name clustering over accepted changes."""

from .cluster import NameCluster, TaxonConcept
from .manager import ClusterIndex, NameClusterManager
from .union_find import UnionFind

__all__ = ["NameCluster", "TaxonConcept", "ClusterIndex", "NameClusterManager", "UnionFind"]
