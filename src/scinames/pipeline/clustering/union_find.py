"""Array-backed disjoint-set forest."""

from __future__ import annotations

from typing import Dict, List


class UnionFind:
    """Disjoint-set data structure over dense integer ids.

    Ids are handed out by :meth:`add` and index the ``parent``/``rank``
    arrays directly; ``find`` compresses paths and ``union`` joins by rank.
    """

    def __init__(self) -> None:
        self.parent: List[int] = []
        self.rank: List[int] = []

    def __len__(self) -> int:
        return len(self.parent)

    def add(self) -> int:
        item = len(self.parent)
        self.parent.append(item)
        self.rank.append(0)
        return item

    def find(self, item: int) -> int:
        root = item
        while self.parent[root] != root:
            root = self.parent[root]
        while self.parent[item] != root:
            self.parent[item], item = root, self.parent[item]
        return root

    def union(self, a: int, b: int) -> int:
        root_a = self.find(a)
        root_b = self.find(b)
        if root_a == root_b:
            return root_a
        rank_a = self.rank[root_a]
        rank_b = self.rank[root_b]
        if rank_a < rank_b:
            self.parent[root_a] = root_b
            return root_b
        self.parent[root_b] = root_a
        if rank_a == rank_b:
            self.rank[root_a] += 1
        return root_a

    def connected(self, a: int, b: int) -> bool:
        return self.find(a) == self.find(b)

    def components(self) -> Dict[int, List[int]]:
        """Members per root, both in ascending id order."""

        groups: Dict[int, List[int]] = {}
        for item in range(len(self.parent)):
            groups.setdefault(self.find(item), []).append(item)
        return groups


__all__ = ["UnionFind"]
