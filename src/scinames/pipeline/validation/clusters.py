"""Checks on the name clusters of a project."""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING, Iterator

from .base import Severity, ValidationError, Validator

if TYPE_CHECKING:  # pragma: no cover
    from ...project import Project


class NameClustersValidator(Validator):
    name = "Name clusters validator"
    key = "name_clusters"

    def validate(self, project: "Project") -> Iterator[ValidationError]:
        clusters = project.name_cluster_manager.clusters
        memberships: Counter = Counter(name for cluster in clusters for name in cluster.names)
        for name in sorted(memberships):
            if memberships[name] > 1:
                yield self.error(
                    Severity.SEVERE, f"Name {name} found in {memberships[name]} name clusters", name
                )
        if project.policies.validation.report_multiple_binomials:
            for cluster in clusters:
                binomials = cluster.binomial_names
                if len(binomials) > 1:
                    yield self.error(
                        Severity.INFO,
                        f"Name cluster {cluster.representative} spans {len(binomials)} binomial names: "
                        + ", ".join(name.full_name for name in binomials),
                        cluster,
                    )


__all__ = ["NameClustersValidator"]
