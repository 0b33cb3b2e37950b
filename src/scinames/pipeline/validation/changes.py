"""Checks on the shape and consistency of individual changes."""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Iterator, List

from ...entities.change import Change, ChangeType
from .base import Severity, ValidationError, Validator

if TYPE_CHECKING:  # pragma: no cover
    from ...project import Project

# Lumps and splits always pull both of their sides into one cluster, so a
# repeated cluster on one side is only suspicious for the other types.
_SIDES_SHARE_CLUSTER = (ChangeType.LUMP, ChangeType.SPLIT, ChangeType.COMPLEX)


def _change_text(change: Change) -> str:
    parts = [change.from_string, change.to_string]
    parts.extend(f"{key}={value}" for key, value in change.properties.items())
    parts.extend(citation.text for citation in change.citations)
    return "\n".join(parts)


class ChangeValidator(Validator):
    name = "Change validator"
    key = "changes"

    def validate(self, project: "Project") -> Iterator[ValidationError]:
        manager = project.name_cluster_manager
        for dataset in project.datasets:
            previous = dataset.previous_dataset
            previously_recognized = project.get_recognized_names(previous) if previous is not None else None
            for change in dataset.get_changes(project):
                yield from self._check_shape(change)
                yield from self._check_encoding(change)
                if not change.type.is_recognized:
                    yield self.error(Severity.WARNING, f"Change type '{change.type}' not recognized: {change}", change)
                if previously_recognized is not None:
                    for name in change.from_names:
                        if name not in previously_recognized:
                            yield self.error(
                                Severity.WARNING,
                                f"'From' name {name} not previously recognized in {previous}: {change}",
                                change,
                            )

                cluster_ids: Dict[str, List[str]] = {"from": [], "to": []}
                for side, names in (("from", change.from_names), ("to", change.to_names)):
                    for name in names:
                        cluster = manager.get_cluster(name)
                        if cluster is None:
                            yield self.error(
                                Severity.SEVERE, f"Name {name} in change is missing a name cluster: {change}", change
                            )
                            continue
                        cluster_ids[side].append(cluster.id)
                    ids = cluster_ids[side]
                    if change.type not in _SIDES_SHARE_CLUSTER and len(ids) != len(set(ids)):
                        yield self.error(
                            Severity.WARNING,
                            f"Name cluster repeats twice in change '{side}' names: {change}",
                            change,
                        )

                if change.type in (ChangeType.LUMP, ChangeType.SPLIT):
                    shared = set(cluster_ids["from"]) & set(cluster_ids["to"])
                    if len(shared) != 1:
                        yield self.error(
                            Severity.WARNING,
                            f"Lump or split shares {len(shared)} name clusters between 'from' and 'to': {change}",
                            change,
                        )

    def _check_shape(self, change: Change) -> Iterator[ValidationError]:
        if change.type == ChangeType.ADDITION and (change.from_names or not change.to_names):
            yield self.error(Severity.SEVERE, f"Incorrect addition or deletion: {change}", change)
        elif change.type == ChangeType.DELETION and (change.to_names or not change.from_names):
            yield self.error(Severity.SEVERE, f"Incorrect addition or deletion: {change}", change)
        elif change.type == ChangeType.LUMP and not (len(change.from_names) >= 2 and len(change.to_names) == 1):
            yield self.error(Severity.SEVERE, f"Incorrect lump or split: {change}", change)
        elif change.type == ChangeType.SPLIT and not (len(change.from_names) == 1 and len(change.to_names) >= 2):
            yield self.error(Severity.SEVERE, f"Incorrect lump or split: {change}", change)
        elif change.type == ChangeType.RENAME and not len(change.from_names) == len(change.to_names) == 1:
            yield self.error(Severity.SEVERE, f"Incorrect rename: {change}", change)

    def _check_encoding(self, change: Change) -> Iterator[ValidationError]:
        text = _change_text(change)
        try:
            text.encode("utf-8")
        except UnicodeEncodeError:
            yield self.error(Severity.SEVERE, f"Change {change.id} contains invalid UTF-8 characters", change)
            return
        if not text.isascii():
            yield self.error(Severity.WARNING, f"Change {change.id} cannot be rendered in ASCII: {change}", change)


__all__ = ["ChangeValidator"]
