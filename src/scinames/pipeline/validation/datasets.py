"""Checks on each dataset's changes and rows."""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING, Dict, Iterator, List

from ...entities.change import Change, ChangeType
from ...entities.dataset import Dataset
from ...entities.name import Name
from ...exceptions import ConsistencyError
from .base import Severity, ValidationError, Validator

if TYPE_CHECKING:  # pragma: no cover
    from ...project import Project

_NO_EFFECT_EXEMPT = (ChangeType.ERROR,)


class DatasetValidator(Validator):
    name = "Dataset validator"
    key = "datasets"

    def validate(self, project: "Project") -> Iterator[ValidationError]:
        unmapped_severity = Severity(project.policies.validation.unmapped_row_severity)
        for dataset in project.datasets:
            changes = dataset.get_changes(project)
            yield from self._check_repeats(dataset, changes)
            yield from self._check_effects(project, dataset, changes)
            yield from self._check_rows(dataset, unmapped_severity)

    def _check_repeats(self, dataset: Dataset, changes: List[Change]) -> Iterator[ValidationError]:
        added: Counter = Counter()
        deleted: Counter = Counter()
        first_added: Dict[Name, int] = {}
        first_deleted: Dict[Name, int] = {}
        for position, change in enumerate(changes):
            if change.type == ChangeType.ADDITION:
                for name in change.to_names:
                    added[name] += 1
                    first_added.setdefault(name, position)
            elif change.type == ChangeType.DELETION:
                for name in change.from_names:
                    deleted[name] += 1
                    first_deleted.setdefault(name, position)

        for name in sorted(added):
            if added[name] > 1:
                yield self.error(Severity.SEVERE, f"Name {name} added multiple times ({added[name]}) in {dataset}", dataset)
        for name in sorted(deleted):
            if deleted[name] > 1:
                yield self.error(
                    Severity.SEVERE, f"Name {name} deleted multiple times ({deleted[name]}) in {dataset}", dataset
                )
        for name in sorted(set(added) & set(deleted)):
            if first_deleted[name] < first_added[name]:
                message = f"Name {name} deleted and added in {dataset}"
            else:
                message = f"Name {name} added and deleted in {dataset}"
            yield self.error(Severity.SEVERE, message, dataset)

    def _check_effects(self, project: "Project", dataset: Dataset, changes: List[Change]) -> Iterator[ValidationError]:
        previous = dataset.previous_dataset
        before = project.get_recognized_names(previous) if previous is not None else set()
        after = project.get_recognized_names(dataset)
        gained = after - before
        lost = before - after
        for change in changes:
            if change.type in _NO_EFFECT_EXEMPT or not change.type.is_recognized:
                continue
            for name in change.to_names:
                if name not in gained and name not in change.from_names:
                    yield self.error(
                        Severity.SEVERE, f"Change has no effect: {name} was not newly recognized by {change}", change
                    )
            for name in change.from_names:
                if name not in lost and name not in change.to_names:
                    yield self.error(
                        Severity.SEVERE, f"Change has no effect: {name} was not removed by {change}", change
                    )

    def _check_rows(self, dataset: Dataset, severity: Severity) -> Iterator[ValidationError]:
        rows = set(dataset.rows)
        for row, names in dataset.get_names_by_row().items():
            if row not in rows:
                raise ConsistencyError(f"Row {row!r} is indexed for {dataset} but not part of it")
            if not names:
                yield self.error(
                    severity,
                    "No scientific name found for row; it will be excluded from analyses",
                    row,
                    dataset,
                )


__all__ = ["DatasetValidator"]
