"""Renames read from a synonym column."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Iterator, Set, Tuple

from ...entities.change import ChangeType, Synonymy
from ...entities.dataset import Dataset
from ...entities.name import Name
from ...utils.logging import get_logger
from .base import SynonymyChangeGenerator

if TYPE_CHECKING:  # pragma: no cover
    from ...project import Project

_LOGGER = get_logger(module=__name__)


class SynonymsFromColumnChangeGenerator(SynonymyChangeGenerator):
    """Proposes ``synonym -> row name`` renames from a column listing synonyms.

    Cells may list several synonyms separated by commas, semicolons or pipes.
    Pairs already recorded as a rename in the dataset are skipped.
    """

    key = "synonyms-from-column"
    name = "Synonyms from column"
    description = "Renames from each synonym listed in a column to the names on the same row."
    needs_dataset_column = True

    def find_synonymies(self, project: "Project", dataset: Dataset) -> Iterator[Synonymy]:
        column = self._require_column()
        if column not in dataset.columns:
            _LOGGER.debug("Dataset lacks synonym column", dataset=dataset.name, column=column.name)
            return
        separator = re.compile(project.policies.generators.synonym_separator_pattern)
        recorded: Set[Tuple[Name, Name]] = {
            (change.from_names[0], change.to_names[0])
            for change in dataset.get_all_changes(ChangeType.RENAME)
            if change.from_names and change.to_names
        }
        names_by_row = dataset.get_names_by_row()
        for row in dataset.rows:
            text = (row.get(column) or "").strip()
            row_names = names_by_row.get(row, [])
            if not text or not row_names:
                continue
            for token in separator.split(text):
                token = token.strip()
                if not token:
                    continue
                try:
                    synonym = project.names.get_from_full_name(token)
                except ValueError:
                    synonym = None
                if synonym is None:
                    _LOGGER.warning(
                        "Could not parse synonym", dataset=dataset.name, column=column.name, token=token
                    )
                    continue
                for name in row_names:
                    if (synonym, name) in recorded:
                        continue
                    yield Synonymy(synonym, name, dataset, note=f"Listed as a synonym of {name} in {column}")


__all__ = ["SynonymsFromColumnChangeGenerator"]
