"""Change generators and their registry."""

from __future__ import annotations

from typing import Dict, List, Type

from ...entities.dataset import DatasetColumn
from ...exceptions import GeneratorConfigurationError
from .base import ChangeGenerator, SynonymyChangeGenerator
from .genus import GenusChangesFromComposition, GenusReorganizationFromRenames
from .identifiers import RenamesByIdChangeGenerator, RenamesFromIdsInData
from .synonyms import SynonymsFromColumnChangeGenerator

GENERATORS: Dict[str, Type[ChangeGenerator]] = {
    generator.key: generator
    for generator in (
        SynonymsFromColumnChangeGenerator,
        RenamesFromIdsInData,
        RenamesByIdChangeGenerator,
        GenusChangesFromComposition,
        GenusReorganizationFromRenames,
    )
}


def create_generator(key: str, column: DatasetColumn | str | None = None) -> ChangeGenerator:
    """Instantiate the generator registered under ``key``."""

    generator_type = GENERATORS.get(key)
    if generator_type is None:
        raise GeneratorConfigurationError(f"Unknown generator '{key}'; expected one of: {', '.join(GENERATORS)}")
    if generator_type.needs_dataset_column and column is None:
        raise GeneratorConfigurationError(f"Generator '{key}' needs a dataset column")
    if not generator_type.needs_dataset_column and column is not None:
        raise GeneratorConfigurationError(f"Generator '{key}' does not take a dataset column")
    return generator_type(column)


def available_generators() -> List[Type[ChangeGenerator]]:
    return list(GENERATORS.values())


__all__ = [
    "ChangeGenerator",
    "SynonymyChangeGenerator",
    "SynonymsFromColumnChangeGenerator",
    "RenamesFromIdsInData",
    "RenamesByIdChangeGenerator",
    "GenusChangesFromComposition",
    "GenusReorganizationFromRenames",
    "GENERATORS",
    "create_generator",
    "available_generators",
]
