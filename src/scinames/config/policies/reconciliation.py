"""Policies steering name extraction, clustering and change generation."""

from __future__ import annotations

import re
from typing import List

from pydantic import BaseModel, Field, field_validator

DEFAULT_NAME_EXTRACTORS = (
    "scientificName(scientificName) or "
    "genusAndEpithets(genus, specificEpithet, subspecificEpithet) or "
    "genusAndEpithets(genus, specificEpithet) or "
    "genusAndEpithets(genus, species) or "
    "scientificName(species)"
)

_BOUNDARY_TYPES = {"added", "deleted", "rename", "lump", "split", "complex", "error"}


class ExtractionPolicy(BaseModel):
    """How scientific names are pulled out of dataset rows."""

    default_name_extractors: str = Field(
        default=DEFAULT_NAME_EXTRACTORS,
        description="Extractor string applied to datasets that do not declare their own.",
    )
    find_all_names: bool = Field(
        default=False,
        description="Collect names from every extractor alternative instead of the first match.",
    )

    @field_validator("default_name_extractors")
    @classmethod
    def _strip(cls, value: str) -> str:
        return value.strip()


class ClusteringPolicy(BaseModel):
    """Controls name cluster construction and taxon concept segmentation."""

    taxon_concept_boundaries: List[str] = Field(
        default_factory=lambda: ["lump", "split", "rename"],
        description="Change types that end one taxon concept and start the next.",
    )
    merge_subspecies_into_binomial: bool = Field(
        default=True,
        description="Place every trinomial in the same cluster as its binomial.",
    )

    @field_validator("taxon_concept_boundaries")
    @classmethod
    def _known_types(cls, value: List[str]) -> List[str]:
        lowered = [item.strip().lower() for item in value]
        unknown = sorted(set(lowered) - _BOUNDARY_TYPES)
        if unknown:
            raise ValueError(f"Unknown change types for concept boundaries: {unknown}")
        return lowered


class GeneratorPolicy(BaseModel):
    """Settings shared by the change generators."""

    synonym_separator_pattern: str = Field(
        default=r"\s*[,;|]\s*",
        description="Regular expression separating synonyms within one cell.",
    )

    @field_validator("synonym_separator_pattern")
    @classmethod
    def _compiles(cls, value: str) -> str:
        try:
            re.compile(value)
        except re.error as exc:
            raise ValueError(f"Invalid synonym separator pattern: {exc}") from exc
        return value


class PersistencePolicy(BaseModel):
    """Defaults for writing project files."""

    compress: bool = Field(default=True, description="Gzip project files unless the suffix says otherwise.")
    indent: bool = Field(default=True)


__all__ = [
    "DEFAULT_NAME_EXTRACTORS",
    "ExtractionPolicy",
    "ClusteringPolicy",
    "GeneratorPolicy",
    "PersistencePolicy",
]
