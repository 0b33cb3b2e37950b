"""Validation-oriented policy models."""

from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel, Field, field_validator

KNOWN_VALIDATORS = ("changes", "datasets", "name_clusters")


class ValidationPolicy(BaseModel):
    """Which validators run and how loud some of their findings are."""

    enabled_validators: List[str] = Field(default_factory=lambda: list(KNOWN_VALIDATORS))
    unmapped_row_severity: Literal["info", "warning", "severe"] = Field(
        default="severe",
        description="Severity reported for rows from which no name could be extracted.",
    )
    report_multiple_binomials: bool = Field(
        default=True,
        description="Report clusters spanning more than one binomial name.",
    )

    @field_validator("enabled_validators")
    @classmethod
    def _known(cls, value: List[str]) -> List[str]:
        unknown = [name for name in value if name not in KNOWN_VALIDATORS]
        if unknown:
            raise ValueError(f"Unknown validators: {unknown}")
        return value


__all__ = ["ValidationPolicy", "KNOWN_VALIDATORS"]
