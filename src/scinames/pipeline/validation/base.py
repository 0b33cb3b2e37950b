"""Shared types for project validators."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, ClassVar, Iterator, Optional

from ...entities.change import Change
from ...entities.dataset import Dataset

if TYPE_CHECKING:  # pragma: no cover
    from ...project import Project


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    SEVERE = "severe"

    @property
    def rank(self) -> int:
        return {"info": 0, "warning": 1, "severe": 2}[self.value]


@dataclass(slots=True)
class ValidationError:
    """A finding reported by a validator; returned, never raised."""

    severity: Severity
    validator: str
    message: str
    target: object = None
    dataset_hint: Optional[Dataset] = None

    @property
    def dataset(self) -> Optional[Dataset]:
        """The dataset the finding is about, when one can be derived."""

        if self.dataset_hint is not None:
            return self.dataset_hint
        if isinstance(self.target, Dataset):
            return self.target
        if isinstance(self.target, Change):
            return self.target.dataset
        return None

    @property
    def target_label(self) -> str:
        if self.target is None:
            return ""
        if isinstance(self.target, Dataset):
            return self.target.citation
        return str(self.target)

    def to_dict(self) -> dict:
        dataset = self.dataset
        return {
            "severity": self.severity.value,
            "validator": self.validator,
            "message": self.message,
            "target": self.target_label,
            "dataset": dataset.citation if dataset is not None else None,
        }

    def __str__(self) -> str:
        return f"[{self.severity.value}] {self.validator}: {self.message}"


class Validator(ABC):
    """Inspects a project and yields findings."""

    name: ClassVar[str]
    key: ClassVar[str]

    @abstractmethod
    def validate(self, project: "Project") -> Iterator[ValidationError]:
        """Yield findings for ``project``."""

    def error(
        self,
        severity: Severity,
        message: str,
        target: object = None,
        dataset: Optional[Dataset] = None,
    ) -> ValidationError:
        return ValidationError(severity, self.name, message, target, dataset)


__all__ = ["Severity", "ValidationError", "Validator"]
