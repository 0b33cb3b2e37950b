"""Project validators."""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Iterator, Sequence, Type

from ...utils.logging import get_logger
from .base import Severity, ValidationError, Validator
from .changes import ChangeValidator
from .clusters import NameClustersValidator
from .datasets import DatasetValidator

if TYPE_CHECKING:  # pragma: no cover
    from ...project import Project

_LOGGER = get_logger(module=__name__)

VALIDATORS: Dict[str, Type[Validator]] = {
    ChangeValidator.key: ChangeValidator,
    DatasetValidator.key: DatasetValidator,
    NameClustersValidator.key: NameClustersValidator,
}


def run_validators(project: "Project", names: Sequence[str] | None = None) -> Iterator[ValidationError]:
    """Run the named validators (default: those enabled by policy) in order."""

    selected = list(names) if names is not None else list(project.policies.validation.enabled_validators)
    unknown = [name for name in selected if name not in VALIDATORS]
    if unknown:
        raise ValueError(f"Unknown validators {unknown}; expected some of: {', '.join(VALIDATORS)}")
    for name in selected:
        count = 0
        for finding in VALIDATORS[name]().validate(project):
            count += 1
            yield finding
        _LOGGER.info("Validator finished", validator=name, project=project.name, findings=count)


__all__ = [
    "Severity",
    "ValidationError",
    "Validator",
    "ChangeValidator",
    "DatasetValidator",
    "NameClustersValidator",
    "VALIDATORS",
    "run_validators",
]
