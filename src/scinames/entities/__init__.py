"""Domain entities: names, dates, changes and datasets."""

from .change import Change, ChangeType, Citation, PotentialChange, Synonymy
from .dataset import Dataset, DatasetColumn, DatasetRow
from .dates import SimplifiedDate
from .name import Name, NameRegistry

__all__ = [
    "Name",
    "NameRegistry",
    "SimplifiedDate",
    "ChangeType",
    "Change",
    "PotentialChange",
    "Citation",
    "Synonymy",
    "Dataset",
    "DatasetRow",
    "DatasetColumn",
]
