"""Configuration utilities for scinames."""

from .policies import (
    DEFAULT_NAME_EXTRACTORS,
    ClusteringPolicy,
    ExtractionPolicy,
    GeneratorPolicy,
    PersistencePolicy,
    Policies,
    ValidationPolicy,
    load_policies,
)
from .settings import PathsConfig, Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
    "PathsConfig",
    "Policies",
    "load_policies",
    "DEFAULT_NAME_EXTRACTORS",
    "ExtractionPolicy",
    "ClusteringPolicy",
    "GeneratorPolicy",
    "PersistencePolicy",
    "ValidationPolicy",
]
