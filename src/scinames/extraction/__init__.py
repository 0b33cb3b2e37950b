"""Scientific name extraction from dataset rows."""

from .extractors import (
    BinomialNameExtractor,
    GenusAndEpithetsExtractor,
    NameExtractor,
    NameExtractorFactory,
    ScientificNameExtractor,
    parse_name_extractors,
)

__all__ = [
    "NameExtractor",
    "ScientificNameExtractor",
    "BinomialNameExtractor",
    "GenusAndEpithetsExtractor",
    "NameExtractorFactory",
    "parse_name_extractors",
]
