"""Sales activity classification, scoring and performance aggregation."""

from .classifier import ActivityClassifier
from .enrichment import ActivityEnricher
from .extraction import InformationExtractor
from .performance import PerformanceAggregator
from .scoring import ActivityScorer

__all__ = [
    "ActivityClassifier",
    "ActivityEnricher",
    "ActivityScorer",
    "InformationExtractor",
    "PerformanceAggregator",
]
