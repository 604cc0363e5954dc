"""
Activity feed, summaries, calendar and dashboard statistics.
"""

from .normalizers import (
    NORMALIZER_REGISTRY,
    ActivityNormalizer,
    PatternNormalizer,
    ProgressNormalizer,
    ProjectNormalizer,
    YarnNormalizer,
)
from .aggregator import ActivityAggregator, parse_activity_types, parse_period
from .stats import DashboardStats

__all__ = [
    "NORMALIZER_REGISTRY",
    "ActivityNormalizer",
    "PatternNormalizer",
    "ProgressNormalizer",
    "ProjectNormalizer",
    "YarnNormalizer",
    "ActivityAggregator",
    "parse_activity_types",
    "parse_period",
    "DashboardStats",
]
