"""
Analytics Engine - partial-failure tolerant roll-ups.
"""

from src.engines.analytics.aggregator import (
    AnalyticsAggregator,
    ContentStats,
    PathEnrollment,
    PlatformSummary,
    RecentCompletion,
    TopPerformer,
    UserLearningStats,
)

__all__ = [
    "AnalyticsAggregator",
    "ContentStats",
    "PathEnrollment",
    "PlatformSummary",
    "RecentCompletion",
    "TopPerformer",
    "UserLearningStats",
]
