"""
Content Engine - hierarchy table, cascade propagator, repository facade and learner records.
"""

from src.engines.content.hierarchy import (
    LEVELS,
    HierarchyLevel,
    descendant_levels,
    level_for,
    parent_level,
)
from src.engines.content.cascade import CascadePropagator
from src.engines.content.repository import ContentRepository, ContentSearchParams
from src.engines.content.learner_records import LearnerRecords, ProgressUpdate

__all__ = [
    "LEVELS",
    "HierarchyLevel",
    "descendant_levels",
    "level_for",
    "parent_level",
    "CascadePropagator",
    "ContentRepository",
    "ContentSearchParams",
    "LearnerRecords",
    "ProgressUpdate",
]
