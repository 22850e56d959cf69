"""
Static description of the five-level content hierarchy.

Each level knows its ORM model, the foreign key to its parent and the cache
key prefixes used for its list and detail reads. The cascade propagator and
the repository facade walk this table instead of branching per kind.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Type

from src.kernel.models.base import Base
from src.kernel.models.content import (
    Challenge,
    ContentKind,
    Course,
    LearningPath,
    Lesson,
    Module,
)


@dataclass(frozen=True)
class HierarchyLevel:
    kind: ContentKind
    model: Type[Base]
    parent_kind: Optional[ContentKind]
    parent_field: Optional[str]
    singular: str  # detail cache prefix: "{singular}_{id}"
    plural: str  # list cache prefix: "{plural}_{parent_id|all}"

    @property
    def label(self) -> str:
        return self.singular.replace("_", " ")


LEVELS: Tuple[HierarchyLevel, ...] = (
    HierarchyLevel(ContentKind.PATH, LearningPath, None, None, "learning_path", "learning_paths"),
    HierarchyLevel(ContentKind.COURSE, Course, ContentKind.PATH, "path_id", "course", "courses"),
    HierarchyLevel(ContentKind.MODULE, Module, ContentKind.COURSE, "course_id", "module", "modules"),
    HierarchyLevel(ContentKind.LESSON, Lesson, ContentKind.MODULE, "module_id", "lesson", "lessons"),
    HierarchyLevel(ContentKind.CHALLENGE, Challenge, ContentKind.LESSON, "lesson_id", "challenge", "challenges"),
)

_BY_KIND: Dict[ContentKind, HierarchyLevel] = {level.kind: level for level in LEVELS}


def level_for(kind: ContentKind) -> HierarchyLevel:
    return _BY_KIND[ContentKind(kind)]


def parent_level(kind: ContentKind) -> Optional[HierarchyLevel]:
    level = level_for(kind)
    return _BY_KIND[level.parent_kind] if level.parent_kind else None


def descendant_levels(kind: ContentKind) -> List[HierarchyLevel]:
    """Levels strictly beneath kind, shallowest first."""
    index = LEVELS.index(level_for(kind))
    return list(LEVELS[index + 1:])
