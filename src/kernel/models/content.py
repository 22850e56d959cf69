"""
Learning content hierarchy: Path > Course > Module > Lesson > Challenge.

Every node carries a lifecycle status. A node is never published while its
parent is not; the cascade propagator keeps that true on unpublish/archive.
"""

import uuid
from enum import Enum
from typing import Any, List, Optional

from sqlalchemy import JSON, Boolean, ForeignKey, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from src.kernel.models.base import AuditMixin, Base, TimestampMixin, generate_uuid


class ContentKind(str, Enum):
    """Hierarchy node kinds, root first."""
    PATH = "path"
    COURSE = "course"
    MODULE = "module"
    LESSON = "lesson"
    CHALLENGE = "challenge"


class ContentStatus(str, Enum):
    """Content lifecycle status."""
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class DifficultyLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class LessonType(str, Enum):
    READING = "reading"
    VIDEO = "video"
    INTERACTIVE = "interactive"
    QUIZ = "quiz"


class ChallengeType(str, Enum):
    QUIZ = "quiz"
    CODE = "code"
    ESSAY = "essay"
    MULTIPLE_CHOICE = "multiple_choice"


class LearningPath(Base, TimestampMixin, AuditMixin):
    """Top-level learning track."""

    __tablename__ = "learning_paths"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(), primary_key=True, default=generate_uuid)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    short_description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    difficulty: Mapped[DifficultyLevel] = mapped_column(
        String(20), default=DifficultyLevel.BEGINNER, nullable=False,
    )
    estimated_hours: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    status: Mapped[ContentStatus] = mapped_column(
        String(20), default=ContentStatus.DRAFT, nullable=False, index=True,
    )
    featured: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    image_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    tags: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)
    prerequisites: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)
    learning_outcomes: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    def __repr__(self) -> str:
        return f"<LearningPath {self.slug}>"


class Course(Base, TimestampMixin, AuditMixin):
    """Group of related modules within a path."""

    __tablename__ = "courses"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(), primary_key=True, default=generate_uuid)
    path_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(), ForeignKey("learning_paths.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    short_description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    difficulty: Mapped[DifficultyLevel] = mapped_column(
        String(20), default=DifficultyLevel.BEGINNER, nullable=False,
    )
    estimated_hours: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    status: Mapped[ContentStatus] = mapped_column(
        String(20), default=ContentStatus.DRAFT, nullable=False, index=True,
    )
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    image_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    __table_args__ = (UniqueConstraint("path_id", "slug", name="uq_courses_path_slug"),)


class Module(Base, TimestampMixin, AuditMixin):
    """Group of lessons within a course."""

    __tablename__ = "modules"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(), primary_key=True, default=generate_uuid)
    course_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    short_description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    estimated_minutes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    status: Mapped[ContentStatus] = mapped_column(
        String(20), default=ContentStatus.DRAFT, nullable=False, index=True,
    )
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    __table_args__ = (UniqueConstraint("course_id", "slug", name="uq_modules_course_slug"),)


class Lesson(Base, TimestampMixin, AuditMixin):
    """Individual learning unit."""

    __tablename__ = "lessons"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(), primary_key=True, default=generate_uuid)
    module_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(), ForeignKey("modules.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), nullable=False)
    content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)  # Markdown
    summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    estimated_minutes: Mapped[int] = mapped_column(Integer, default=5, nullable=False)
    xp_reward: Mapped[int] = mapped_column(Integer, default=10, nullable=False)
    status: Mapped[ContentStatus] = mapped_column(
        String(20), default=ContentStatus.DRAFT, nullable=False, index=True,
    )
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    lesson_type: Mapped[LessonType] = mapped_column(
        String(20), default=LessonType.READING, nullable=False,
    )
    video_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    video_duration: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # seconds
    meta_title: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    meta_description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    __table_args__ = (UniqueConstraint("module_id", "slug", name="uq_lessons_module_slug"),)


class Challenge(Base, TimestampMixin, AuditMixin):
    """Quiz or exercise attached to a lesson."""

    __tablename__ = "challenges"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(), primary_key=True, default=generate_uuid)
    lesson_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(), ForeignKey("lessons.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    challenge_type: Mapped[ChallengeType] = mapped_column(
        String(20), default=ChallengeType.QUIZ, nullable=False,
    )
    # {"questions": [{"type": ..., "question": ..., "options": [...], "rubric": ...}]}
    content: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    # {"answers": [<reference answer per question index>]}
    solution: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
    hints: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)
    xp_reward: Mapped[int] = mapped_column(Integer, default=20, nullable=False)
    max_attempts: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # None = unlimited
    time_limit: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # minutes
    status: Mapped[ContentStatus] = mapped_column(
        String(20), default=ContentStatus.DRAFT, nullable=False, index=True,
    )
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    __table_args__ = (UniqueConstraint("lesson_id", "slug", name="uq_challenges_lesson_slug"),)
