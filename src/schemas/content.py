"""
Pydantic schemas for the content hierarchy API.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field

from src.kernel.models.content import (
    ChallengeType,
    ContentKind,
    ContentStatus,
    DifficultyLevel,
    LessonType,
)

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"


class NodeCreate(BaseModel):
    """Fields shared by every content kind on create."""

    title: str = Field(..., min_length=1, max_length=200)
    slug: str = Field(..., min_length=1, max_length=100, pattern=SLUG_PATTERN)
    status: ContentStatus = ContentStatus.DRAFT
    sort_order: Optional[int] = Field(default=None, ge=0)


class NodeUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    slug: Optional[str] = Field(default=None, min_length=1, max_length=100, pattern=SLUG_PATTERN)
    status: Optional[ContentStatus] = None
    sort_order: Optional[int] = Field(default=None, ge=0)


class NodeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    slug: str
    status: ContentStatus
    sort_order: int
    created_by: Optional[uuid.UUID] = None
    updated_by: Optional[uuid.UUID] = None
    published_by: Optional[uuid.UUID] = None
    published_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


# Learning paths

class LearningPathCreate(NodeCreate):
    description: Optional[str] = None
    short_description: Optional[str] = Field(default=None, max_length=500)
    difficulty: DifficultyLevel = DifficultyLevel.BEGINNER
    estimated_hours: int = Field(default=0, ge=0)
    featured: bool = False
    image_url: Optional[str] = None
    tags: List[str] = []
    prerequisites: List[str] = []
    learning_outcomes: List[str] = []


class LearningPathUpdate(NodeUpdate):
    description: Optional[str] = None
    short_description: Optional[str] = Field(default=None, max_length=500)
    difficulty: Optional[DifficultyLevel] = None
    estimated_hours: Optional[int] = Field(default=None, ge=0)
    featured: Optional[bool] = None
    image_url: Optional[str] = None
    tags: Optional[List[str]] = None
    prerequisites: Optional[List[str]] = None
    learning_outcomes: Optional[List[str]] = None


class LearningPathResponse(NodeResponse):
    description: Optional[str] = None
    short_description: Optional[str] = None
    difficulty: DifficultyLevel
    estimated_hours: int
    featured: bool
    image_url: Optional[str] = None
    tags: List[str] = []
    prerequisites: List[str] = []
    learning_outcomes: List[str] = []


# Courses

class CourseCreate(NodeCreate):
    path_id: uuid.UUID
    description: Optional[str] = None
    short_description: Optional[str] = Field(default=None, max_length=500)
    difficulty: DifficultyLevel = DifficultyLevel.BEGINNER
    estimated_hours: int = Field(default=0, ge=0)
    image_url: Optional[str] = None


class CourseUpdate(NodeUpdate):
    path_id: Optional[uuid.UUID] = None
    description: Optional[str] = None
    short_description: Optional[str] = Field(default=None, max_length=500)
    difficulty: Optional[DifficultyLevel] = None
    estimated_hours: Optional[int] = Field(default=None, ge=0)
    image_url: Optional[str] = None


class CourseResponse(NodeResponse):
    path_id: uuid.UUID
    description: Optional[str] = None
    short_description: Optional[str] = None
    difficulty: DifficultyLevel
    estimated_hours: int
    image_url: Optional[str] = None


# Modules

class ModuleCreate(NodeCreate):
    course_id: uuid.UUID
    description: Optional[str] = None
    short_description: Optional[str] = Field(default=None, max_length=500)
    estimated_minutes: int = Field(default=0, ge=0)


class ModuleUpdate(NodeUpdate):
    course_id: Optional[uuid.UUID] = None
    description: Optional[str] = None
    short_description: Optional[str] = Field(default=None, max_length=500)
    estimated_minutes: Optional[int] = Field(default=None, ge=0)


class ModuleResponse(NodeResponse):
    course_id: uuid.UUID
    description: Optional[str] = None
    short_description: Optional[str] = None
    estimated_minutes: int


# Lessons

class LessonCreate(NodeCreate):
    module_id: uuid.UUID
    content: Optional[str] = None
    summary: Optional[str] = None
    estimated_minutes: int = Field(default=5, ge=0)
    xp_reward: int = Field(default=10, ge=0)
    lesson_type: LessonType = LessonType.READING
    video_url: Optional[str] = None
    video_duration: Optional[int] = Field(default=None, ge=0)
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None


class LessonUpdate(NodeUpdate):
    module_id: Optional[uuid.UUID] = None
    content: Optional[str] = None
    summary: Optional[str] = None
    estimated_minutes: Optional[int] = Field(default=None, ge=0)
    xp_reward: Optional[int] = Field(default=None, ge=0)
    lesson_type: Optional[LessonType] = None
    video_url: Optional[str] = None
    video_duration: Optional[int] = Field(default=None, ge=0)
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None


class LessonResponse(NodeResponse):
    module_id: uuid.UUID
    content: Optional[str] = None
    summary: Optional[str] = None
    estimated_minutes: int
    xp_reward: int
    lesson_type: LessonType
    video_url: Optional[str] = None
    video_duration: Optional[int] = None


# Challenges

class ChallengeCreate(NodeCreate):
    lesson_id: uuid.UUID
    description: str = ""
    challenge_type: ChallengeType = ChallengeType.QUIZ
    content: Dict[str, Any] = {}
    solution: Dict[str, Any] = {}
    hints: List[str] = []
    xp_reward: int = Field(default=20, ge=0)
    max_attempts: Optional[int] = Field(default=None, ge=1)
    time_limit: Optional[int] = Field(default=None, ge=1)


class ChallengeUpdate(NodeUpdate):
    lesson_id: Optional[uuid.UUID] = None
    description: Optional[str] = None
    challenge_type: Optional[ChallengeType] = None
    content: Optional[Dict[str, Any]] = None
    solution: Optional[Dict[str, Any]] = None
    hints: Optional[List[str]] = None
    xp_reward: Optional[int] = Field(default=None, ge=0)
    max_attempts: Optional[int] = Field(default=None, ge=1)
    time_limit: Optional[int] = Field(default=None, ge=1)


class ChallengeResponse(NodeResponse):
    """Challenge as shown to learners; the solution is never included."""

    lesson_id: uuid.UUID
    description: str
    challenge_type: ChallengeType
    content: Dict[str, Any] = {}
    hints: List[str] = []
    xp_reward: int
    max_attempts: Optional[int] = None
    time_limit: Optional[int] = None


CONTENT_SCHEMAS: Dict[ContentKind, Dict[str, Type[BaseModel]]] = {
    ContentKind.PATH: {
        "create": LearningPathCreate, "update": LearningPathUpdate, "response": LearningPathResponse,
    },
    ContentKind.COURSE: {
        "create": CourseCreate, "update": CourseUpdate, "response": CourseResponse,
    },
    ContentKind.MODULE: {
        "create": ModuleCreate, "update": ModuleUpdate, "response": ModuleResponse,
    },
    ContentKind.LESSON: {
        "create": LessonCreate, "update": LessonUpdate, "response": LessonResponse,
    },
    ContentKind.CHALLENGE: {
        "create": ChallengeCreate, "update": ChallengeUpdate, "response": ChallengeResponse,
    },
}
