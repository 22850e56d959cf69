"""
Pydantic schemas for progress, XP and quiz submission.
"""

import uuid
from datetime import date, datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from src.kernel.models.content import ContentKind
from src.kernel.models.progress import ProgressStatus


class ProgressResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    content_id: uuid.UUID
    content_type: str
    status: ProgressStatus
    completion_percentage: int
    time_spent: int
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    xp_earned: int
    score: Optional[int] = None
    attempts: int


class ProgressUpdateRequest(BaseModel):
    """Progress write from the lesson player (reading, video, skipping)."""

    content_type: ContentKind
    status: Optional[ProgressStatus] = None
    completion_percentage: Optional[int] = Field(default=None, ge=0, le=100)
    time_spent: Optional[int] = Field(default=None, ge=0)


class UserXPResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: uuid.UUID
    total_xp: int
    current_level: int
    current_title: str
    current_streak: int
    longest_streak: int
    last_activity_date: Optional[date] = None


class XPLevelResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    level_id: int
    title: str
    xp_required: int
    badge_icon: Optional[str] = None
    badge_color: Optional[str] = None


class QuizSubmitRequest(BaseModel):
    """Answers keyed by question index; unanswered questions may be omitted."""

    answers: Dict[int, Any] = {}
    time_spent: int = Field(default=0, ge=0)


class UserLevelProgressResponse(UserXPResponse):
    """XP aggregate plus distance to the next level (None at the top level)."""

    next_level_title: Optional[str] = None
    xp_to_next_level: Optional[int] = None
