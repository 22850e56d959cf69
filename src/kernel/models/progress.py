"""
Learner progress models - per-item progress, XP aggregate and level table.
"""

import uuid
from datetime import date, datetime
from enum import Enum
from typing import Optional

from sqlalchemy import Date, DateTime, Integer, String, UniqueConstraint, Uuid, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import Mapped, mapped_column

from src.kernel.models.base import Base, TimestampMixin, generate_uuid


class ProgressStatus(str, Enum):
    """Learner status on a single content item."""
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    SKIPPED = "skipped"


class UserProgress(Base, TimestampMixin):
    """
    Progress of one user on one content item.

    Created lazily on first interaction, never deleted. xp_earned only grows.
    """

    __tablename__ = "user_progress"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(), primary_key=True, default=generate_uuid)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid(), nullable=False, index=True)
    content_id: Mapped[uuid.UUID] = mapped_column(Uuid(), nullable=False, index=True)
    content_type: Mapped[str] = mapped_column(String(20), nullable=False)

    status: Mapped[ProgressStatus] = mapped_column(
        String(20), default=ProgressStatus.NOT_STARTED, nullable=False,
    )
    completion_percentage: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    time_spent: Mapped[int] = mapped_column(Integer, default=0, nullable=False)  # minutes

    started_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    xp_earned: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    attempts: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    __table_args__ = (UniqueConstraint("user_id", "content_id", name="uq_user_progress_user_content"),)


class UserXP(Base, TimestampMixin):
    """Per-user XP aggregate. total_xp is the sum of UserProgress.xp_earned."""

    __tablename__ = "user_xp"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(), primary_key=True, default=generate_uuid)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid(), nullable=False, unique=True)
    total_xp: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    current_level: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    current_title: Mapped[str] = mapped_column(String(100), default="Newcomer", nullable=False)
    current_streak: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    longest_streak: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_activity_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)


class XPLevel(Base):
    """Level table row; levels are ordered by ascending xp_required."""

    __tablename__ = "xp_levels"

    level_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    xp_required: Mapped[int] = mapped_column(Integer, nullable=False)
    badge_icon: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    badge_color: Mapped[Optional[str]] = mapped_column(String(7), nullable=True)


DEFAULT_XP_LEVELS = (
    (1, "Newcomer", 0, "🌱", "#10B981"),
    (2, "Explorer", 100, "🧭", "#3B82F6"),
    (3, "Learner", 250, "📚", "#8B5CF6"),
    (4, "Practitioner", 500, "⚡", "#F59E0B"),
    (5, "Specialist", 1000, "🎯", "#EF4444"),
    (6, "Expert", 2000, "💎", "#6366F1"),
    (7, "Master", 4000, "👑", "#DC2626"),
    (8, "Legend", 8000, "🏆", "#B91C1C"),
)


async def seed_xp_levels(session_maker: async_sessionmaker[AsyncSession]) -> int:
    """Insert the default level table if it is empty. Returns rows inserted."""
    async with session_maker() as session:
        existing = await session.execute(select(func.count()).select_from(XPLevel))
        if existing.scalar():
            return 0
        for level_id, title, xp_required, icon, color in DEFAULT_XP_LEVELS:
            session.add(XPLevel(
                level_id=level_id,
                title=title,
                xp_required=xp_required,
                badge_icon=icon,
                badge_color=color,
            ))
        await session.commit()
        return len(DEFAULT_XP_LEVELS)
