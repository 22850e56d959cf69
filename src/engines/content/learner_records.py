"""
Learner records - progress, XP aggregate, level table and certificate reads.

Per-user reads use the short user TTL, the level table the long levels TTL.
Progress writes are lazy upserts; xp_earned never decreases for a
(user, content) pair and UserXP is recomputed from the progress rows after
each write.
"""

import uuid
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional

from pydantic import BaseModel, Field

from src.config import Settings, get_settings
from src.engines.caching import TTLCache
from src.engines.scoring.levels import level_for_xp
from src.kernel.errors import UpstreamFailure
from src.kernel.models.certificate import Certificate
from src.kernel.models.content import ContentKind
from src.kernel.models.progress import ProgressStatus, UserProgress, UserXP, XPLevel
from src.kernel.models.user import UserProfile
from src.kernel.store import ContentStore, QuerySpec
from src.logging_config import get_logger

logger = get_logger(__name__)


class ProgressUpdate(BaseModel):
    """Fields a progress write may set; None leaves the stored value alone."""

    status: Optional[ProgressStatus] = None
    completion_percentage: Optional[int] = Field(default=None, ge=0, le=100)
    time_spent: Optional[int] = Field(default=None, ge=0)
    xp_earned: Optional[int] = Field(default=None, ge=0)
    score: Optional[int] = Field(default=None, ge=0, le=100)
    attempts: Optional[int] = Field(default=None, ge=0)


def next_streak(
    last_activity: Optional[date],
    current: int,
    today: date,
) -> int:
    """Consecutive-day streak after activity on `today`."""
    if last_activity == today:
        return max(current, 1)
    if last_activity == today - timedelta(days=1):
        return current + 1
    return 1


class LearnerRecords:
    """Reads and writes for per-user learning state."""

    def __init__(
        self,
        store: ContentStore,
        cache: TTLCache,
        settings: Optional[Settings] = None,
    ):
        self.store = store
        self.cache = cache
        self.settings = settings or get_settings()

    # ------------------------------------------------------------------
    # Progress
    # ------------------------------------------------------------------

    async def get_user_progress(
        self,
        user_id: uuid.UUID,
        content_id: Optional[uuid.UUID] = None,
    ) -> List[UserProgress]:
        spec = QuerySpec.where(user_id=user_id)
        if content_id is not None:
            spec = spec.eq("content_id", content_id)

        async def load() -> List[UserProgress]:
            return await self.store.select(UserProgress, spec.order("updated_at", descending=True))

        try:
            return await self.cache.get_or_load(
                f"user_progress_{user_id}_{content_id or 'all'}",
                load,
                self.settings.cache_ttl_user,
            )
        except UpstreamFailure as exc:
            logger.error("Loading progress for %s failed: %s", user_id, exc,
                         extra={"operation": "get_user_progress"})
            return []

    async def find_progress(self, user_id: uuid.UUID, content_id: uuid.UUID) -> Optional[UserProgress]:
        """Uncached lookup used before writes."""
        return await self.store.first(
            UserProgress, QuerySpec.where(user_id=user_id, content_id=content_id),
        )

    async def update_progress(
        self,
        user_id: uuid.UUID,
        content_id: uuid.UUID,
        content_kind: ContentKind,
        update: ProgressUpdate,
    ) -> UserProgress:
        """Create or update the (user, content) progress record and refresh UserXP."""
        existing = await self.find_progress(user_id, content_id)
        now = datetime.now(timezone.utc)
        values = update.model_dump(exclude_none=True)
        if "status" in values:
            values["status"] = ProgressStatus(values["status"]).value

        previous_xp = existing.xp_earned if existing else 0
        if "xp_earned" in values:
            values["xp_earned"] = max(previous_xp, values["xp_earned"])

        status = values.get("status")
        if status in (ProgressStatus.IN_PROGRESS.value, ProgressStatus.COMPLETED.value):
            if existing is None or existing.started_at is None:
                values["started_at"] = now
        if status == ProgressStatus.COMPLETED.value:
            if existing is None or existing.completed_at is None:
                values["completed_at"] = now
            values.setdefault("completion_percentage", 100)

        row = await self.store.upsert(
            UserProgress,
            match={"user_id": user_id, "content_id": content_id},
            values={"content_type": ContentKind(content_kind).value, **values},
        )

        self.cache.invalidate(f"user_progress_{user_id}")
        self.cache.invalidate(f"user_stats_{user_id}")
        await self.refresh_user_xp(user_id, now.date())
        return row

    # ------------------------------------------------------------------
    # XP
    # ------------------------------------------------------------------

    async def refresh_user_xp(self, user_id: uuid.UUID, today: Optional[date] = None) -> UserXP:
        """Recompute total XP, level and streaks for a user."""
        today = today or datetime.now(timezone.utc).date()
        rows = await self.store.select(UserProgress, QuerySpec.where(user_id=user_id))
        total = sum(r.xp_earned for r in rows)

        levels = await self.get_xp_levels()
        level = level_for_xp(total, levels)

        current = await self.store.first(UserXP, QuerySpec.where(user_id=user_id))
        streak = next_streak(
            current.last_activity_date if current else None,
            current.current_streak if current else 0,
            today,
        )
        longest = max(streak, current.longest_streak if current else 0)

        xp = await self.store.upsert(
            UserXP,
            match={"user_id": user_id},
            values={
                "total_xp": total,
                "current_level": level.level_id if level else 1,
                "current_title": level.title if level else "Newcomer",
                "current_streak": streak,
                "longest_streak": longest,
                "last_activity_date": today,
            },
        )
        await self.store.update_where(
            UserProfile,
            QuerySpec.where(id=user_id),
            {"last_active_at": datetime.now(timezone.utc)},
        )
        self.cache.invalidate(f"user_xp_{user_id}")
        return xp

    async def get_user_xp(self, user_id: uuid.UUID) -> Optional[UserXP]:
        async def load() -> Optional[UserXP]:
            return await self.store.first(UserXP, QuerySpec.where(user_id=user_id))

        return await self.cache.get_or_load(f"user_xp_{user_id}", load, self.settings.cache_ttl_user)

    async def get_xp_levels(self) -> List[XPLevel]:
        async def load() -> List[XPLevel]:
            return await self.store.select(XPLevel, QuerySpec().order("level_id"))

        try:
            return await self.cache.get_or_load("xp_levels", load, self.settings.cache_ttl_levels)
        except UpstreamFailure as exc:
            logger.error("Loading XP levels failed: %s", exc, extra={"operation": "get_xp_levels"})
            return []

    # ------------------------------------------------------------------
    # Certificates
    # ------------------------------------------------------------------

    async def get_user_certificates(self, user_id: uuid.UUID) -> List[Certificate]:
        async def load() -> List[Certificate]:
            return await self.store.select(
                Certificate,
                QuerySpec.where(user_id=user_id).order("issued_at", descending=True),
            )

        try:
            return await self.cache.get_or_load(
                f"user_certificates_{user_id}", load, self.settings.cache_ttl_content,
            )
        except UpstreamFailure as exc:
            logger.error("Loading certificates for %s failed: %s", user_id, exc,
                         extra={"operation": "get_user_certificates"})
            return []

    async def get_certificate_by_code(self, verification_code: str) -> Optional[Certificate]:
        """Public verification lookup."""
        async def load() -> Optional[Certificate]:
            return await self.store.first(
                Certificate, QuerySpec.where(verification_code=verification_code),
            )

        return await self.cache.get_or_load(
            f"certificate_{verification_code}", load, self.settings.cache_ttl_content,
        )
