"""
Analytics Aggregator - read-only roll-ups over the store.

Every roll-up fans out independent queries with asyncio.gather and
return_exceptions=True. A failed query degrades its own field to zero or
empty and is reported in failed_fields; the other fields are unaffected.
"""

import asyncio
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Dict, List, Optional, Tuple

from pydantic import BaseModel

from src.config import Settings, get_settings
from src.engines.caching import TTLCache
from src.engines.content.hierarchy import LEVELS, descendant_levels
from src.kernel.models.certificate import Certificate, CertificateStatus
from src.kernel.models.content import ContentKind, ContentStatus, LearningPath
from src.kernel.models.progress import ProgressStatus, UserProgress, UserXP, XPLevel
from src.kernel.models.user import UserProfile, UserRole
from src.kernel.store import ContentStore, QuerySpec
from src.logging_config import get_logger

logger = get_logger(__name__)


class TopPerformer(BaseModel):
    user_id: uuid.UUID
    display_name: Optional[str] = None
    total_xp: int
    current_level: int
    current_title: str


class PathEnrollment(BaseModel):
    path_id: uuid.UUID
    title: str
    enrolled_users: int
    completions: int


class RecentCompletion(BaseModel):
    user_id: uuid.UUID
    content_id: uuid.UUID
    content_type: str
    completed_at: Optional[datetime] = None
    xp_earned: int = 0


class PlatformSummary(BaseModel):
    """Platform-wide roll-up."""

    total_users: int = 0
    users_by_role: Dict[str, int] = {}
    active_users: int = 0
    content_totals: Dict[str, int] = {}
    published_totals: Dict[str, int] = {}
    xp_distribution: Dict[str, int] = {}
    top_performers: List[TopPerformer] = []
    path_enrollments: List[PathEnrollment] = []
    recent_completions: List[RecentCompletion] = []
    failed_fields: List[str] = []


class ContentStats(BaseModel):
    total_paths: int = 0
    total_courses: int = 0
    total_modules: int = 0
    total_lessons: int = 0
    total_challenges: int = 0
    published_paths: int = 0
    published_courses: int = 0
    published_modules: int = 0
    published_lessons: int = 0
    total_users: int = 0
    active_users: int = 0
    failed_fields: List[str] = []


class UserLearningStats(BaseModel):
    total_xp: int = 0
    current_level: int = 1
    current_title: str = "Newcomer"
    paths_completed: int = 0
    courses_completed: int = 0
    modules_completed: int = 0
    lessons_completed: int = 0
    challenges_completed: int = 0
    certificates_earned: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    total_study_time: int = 0
    failed_fields: List[str] = []


async def gather_fields(queries: Dict[str, Awaitable[Any]]) -> Tuple[Dict[str, Any], List[str]]:
    """Run named queries concurrently; failures are logged and left out of the result."""
    names = list(queries)
    outcomes = await asyncio.gather(*queries.values(), return_exceptions=True)
    values: Dict[str, Any] = {}
    failed: List[str] = []
    for name, outcome in zip(names, outcomes):
        if isinstance(outcome, BaseException):
            logger.warning("Analytics sub-query %s failed: %s", name, outcome, extra={"field": name})
            failed.append(name)
        else:
            values[name] = outcome
    return values, failed


class AnalyticsAggregator:
    """Platform, content and per-user statistics."""

    def __init__(
        self,
        store: ContentStore,
        cache: TTLCache,
        settings: Optional[Settings] = None,
    ):
        self.store = store
        self.cache = cache
        self.settings = settings or get_settings()

    def _active_since(self) -> datetime:
        return datetime.now(timezone.utc) - timedelta(days=self.settings.active_user_window_days)

    # ------------------------------------------------------------------
    # Platform summary
    # ------------------------------------------------------------------

    async def platform_summary(self) -> PlatformSummary:
        async def load() -> PlatformSummary:
            values, failed = await gather_fields({
                "total_users": self.store.count(UserProfile),
                "users_by_role": self._users_by_role(),
                "active_users": self._active_users(),
                "content_totals": self._content_totals(published_only=False),
                "published_totals": self._content_totals(published_only=True),
                "xp_distribution": self._xp_distribution(),
                "top_performers": self._top_performers(),
                "path_enrollments": self._path_enrollments(),
                "recent_completions": self._recent_completions(),
            })
            return PlatformSummary(**values, failed_fields=failed)

        return await self.cache.get_or_load("platform_stats", load, ttl_for=self._summary_ttl)

    def _summary_ttl(self, summary: PlatformSummary) -> float:
        # Degraded summaries expire quickly so recovered sub-queries show up.
        if summary.failed_fields:
            return self.settings.cache_ttl_user
        return self.settings.cache_ttl_stats

    async def _users_by_role(self) -> Dict[str, int]:
        counts = await asyncio.gather(*(
            self.store.count(UserProfile, QuerySpec.where(role=role.value)) for role in UserRole
        ))
        return {role.value: count for role, count in zip(UserRole, counts)}

    async def _active_users(self) -> int:
        return await self.store.count(UserProfile, QuerySpec().gte("last_active_at", self._active_since()))

    async def _content_totals(self, published_only: bool) -> Dict[str, int]:
        spec = QuerySpec.where(status=ContentStatus.PUBLISHED.value) if published_only else None
        counts = await asyncio.gather(*(self.store.count(level.model, spec) for level in LEVELS))
        return {level.kind.value: count for level, count in zip(LEVELS, counts)}

    async def _xp_distribution(self) -> Dict[str, int]:
        levels = await self.store.select(XPLevel, QuerySpec().order("level_id"))
        counts = await asyncio.gather(*(
            self.store.count(UserXP, QuerySpec.where(current_level=level.level_id)) for level in levels
        ))
        return {level.title: count for level, count in zip(levels, counts)}

    async def _top_performers(self) -> List[TopPerformer]:
        rows = await self.store.select(
            UserXP,
            QuerySpec().order("total_xp", descending=True).page(limit=self.settings.top_performers_limit),
        )
        if not rows:
            return []
        profiles = await self.store.select(UserProfile, QuerySpec().in_("id", [r.user_id for r in rows]))
        names = {p.id: p.display_name for p in profiles}
        return [
            TopPerformer(
                user_id=r.user_id,
                display_name=names.get(r.user_id),
                total_xp=r.total_xp,
                current_level=r.current_level,
                current_title=r.current_title,
            )
            for r in rows
        ]

    async def _path_content_ids(self, path_id: uuid.UUID) -> List[uuid.UUID]:
        ids = [path_id]
        parent_ids = [path_id]
        for level in descendant_levels(ContentKind.PATH):
            children = await self.store.select(level.model, QuerySpec().in_(level.parent_field, parent_ids))
            if not children:
                break
            parent_ids = [c.id for c in children]
            ids.extend(parent_ids)
        return ids

    async def _path_enrollment(self, path: LearningPath) -> PathEnrollment:
        content_ids = await self._path_content_ids(path.id)
        rows = await self.store.select(UserProgress, QuerySpec().in_("content_id", content_ids))
        completions = sum(
            1 for r in rows
            if r.content_id == path.id and r.status == ProgressStatus.COMPLETED.value
        )
        return PathEnrollment(
            path_id=path.id,
            title=path.title,
            enrolled_users=len({r.user_id for r in rows}),
            completions=completions,
        )

    async def _path_enrollments(self) -> List[PathEnrollment]:
        paths = await self.store.select(
            LearningPath, QuerySpec.where(status=ContentStatus.PUBLISHED.value).order("sort_order"),
        )
        return list(await asyncio.gather(*(self._path_enrollment(p) for p in paths)))

    async def _recent_completions(self) -> List[RecentCompletion]:
        rows = await self.store.select(
            UserProgress,
            QuerySpec.where(status=ProgressStatus.COMPLETED.value)
            .order("completed_at", descending=True)
            .page(limit=self.settings.recent_completions_limit),
        )
        return [
            RecentCompletion(
                user_id=r.user_id,
                content_id=r.content_id,
                content_type=r.content_type,
                completed_at=r.completed_at,
                xp_earned=r.xp_earned,
            )
            for r in rows
        ]

    # ------------------------------------------------------------------
    # Content and per-user stats
    # ------------------------------------------------------------------

    async def content_stats(self) -> ContentStats:
        async def load() -> ContentStats:
            values, failed = await gather_fields({
                "totals": self._content_totals(published_only=False),
                "published": self._content_totals(published_only=True),
                "total_users": self.store.count(UserProfile),
                "active_users": self._active_users(),
            })
            totals = values.get("totals", {})
            published = values.get("published", {})
            return ContentStats(
                total_paths=totals.get("path", 0),
                total_courses=totals.get("course", 0),
                total_modules=totals.get("module", 0),
                total_lessons=totals.get("lesson", 0),
                total_challenges=totals.get("challenge", 0),
                published_paths=published.get("path", 0),
                published_courses=published.get("course", 0),
                published_modules=published.get("module", 0),
                published_lessons=published.get("lesson", 0),
                total_users=values.get("total_users", 0),
                active_users=values.get("active_users", 0),
                failed_fields=failed,
            )

        return await self.cache.get_or_load("content_stats", load, self.settings.cache_ttl_stats)

    async def user_learning_stats(self, user_id: uuid.UUID) -> UserLearningStats:
        async def load() -> UserLearningStats:
            values, failed = await gather_fields({
                "xp": self.store.first(UserXP, QuerySpec.where(user_id=user_id)),
                "progress": self.store.select(UserProgress, QuerySpec.where(user_id=user_id)),
                "certificates": self.store.count(
                    Certificate,
                    QuerySpec.where(user_id=user_id, status=CertificateStatus.ISSUED.value),
                ),
            })
            xp = values.get("xp")
            progress = values.get("progress", [])
            done = [p for p in progress if p.completed_at is not None]

            def completed(kind: ContentKind) -> int:
                return sum(1 for p in done if p.content_type == kind.value)

            return UserLearningStats(
                total_xp=xp.total_xp if xp else 0,
                current_level=xp.current_level if xp else 1,
                current_title=xp.current_title if xp else "Newcomer",
                paths_completed=completed(ContentKind.PATH),
                courses_completed=completed(ContentKind.COURSE),
                modules_completed=completed(ContentKind.MODULE),
                lessons_completed=completed(ContentKind.LESSON),
                challenges_completed=completed(ContentKind.CHALLENGE),
                certificates_earned=values.get("certificates", 0),
                current_streak=xp.current_streak if xp else 0,
                longest_streak=xp.longest_streak if xp else 0,
                total_study_time=sum(p.time_spent for p in progress),
                failed_fields=failed,
            )

        return await self.cache.get_or_load(f"user_stats_{user_id}", load, self.settings.cache_ttl_user)
