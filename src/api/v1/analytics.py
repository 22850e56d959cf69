"""
Analytics endpoints - platform summary, content totals and per-user learning stats.
"""

import uuid

from fastapi import APIRouter, HTTPException, status

from src.api.deps import Analytics, CurrentIdentity, RequireAnalyticsRead
from src.engines.analytics import ContentStats, PlatformSummary, UserLearningStats
from src.kernel.permissions import Action, Resource, has_permission

router = APIRouter()


@router.get("/summary", response_model=PlatformSummary)
async def platform_summary(_: RequireAnalyticsRead, analytics: Analytics):
    """Platform-wide roll-up. Failed sub-queries are listed in failed_fields."""
    return await analytics.platform_summary()


@router.get("/content", response_model=ContentStats)
async def content_stats(_: RequireAnalyticsRead, analytics: Analytics):
    return await analytics.content_stats()


@router.get("/users/me", response_model=UserLearningStats)
async def my_learning_stats(identity: CurrentIdentity, analytics: Analytics):
    return await analytics.user_learning_stats(identity.user_id)


@router.get("/users/{user_id}", response_model=UserLearningStats)
async def user_learning_stats(user_id: uuid.UUID, identity: CurrentIdentity, analytics: Analytics):
    """Stats for one user; callers may read their own, managers anyone's."""
    if user_id != identity.user_id and not has_permission(identity.role, Resource.ANALYTICS, Action.READ):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions. Required: analytics:read",
        )
    return await analytics.user_learning_stats(user_id)
