"""
Cache administration endpoints.
"""

from typing import Optional

from fastapi import APIRouter

from src.api.deps import Cache, RequireCacheDelete, RequireCacheRead
from src.logging_config import get_logger
from src.schemas.common import CacheInvalidateResponse, CacheStatsResponse

logger = get_logger(__name__)

router = APIRouter()


@router.get("/stats", response_model=CacheStatsResponse)
async def cache_stats(_: RequireCacheRead, cache: Cache):
    return cache.stats()


@router.delete("", response_model=CacheInvalidateResponse)
async def invalidate_cache(_: RequireCacheDelete, cache: Cache, pattern: Optional[str] = None):
    """Drop entries whose key contains pattern, or everything when omitted."""
    removed = cache.invalidate(pattern)
    logger.info("Cache invalidated by admin", extra={"pattern": pattern, "removed": removed})
    return CacheInvalidateResponse(pattern=pattern, removed=removed)
