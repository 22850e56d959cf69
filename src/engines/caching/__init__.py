"""
Caching Engine - process-local TTL cache used by every read path.
"""

from src.engines.caching.ttl_cache import CacheEntry, TTLCache

__all__ = [
    "CacheEntry",
    "TTLCache",
]
