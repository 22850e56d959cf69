"""
Common schema types used across the API.
"""

from typing import List, Optional

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str
    code: Optional[str] = None
    operation: Optional[str] = None
    request_id: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str
    database: str = "connected"
    scoring_oracle_configured: bool = False


class CacheStatsResponse(BaseModel):
    size: int
    keys: List[str]


class CacheInvalidateResponse(BaseModel):
    pattern: Optional[str] = None
    removed: int
