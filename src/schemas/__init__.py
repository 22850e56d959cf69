"""
Pydantic schemas for API request/response validation.
"""

from src.schemas.common import (
    CacheInvalidateResponse,
    CacheStatsResponse,
    ErrorResponse,
    HealthResponse,
)
from src.schemas.content import CONTENT_SCHEMAS
from src.schemas.progress import (
    ProgressResponse,
    ProgressUpdateRequest,
    QuizSubmitRequest,
    UserLevelProgressResponse,
    UserXPResponse,
    XPLevelResponse,
)
from src.schemas.certificate import (
    CertificateIssueRequest,
    CertificateResponse,
    CertificateVerificationResponse,
)

__all__ = [
    "CacheInvalidateResponse",
    "CacheStatsResponse",
    "ErrorResponse",
    "HealthResponse",
    "CONTENT_SCHEMAS",
    "ProgressResponse",
    "ProgressUpdateRequest",
    "QuizSubmitRequest",
    "UserLevelProgressResponse",
    "UserXPResponse",
    "XPLevelResponse",
    "CertificateIssueRequest",
    "CertificateResponse",
    "CertificateVerificationResponse",
]
