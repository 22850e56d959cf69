"""
API v1 routes.
"""

from fastapi import APIRouter

from src.api.v1 import analytics, cache, certificates, content, learning
from src.schemas.common import ErrorResponse

router = APIRouter()

# Engine errors are rendered by the ContentServiceError handler in src.main
_error_responses = {
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}

router.include_router(content.router, prefix="/content", responses=_error_responses)
router.include_router(learning.router, prefix="/learning", tags=["Learning"], responses=_error_responses)
router.include_router(
    certificates.router, prefix="/certificates", tags=["Certificates"], responses=_error_responses,
)
router.include_router(analytics.router, prefix="/analytics", tags=["Analytics"])
router.include_router(cache.router, prefix="/cache", tags=["Cache"])
