"""
Error taxonomy for the content engine.

Read paths turn UpstreamFailure into stale cache values or empty results;
write paths and the cascade propagator raise these directly.
"""

from typing import Any, Dict, Optional


class ContentServiceError(Exception):
    """Base class for all engine errors."""

    code = "content_service_error"

    def __init__(
        self,
        message: str,
        *,
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.operation:
            data["operation"] = self.operation
        if self.details:
            data["details"] = self.details
        return data


class NotFound(ContentServiceError):
    """Entity absent."""
    code = "not_found"


class Conflict(ContentServiceError):
    """Slug or code collision, or a state that forbids the operation."""
    code = "conflict"


class IncompleteContent(Conflict):
    """A completion predicate failed for certificate issuance."""
    code = "incomplete_content"


class Unauthenticated(ContentServiceError):
    """No resolved user for a write."""
    code = "unauthenticated"


class Unauthorized(ContentServiceError):
    """Role check failed."""
    code = "unauthorized"


class UpstreamFailure(ContentServiceError):
    """Store or scoring oracle call failed."""
    code = "upstream_failure"


class ExhaustedRetries(ContentServiceError):
    """Verification-code generation gave up."""
    code = "exhausted_retries"
