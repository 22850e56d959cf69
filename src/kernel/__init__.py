"""
Stable Kernel Layer

Foundational components the engines build on:
- Data models (content hierarchy, progress, XP, certificates)
- Store port (QuerySpec + ContentStore) and its SQLAlchemy backend
- Identity Core (resolved caller, bearer tokens)
- Permission Core (role table)
- Error taxonomy
"""

from src.kernel.errors import (
    Conflict,
    ContentServiceError,
    ExhaustedRetries,
    IncompleteContent,
    NotFound,
    Unauthenticated,
    Unauthorized,
    UpstreamFailure,
)

__all__ = [
    "Conflict",
    "ContentServiceError",
    "ExhaustedRetries",
    "IncompleteContent",
    "NotFound",
    "Unauthenticated",
    "Unauthorized",
    "UpstreamFailure",
]
