"""
Resolved caller identity.

Authentication itself belongs to the external identity provider. The engine
only needs "who is calling" and "which role do they hold" before a write.
"""

import uuid
from typing import Awaitable, Callable, Optional

from pydantic import BaseModel

from src.kernel.errors import Unauthenticated
from src.kernel.models.user import UserRole


class Identity(BaseModel):
    """Authenticated caller."""

    user_id: uuid.UUID
    role: UserRole = UserRole.USER

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


IdentityResolver = Callable[[], Awaitable[Optional[Identity]]]


class StaticIdentityResolver:
    """Resolver that always returns the same identity (or nobody)."""

    def __init__(self, identity: Optional[Identity] = None):
        self.identity = identity

    async def __call__(self) -> Optional[Identity]:
        return self.identity


async def require_identity(resolver: IdentityResolver, operation: str) -> Identity:
    """Resolve the caller or fail the write with Unauthenticated."""
    identity = await resolver()
    if identity is None:
        raise Unauthenticated("User not authenticated", operation=operation)
    return identity
