"""
Identity Core - caller resolution and bearer tokens.
"""

from src.kernel.identity.identity import (
    Identity,
    IdentityResolver,
    StaticIdentityResolver,
    require_identity,
)
from src.kernel.identity.jwt import (
    JWTManager,
    AccessTokenPayload,
    create_access_token,
    get_jwt_manager,
)

__all__ = [
    "Identity",
    "IdentityResolver",
    "StaticIdentityResolver",
    "require_identity",
    "JWTManager",
    "AccessTokenPayload",
    "create_access_token",
    "get_jwt_manager",
]
