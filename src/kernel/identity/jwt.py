"""
JWT bearer tokens carrying the caller's id and role.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from pydantic import BaseModel

from src.config import get_settings
from src.kernel.identity.identity import Identity
from src.kernel.models.user import UserRole


class AccessTokenPayload(BaseModel):
    """JWT access token payload."""

    sub: str  # User ID
    role: str
    exp: datetime
    iat: datetime
    jti: str


class JWTManager:
    """
    JWT token creation and verification.

    Tokens are minted by the identity provider in production; create_access_token
    exists for local development and tests.
    """

    def __init__(
        self,
        secret_key: Optional[str] = None,
        algorithm: Optional[str] = None,
        access_token_expire_minutes: Optional[int] = None,
    ):
        settings = get_settings()
        self.secret_key = secret_key or settings.secret_key
        self.algorithm = algorithm or settings.algorithm
        self.access_token_expire_minutes = (
            access_token_expire_minutes or settings.access_token_expire_minutes
        )

    def create_access_token(
        self,
        user_id: uuid.UUID,
        role: str,
        expires_delta: Optional[timedelta] = None,
    ) -> str:
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta or timedelta(minutes=self.access_token_expire_minutes))
        payload = {
            "sub": str(user_id),
            "role": role,
            "exp": expire,
            "iat": now,
            "jti": str(uuid.uuid4()),
            "type": "access",
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def verify_access_token(self, token: str) -> Optional[AccessTokenPayload]:
        """
        Verify and decode an access token.

        Returns:
            AccessTokenPayload if valid, None otherwise
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
            )

            if payload.get("type") != "access":
                return None

            return AccessTokenPayload(
                sub=payload["sub"],
                role=payload.get("role", UserRole.USER.value),
                exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
                iat=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
                jti=payload["jti"],
            )
        except (JWTError, KeyError):
            return None

    def identity_from_token(self, token: str) -> Optional[Identity]:
        """Decode a token into an Identity; None for invalid tokens or unknown roles."""
        payload = self.verify_access_token(token)
        if payload is None:
            return None
        try:
            return Identity(user_id=uuid.UUID(payload.sub), role=UserRole(payload.role))
        except ValueError:
            return None


_jwt_manager: Optional[JWTManager] = None


def get_jwt_manager() -> JWTManager:
    """Get or create the default JWT manager."""
    global _jwt_manager
    if _jwt_manager is None:
        _jwt_manager = JWTManager()
    return _jwt_manager


def create_access_token(
    user_id: uuid.UUID,
    role: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create an access token."""
    return get_jwt_manager().create_access_token(user_id, role, expires_delta)
