"""
User profile model.

Accounts and credentials live with the external identity provider; this table
only mirrors the profile fields the engine reads (role, display name, activity).
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from src.kernel.models.base import Base, TimestampMixin, generate_uuid


class UserRole(str, Enum):
    """User roles in the system."""
    USER = "user"
    CONTENT_MANAGER = "content_manager"
    ADMIN = "admin"


class UserProfile(Base, TimestampMixin):
    """Profile of an authenticated user."""

    __tablename__ = "user_profiles"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    display_name: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )
    role: Mapped[UserRole] = mapped_column(
        String(50),
        default=UserRole.USER,
        nullable=False,
    )
    avatar_url: Mapped[Optional[str]] = mapped_column(
        String(500),
        nullable=True,
    )
    bio: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    last_active_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<UserProfile {self.display_name or self.id}>"
