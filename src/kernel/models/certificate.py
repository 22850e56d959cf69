"""
Certificate model.

Immutable once issued: the content reference and verification code never
change; status only moves issued -> revoked.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from src.kernel.models.base import Base, generate_uuid


class CertificateType(str, Enum):
    COMPLETION = "completion"
    ACHIEVEMENT = "achievement"


class CertificateStatus(str, Enum):
    ISSUED = "issued"
    REVOKED = "revoked"


class Certificate(Base):
    """Credential awarded for completing a path or a course (exactly one of them)."""

    __tablename__ = "certificates"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(), primary_key=True, default=generate_uuid)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid(), nullable=False, index=True)
    path_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(), ForeignKey("learning_paths.id", ondelete="SET NULL"), nullable=True,
    )
    course_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(), ForeignKey("courses.id", ondelete="SET NULL"), nullable=True,
    )

    certificate_type: Mapped[CertificateType] = mapped_column(
        String(20), default=CertificateType.COMPLETION, nullable=False,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    verification_code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)

    status: Mapped[CertificateStatus] = mapped_column(
        String(20), default=CertificateStatus.ISSUED, nullable=False,
    )

    issued_by: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid(), nullable=True)
    issued_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    revoked_by: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid(), nullable=True)
    revoked_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<Certificate {self.verification_code} {self.status}>"
