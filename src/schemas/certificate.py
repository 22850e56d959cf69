"""
Pydantic schemas for certificates.
"""

import uuid
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict

from src.kernel.models.certificate import CertificateStatus, CertificateType


class CertificateIssueRequest(BaseModel):
    user_id: uuid.UUID
    content_id: uuid.UUID
    content_type: Literal["path", "course"]
    certificate_type: CertificateType = CertificateType.COMPLETION


class CertificateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    path_id: Optional[uuid.UUID] = None
    course_id: Optional[uuid.UUID] = None
    certificate_type: CertificateType
    title: str
    description: Optional[str] = None
    verification_code: str
    status: CertificateStatus
    issued_at: datetime
    revoked_at: Optional[datetime] = None


class CertificateVerificationResponse(BaseModel):
    """Public verification result."""

    verification_code: str
    valid: bool
    certificate: Optional[CertificateResponse] = None
