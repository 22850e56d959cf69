"""
Certificate endpoints - issue, revoke, list own, and public verification by code.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Response, status

from src.api.deps import CurrentIdentity, Issuer, Records, RequireCertificateIssue
from src.kernel.models.certificate import CertificateStatus
from src.kernel.models.content import ContentKind
from src.schemas.certificate import (
    CertificateIssueRequest,
    CertificateResponse,
    CertificateVerificationResponse,
)

router = APIRouter()


@router.get("/me", response_model=List[CertificateResponse])
async def list_my_certificates(identity: CurrentIdentity, records: Records):
    """Certificates held by the caller, newest first."""
    return await records.get_user_certificates(identity.user_id)


@router.post(
    "",
    response_model=Optional[CertificateResponse],
    status_code=status.HTTP_201_CREATED,
)
async def issue_certificate(
    body: CertificateIssueRequest,
    _: RequireCertificateIssue,
    issuer: Issuer,
    response: Response,
):
    """
    Issue a certificate for a completed path or course.

    Returns 200 with a null body when the user already holds one.
    """
    certificate = await issuer.issue_certificate(
        body.user_id,
        body.content_id,
        ContentKind(body.content_type),
        body.certificate_type,
    )
    if certificate is None:
        response.status_code = status.HTTP_200_OK
    return certificate


@router.post("/{certificate_id}/revoke", response_model=CertificateResponse)
async def revoke_certificate(certificate_id: uuid.UUID, issuer: Issuer):
    # Admin check lives in the issuer
    return await issuer.revoke_certificate(certificate_id)


@router.get("/verify/{verification_code}", response_model=CertificateVerificationResponse)
async def verify_certificate(verification_code: str, records: Records):
    """Public lookup; a revoked or unknown code is reported as invalid."""
    certificate = await records.get_certificate_by_code(verification_code.strip().upper())
    valid = certificate is not None and certificate.status == CertificateStatus.ISSUED.value
    return CertificateVerificationResponse(
        verification_code=verification_code,
        valid=valid,
        certificate=CertificateResponse.model_validate(certificate) if certificate else None,
    )
