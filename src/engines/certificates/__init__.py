"""
Certificate Engine - completion predicates, verification codes, issue and revoke.
"""

from src.engines.certificates.issuer import (
    CERTIFIABLE_KINDS,
    CertificateIssuer,
    generate_verification_code,
)

__all__ = [
    "CERTIFIABLE_KINDS",
    "CertificateIssuer",
    "generate_verification_code",
]
