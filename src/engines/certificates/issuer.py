"""
Certificate Issuer - completion checks, verification codes and issuance.
"""

import secrets
import string
import uuid
from datetime import datetime, timezone
from typing import Optional, Set

from src.config import Settings, get_settings
from src.engines.caching import TTLCache
from src.engines.content.hierarchy import descendant_levels, level_for
from src.kernel.errors import ExhaustedRetries, IncompleteContent, NotFound, Unauthorized
from src.kernel.identity import IdentityResolver, require_identity
from src.kernel.models.certificate import Certificate, CertificateStatus, CertificateType
from src.kernel.models.content import ContentKind, ContentStatus
from src.kernel.models.progress import ProgressStatus, UserProgress
from src.kernel.store import ContentStore, QuerySpec
from src.logging_config import get_logger

logger = get_logger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits
CODE_GROUPS = 4
CODE_GROUP_SIZE = 3
CERTIFIABLE_KINDS = (ContentKind.PATH, ContentKind.COURSE)
_REFERENCE_FIELD = {ContentKind.PATH: "path_id", ContentKind.COURSE: "course_id"}


def generate_verification_code() -> str:
    """12 random uppercase alphanumerics as XXX-XXX-XXX-XXX."""
    return "-".join(
        "".join(secrets.choice(CODE_ALPHABET) for _ in range(CODE_GROUP_SIZE))
        for _ in range(CODE_GROUPS)
    )


class CertificateIssuer:
    """
    Issues and revokes certificates for paths and courses.

    Completion is checked down to lessons: every published child at every
    level must exist and every published lesson must be completed. An empty
    level is never complete.
    """

    def __init__(
        self,
        store: ContentStore,
        cache: TTLCache,
        identity_resolver: IdentityResolver,
        settings: Optional[Settings] = None,
    ):
        self.store = store
        self.cache = cache
        self.identity_resolver = identity_resolver
        self.settings = settings or get_settings()

    async def is_completed(
        self,
        user_id: uuid.UUID,
        content_id: uuid.UUID,
        kind: ContentKind,
    ) -> bool:
        """Whether the user has completed every published lesson beneath the node."""
        kind = ContentKind(kind)
        if kind == ContentKind.CHALLENGE:
            raise ValueError("Challenge completion is tracked by progress, not hierarchy")

        lesson_ids = [content_id]
        if kind != ContentKind.LESSON:
            parent_ids = [content_id]
            for level in descendant_levels(kind):
                children = await self.store.select(
                    level.model,
                    QuerySpec()
                    .in_(level.parent_field, parent_ids)
                    .eq("status", ContentStatus.PUBLISHED.value),
                )
                covered: Set[uuid.UUID] = {getattr(c, level.parent_field) for c in children}
                if not children or covered != set(parent_ids):
                    return False
                parent_ids = [c.id for c in children]
                if level.kind == ContentKind.LESSON:
                    break
            lesson_ids = parent_ids

        completed = await self.store.count(
            UserProgress,
            QuerySpec.where(user_id=user_id, status=ProgressStatus.COMPLETED.value)
            .in_("content_id", lesson_ids),
        )
        return completed == len(lesson_ids)

    async def unique_verification_code(self) -> str:
        attempts = self.settings.verification_code_max_attempts
        for _ in range(attempts):
            code = generate_verification_code()
            taken = await self.store.count(Certificate, QuerySpec.where(verification_code=code))
            if not taken:
                return code
        logger.error("Could not generate a unique verification code in %d attempts", attempts)
        raise ExhaustedRetries(
            f"Could not generate a unique verification code after {attempts} attempts",
            operation="issue_certificate",
        )

    async def issue_certificate(
        self,
        user_id: uuid.UUID,
        content_id: uuid.UUID,
        kind: ContentKind,
        certificate_type: CertificateType = CertificateType.COMPLETION,
    ) -> Optional[Certificate]:
        """
        Issue a certificate for a completed path or course.

        Returns None when the user already holds a non-revoked certificate for
        the same content.

        Raises:
            Unauthenticated: no caller resolved
            NotFound: content missing
            IncompleteContent: completion predicate failed
            ExhaustedRetries: no unique verification code found
        """
        kind = ContentKind(kind)
        if kind not in CERTIFIABLE_KINDS:
            raise ValueError(f"Certificates are issued for paths and courses, not {kind.value}")
        identity = await require_identity(self.identity_resolver, "issue_certificate")
        reference_field = _REFERENCE_FIELD[kind]

        already = await self.store.exists(
            Certificate,
            QuerySpec.where(user_id=user_id, **{reference_field: content_id})
            .neq("status", CertificateStatus.REVOKED.value),
        )
        if already:
            logger.info("Certificate already issued for %s %s to %s", kind.value, content_id, user_id)
            return None

        level = level_for(kind)
        content = await self.store.get(level.model, content_id)
        if content is None:
            raise NotFound(f"{level.label.capitalize()} not found", operation="issue_certificate")

        if not await self.is_completed(user_id, content_id, kind):
            raise IncompleteContent(
                f"{level.label.capitalize()} is not completed",
                operation="issue_certificate",
                details={"content_id": str(content_id), "kind": kind.value},
            )

        code = await self.unique_verification_code()
        certificate = await self.store.insert(
            Certificate,
            {
                "user_id": user_id,
                reference_field: content_id,
                "certificate_type": CertificateType(certificate_type).value,
                "title": f"Certificate of Completion: {content.title}",
                "description": f"Awarded for completing the {level.label} {content.title}.",
                "verification_code": code,
                "status": CertificateStatus.ISSUED.value,
                "issued_by": identity.user_id,
                "issued_at": datetime.now(timezone.utc),
            },
        )
        logger.info(
            "Issued certificate %s for %s %s",
            code,
            kind.value,
            content_id,
            extra={"user_id": str(user_id), "certificate_id": str(certificate.id)},
        )
        self.cache.invalidate(f"user_certificates_{user_id}")
        self.cache.invalidate(f"certificate_{code}")
        self.cache.invalidate(f"user_stats_{user_id}")
        return certificate

    async def revoke_certificate(self, certificate_id: uuid.UUID) -> Certificate:
        """One-way issued -> revoked transition. Admin only; revoking twice is a no-op."""
        identity = await require_identity(self.identity_resolver, "revoke_certificate")
        if not identity.is_admin:
            raise Unauthorized("Only admins can revoke certificates", operation="revoke_certificate")

        certificate = await self.store.get(Certificate, certificate_id)
        if certificate is None:
            raise NotFound("Certificate not found", operation="revoke_certificate")
        if certificate.status == CertificateStatus.REVOKED.value:
            return certificate

        revoked = await self.store.update(
            Certificate,
            certificate_id,
            {
                "status": CertificateStatus.REVOKED.value,
                "revoked_by": identity.user_id,
                "revoked_at": datetime.now(timezone.utc),
            },
        )
        logger.info(
            "Revoked certificate %s",
            certificate.verification_code,
            extra={"certificate_id": str(certificate_id), "revoked_by": str(identity.user_id)},
        )
        self.cache.invalidate(f"user_certificates_{certificate.user_id}")
        self.cache.invalidate(f"certificate_{certificate.verification_code}")
        self.cache.invalidate(f"user_stats_{certificate.user_id}")
        return revoked
