"""
Kernel Data Models

Core SQLAlchemy models: the five-level content hierarchy, learner progress,
XP aggregates and certificates.
"""

from src.kernel.models.base import Base, TimestampMixin, AuditMixin, generate_uuid
from src.kernel.models.user import UserProfile, UserRole
from src.kernel.models.content import (
    ContentKind,
    ContentStatus,
    DifficultyLevel,
    LessonType,
    ChallengeType,
    LearningPath,
    Course,
    Module,
    Lesson,
    Challenge,
)
from src.kernel.models.progress import (
    ProgressStatus,
    UserProgress,
    UserXP,
    XPLevel,
    DEFAULT_XP_LEVELS,
)
from src.kernel.models.certificate import Certificate, CertificateStatus, CertificateType

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "AuditMixin",
    "generate_uuid",
    # User
    "UserProfile",
    "UserRole",
    # Content
    "ContentKind",
    "ContentStatus",
    "DifficultyLevel",
    "LessonType",
    "ChallengeType",
    "LearningPath",
    "Course",
    "Module",
    "Lesson",
    "Challenge",
    # Progress
    "ProgressStatus",
    "UserProgress",
    "UserXP",
    "XPLevel",
    "DEFAULT_XP_LEVELS",
    # Certificates
    "Certificate",
    "CertificateStatus",
    "CertificateType",
]
