"""
Quiz submission - grades a challenge attempt and records the outcome.

Flow: attempt limit check -> grading -> progress write (attempts + 1, XP
never lowered) -> on a pass, lesson completion when every published
challenge of the lesson is completed -> completion of the module, course
and path above it, with certificates for courses and paths.
"""

import uuid
from typing import Any, List, Mapping, Optional

from pydantic import BaseModel

from src.config import Settings, get_settings
from src.engines.certificates import CertificateIssuer
from src.engines.content import LearnerRecords, ProgressUpdate, level_for, parent_level
from src.engines.scoring.grader import QuestionResult
from src.engines.scoring.oracle import ScoringOracle
from src.engines.scoring.scoring_engine import ScoringEngine
from src.kernel.errors import Conflict, NotFound
from src.kernel.identity import IdentityResolver, require_identity
from src.kernel.models.content import Challenge, ContentKind, ContentStatus
from src.kernel.models.progress import ProgressStatus, UserProgress
from src.kernel.store import ContentStore, QuerySpec
from src.logging_config import get_logger

logger = get_logger(__name__)


class QuizResult(BaseModel):
    """What the learner sees after submitting."""

    challenge_id: uuid.UUID
    score_percentage: int
    correct_answers: int
    total_questions: int
    xp_awarded: int
    passed: bool
    status: ProgressStatus
    attempts: int
    can_retake: bool
    question_results: List[QuestionResult]
    completed_content: List[uuid.UUID] = []
    certificates_issued: List[str] = []


class QuizSubmissionService:
    """Scores challenge submissions for the calling user."""

    def __init__(
        self,
        store: ContentStore,
        records: LearnerRecords,
        issuer: CertificateIssuer,
        identity_resolver: IdentityResolver,
        oracle: Optional[ScoringOracle] = None,
        settings: Optional[Settings] = None,
    ):
        self.store = store
        self.records = records
        self.issuer = issuer
        self.identity_resolver = identity_resolver
        self.oracle = oracle
        self.settings = settings or get_settings()

    async def submit(
        self,
        challenge_id: uuid.UUID,
        answers: Mapping[int, Any],
        time_spent: int = 0,
    ) -> QuizResult:
        """
        Grade one attempt.

        Raises:
            Unauthenticated: no caller resolved
            NotFound: challenge missing
            Conflict: challenge not published, or no attempts left
        """
        identity = await require_identity(self.identity_resolver, "submit_challenge")
        user_id = identity.user_id

        challenge = await self.store.get(Challenge, challenge_id)
        if challenge is None:
            raise NotFound("Challenge not found", operation="submit_challenge")
        if challenge.status != ContentStatus.PUBLISHED.value:
            raise Conflict("Challenge is not available", operation="submit_challenge")

        progress = await self.records.find_progress(user_id, challenge_id)
        attempts = progress.attempts if progress else 0
        if not ScoringEngine.can_retake(attempts, challenge.max_attempts):
            raise Conflict(
                "No attempts remaining for this challenge",
                operation="submit_challenge",
                details={"attempts": attempts, "max_attempts": challenge.max_attempts},
            )

        evaluation = await ScoringEngine.evaluate(
            questions=(challenge.content or {}).get("questions") or [],
            solution=challenge.solution or {},
            answers=answers,
            base_xp=challenge.xp_reward,
            oracle=self.oracle,
            pass_score=self.settings.completion_pass_score,
            open_text_pass_score=self.settings.open_text_pass_score,
        )

        already_completed = progress is not None and progress.status == ProgressStatus.COMPLETED.value
        status = (
            ProgressStatus.COMPLETED
            if evaluation.passed or already_completed
            else ProgressStatus.IN_PROGRESS
        )
        attempts += 1
        await self.records.update_progress(
            user_id,
            challenge_id,
            ContentKind.CHALLENGE,
            ProgressUpdate(
                status=status,
                completion_percentage=100 if status == ProgressStatus.COMPLETED else evaluation.score_percentage,
                score=evaluation.score_percentage,
                xp_earned=evaluation.xp_awarded,
                attempts=attempts,
                time_spent=(progress.time_spent if progress else 0) + time_spent,
            ),
        )
        logger.info(
            "Challenge %s scored %d%% (%d XP) on attempt %d",
            challenge_id,
            evaluation.score_percentage,
            evaluation.xp_awarded,
            attempts,
            extra={"user_id": str(user_id), "challenge_id": str(challenge_id)},
        )

        completed: List[uuid.UUID] = []
        certificates: List[str] = []
        if evaluation.passed:
            await self._complete_ancestors(user_id, challenge.lesson_id, completed, certificates)

        return QuizResult(
            challenge_id=challenge_id,
            score_percentage=evaluation.score_percentage,
            correct_answers=evaluation.correct_answers,
            total_questions=evaluation.total_questions,
            xp_awarded=evaluation.xp_awarded,
            passed=evaluation.passed,
            status=status,
            attempts=attempts,
            can_retake=ScoringEngine.can_retake(attempts, challenge.max_attempts),
            question_results=evaluation.question_results,
            completed_content=completed,
            certificates_issued=certificates,
        )

    async def _lesson_challenges_done(self, user_id: uuid.UUID, lesson_id: uuid.UUID) -> bool:
        challenges = await self.store.select(
            Challenge,
            QuerySpec.where(lesson_id=lesson_id, status=ContentStatus.PUBLISHED.value),
        )
        if not challenges:
            return False
        done = await self.store.count(
            UserProgress,
            QuerySpec.where(user_id=user_id, status=ProgressStatus.COMPLETED.value)
            .in_("content_id", [c.id for c in challenges]),
        )
        return done == len(challenges)

    async def _complete_ancestors(
        self,
        user_id: uuid.UUID,
        lesson_id: uuid.UUID,
        completed: List[uuid.UUID],
        certificates: List[str],
    ) -> None:
        """Walk lesson -> module -> course -> path while each level is complete."""
        if not await self._lesson_challenges_done(user_id, lesson_id):
            return

        kind: Optional[ContentKind] = ContentKind.LESSON
        node_id: Optional[uuid.UUID] = lesson_id
        while kind is not None and node_id is not None:
            level = level_for(kind)
            node = await self.store.get(level.model, node_id)
            if node is None:
                return
            if kind != ContentKind.LESSON and not await self.issuer.is_completed(user_id, node_id, kind):
                return

            existing = await self.records.find_progress(user_id, node_id)
            if existing is None or existing.status != ProgressStatus.COMPLETED.value:
                await self.records.update_progress(
                    user_id,
                    node_id,
                    kind,
                    ProgressUpdate(
                        status=ProgressStatus.COMPLETED,
                        xp_earned=node.xp_reward if kind == ContentKind.LESSON else None,
                    ),
                )
                completed.append(node_id)

            if kind in (ContentKind.COURSE, ContentKind.PATH):
                certificate = await self.issuer.issue_certificate(user_id, node_id, kind)
                if certificate is not None:
                    certificates.append(certificate.verification_code)

            parent = parent_level(kind)
            if parent is None:
                return
            node_id = getattr(node, level.parent_field)
            kind = parent.kind
