"""
Grader - per-question grading for challenge submissions.
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel

from src.engines.scoring.oracle import DEFAULT_RUBRIC, ScoringOracle
from src.kernel.errors import UpstreamFailure
from src.logging_config import get_logger

logger = get_logger(__name__)


class QuestionType(str, Enum):
    SINGLE_CHOICE = "single_choice"
    MULTIPLE_CHOICE = "multiple_choice"
    OPEN_TEXT = "open_text"
    DRAG_DROP = "drag_drop"


class GradingMethod(str, Enum):
    EXACT = "exact"
    ORACLE = "oracle"
    FALLBACK = "fallback"  # oracle unavailable, substring match
    MISSING = "missing"


class QuestionResult(BaseModel):
    """Result for a single question."""

    question_index: int
    question_type: str
    correct: bool
    answer: Any = None
    method: GradingMethod = GradingMethod.EXACT
    oracle_score: Optional[int] = None


def _same_choices(answer: Any, expected: Any) -> bool:
    if isinstance(answer, (list, tuple)) and isinstance(expected, (list, tuple)):
        try:
            return set(answer) == set(expected) and len(answer) == len(expected)
        except TypeError:
            return list(answer) == list(expected)
    return answer == expected


class Grader:
    """
    Grades one question at a time.

    Choice questions compare against the stored answer (set equality for
    several choices), drag-and-drop compares the item-to-zone mapping
    structurally, open text asks the scoring oracle and falls back to a
    case-insensitive containment check when the oracle fails.
    """

    @classmethod
    async def grade(
        cls,
        index: int,
        question: Dict[str, Any],
        answer: Any,
        expected: Any,
        oracle: Optional[ScoringOracle],
        pass_score: int = 70,
    ) -> QuestionResult:
        qtype = str(question.get("type") or QuestionType.SINGLE_CHOICE.value)

        if answer is None:
            return QuestionResult(
                question_index=index,
                question_type=qtype,
                correct=False,
                method=GradingMethod.MISSING,
            )

        if qtype == QuestionType.OPEN_TEXT.value:
            return await cls._grade_open_text(index, question, answer, expected, oracle, pass_score)

        if qtype == QuestionType.DRAG_DROP.value:
            correct = answer == expected
        else:
            correct = _same_choices(answer, expected)

        return QuestionResult(
            question_index=index,
            question_type=qtype,
            correct=correct,
            answer=answer,
        )

    @classmethod
    async def _grade_open_text(
        cls,
        index: int,
        question: Dict[str, Any],
        answer: Any,
        expected: Any,
        oracle: Optional[ScoringOracle],
        pass_score: int,
    ) -> QuestionResult:
        text = str(answer)
        reference = "" if expected is None else str(expected).strip()
        try:
            if oracle is None:
                raise UpstreamFailure("No scoring oracle configured", operation="score_text_answer")
            score = await oracle.score(
                question.get("question", ""),
                text,
                reference,
                question.get("rubric") or DEFAULT_RUBRIC,
            )
        except UpstreamFailure as exc:
            logger.warning(
                "Oracle scoring failed for question %d, using text match: %s",
                index,
                exc,
            )
            return QuestionResult(
                question_index=index,
                question_type=QuestionType.OPEN_TEXT.value,
                correct=bool(reference) and reference.lower() in text.lower(),
                answer=answer,
                method=GradingMethod.FALLBACK,
            )

        return QuestionResult(
            question_index=index,
            question_type=QuestionType.OPEN_TEXT.value,
            correct=score >= pass_score,
            answer=answer,
            method=GradingMethod.ORACLE,
            oracle_score=score,
        )
