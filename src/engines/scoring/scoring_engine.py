"""
Scoring Engine - turns graded answers into a percentage and an XP award.
"""

import math
from typing import Any, List, Mapping, Optional, Sequence

from pydantic import BaseModel

from src.engines.scoring.grader import Grader, QuestionResult
from src.engines.scoring.oracle import ScoringOracle


class ScoreEvaluation(BaseModel):
    """Outcome of grading one submission."""

    total_questions: int
    correct_answers: int
    score_percentage: int
    xp_awarded: int
    passed: bool
    question_results: List[QuestionResult]


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


class ScoringEngine:
    """
    Tiered scoring.

    | score    | XP         |
    |----------|------------|
    | >= 90    | R x 1.5    |
    | 80 - 89  | R x 1.2    |
    | 70 - 79  | R          |
    | 50 - 69  | R x 0.5    |
    | < 50     | 0          |

    A score of 70 or more passes. Retakes are allowed while attempts are
    below max_attempts, or always when max_attempts is unset.
    """

    PASS_SCORE = 70
    XP_TIERS = (
        (90, 1.5),
        (80, 1.2),
        (70, 1.0),
        (50, 0.5),
    )

    @classmethod
    def score_percentage(cls, correct: int, total: int) -> int:
        if total <= 0:
            return 0
        return round_half_up(100 * correct / total)

    @classmethod
    def xp_for_score(cls, score: int, base_xp: int) -> int:
        for threshold, multiplier in cls.XP_TIERS:
            if score >= threshold:
                return round_half_up(base_xp * multiplier)
        return 0

    @classmethod
    def is_passing(cls, score: int, pass_score: Optional[int] = None) -> bool:
        return score >= (cls.PASS_SCORE if pass_score is None else pass_score)

    @classmethod
    def can_retake(cls, attempts: int, max_attempts: Optional[int]) -> bool:
        if not max_attempts:
            return True
        return attempts < max_attempts

    @classmethod
    async def evaluate(
        cls,
        questions: Sequence[Mapping[str, Any]],
        solution: Mapping[str, Any],
        answers: Mapping[int, Any],
        base_xp: int,
        oracle: Optional[ScoringOracle] = None,
        pass_score: Optional[int] = None,
        open_text_pass_score: int = 70,
    ) -> ScoreEvaluation:
        """
        Grade every question in order. Missing answers count as incorrect.

        Args:
            questions: challenge questions, each with a "type"
            solution: stored solution with an "answers" list indexed like questions
            answers: submitted answers keyed by question index
            base_xp: the challenge's xp_reward
        """
        expected_answers = list(solution.get("answers") or [])
        results: List[QuestionResult] = []
        for index, question in enumerate(questions):
            expected = expected_answers[index] if index < len(expected_answers) else None
            results.append(
                await Grader.grade(
                    index,
                    dict(question),
                    answers.get(index),
                    expected,
                    oracle,
                    open_text_pass_score,
                )
            )

        correct = sum(1 for r in results if r.correct)
        score = cls.score_percentage(correct, len(results))
        return ScoreEvaluation(
            total_questions=len(results),
            correct_answers=correct,
            score_percentage=score,
            xp_awarded=cls.xp_for_score(score, base_xp),
            passed=cls.is_passing(score, pass_score),
            question_results=results,
        )
