"""Unit tests for tiered scoring, XP awards and retake rules."""

import pytest

from src.engines.scoring import ScoringEngine, level_for_xp, next_level
from src.engines.scoring.scoring_engine import round_half_up
from src.kernel.models.progress import DEFAULT_XP_LEVELS, XPLevel


def _levels():
    return [
        XPLevel(level_id=lid, title=title, xp_required=xp, badge_icon=icon, badge_color=color)
        for lid, title, xp, icon, color in DEFAULT_XP_LEVELS
    ]


class TestXPTiers:

    @pytest.mark.parametrize(
        "score,expected",
        [(100, 30), (90, 30), (89, 24), (80, 24), (79, 20), (70, 20), (69, 10), (50, 10), (49, 0), (0, 0)],
    )
    def test_tiers_for_base_20(self, score, expected):
        assert ScoringEngine.xp_for_score(score, 20) == expected

    def test_half_up_rounding(self):
        # 15 * 0.5 = 7.5 -> 8, 15 * 1.5 = 22.5 -> 23
        assert ScoringEngine.xp_for_score(60, 15) == 8
        assert ScoringEngine.xp_for_score(95, 15) == 23
        assert round_half_up(2.5) == 3
        assert round_half_up(2.4999) == 2


class TestScorePercentage:

    def test_rounds_half_up(self):
        assert ScoringEngine.score_percentage(2, 3) == 67
        assert ScoringEngine.score_percentage(1, 8) == 13  # 12.5
        assert ScoringEngine.score_percentage(1, 3) == 33

    def test_no_questions_scores_zero(self):
        assert ScoringEngine.score_percentage(0, 0) == 0

    def test_pass_threshold(self):
        assert ScoringEngine.is_passing(70)
        assert not ScoringEngine.is_passing(69)
        assert ScoringEngine.is_passing(60, pass_score=60)


class TestRetake:

    def test_unlimited_when_max_unset(self):
        assert ScoringEngine.can_retake(50, None)
        assert ScoringEngine.can_retake(50, 0)

    def test_limited(self):
        assert ScoringEngine.can_retake(2, 3)
        assert not ScoringEngine.can_retake(3, 3)


class TestEvaluate:

    @pytest.mark.asyncio
    async def test_missing_answers_count_incorrect(self):
        questions = [
            {"type": "single_choice", "question": "q1"},
            {"type": "single_choice", "question": "q2"},
            {"type": "single_choice", "question": "q3"},
            {"type": "single_choice", "question": "q4"},
        ]
        result = await ScoringEngine.evaluate(
            questions,
            {"answers": ["a", "b", "c", "d"]},
            {0: "a", 1: "b", 2: "c"},
            base_xp=20,
        )
        assert result.correct_answers == 3
        assert result.score_percentage == 75
        assert result.xp_awarded == 20
        assert result.passed is True
        assert result.question_results[3].method.value == "missing"

    @pytest.mark.asyncio
    async def test_failing_submission(self):
        result = await ScoringEngine.evaluate(
            [{"type": "single_choice"}, {"type": "single_choice"}],
            {"answers": ["a", "b"]},
            {0: "x", 1: "b"},
            base_xp=20,
        )
        assert result.score_percentage == 50
        assert result.xp_awarded == 10
        assert result.passed is False


class TestLevels:

    def test_level_for_xp(self):
        levels = _levels()
        assert level_for_xp(0, levels).title == "Newcomer"
        assert level_for_xp(99, levels).level_id == 1
        assert level_for_xp(100, levels).level_id == 2
        assert level_for_xp(10_000, levels).title == "Legend"

    def test_empty_table(self):
        assert level_for_xp(500, []) is None

    def test_next_level(self):
        levels = _levels()
        assert next_level(120, levels).title == "Learner"
        assert next_level(8000, levels) is None
