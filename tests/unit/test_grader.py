"""Unit tests for per-question grading and the scoring oracle."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.config import Settings
from src.engines.scoring import GradingMethod, Grader, OpenAIScoringOracle, parse_score
from src.kernel.errors import UpstreamFailure


class TestChoiceQuestions:

    @pytest.mark.asyncio
    async def test_single_choice(self):
        right = await Grader.grade(0, {"type": "single_choice"}, "b", "b", None)
        wrong = await Grader.grade(0, {"type": "single_choice"}, "a", "b", None)
        assert right.correct and not wrong.correct

    @pytest.mark.asyncio
    async def test_multiple_choice_ignores_order(self):
        result = await Grader.grade(1, {"type": "multiple_choice"}, ["c", "a"], ["a", "c"], None)
        assert result.correct

    @pytest.mark.asyncio
    async def test_multiple_choice_subset_is_wrong(self):
        result = await Grader.grade(1, {"type": "multiple_choice"}, ["a"], ["a", "c"], None)
        assert not result.correct

    @pytest.mark.asyncio
    async def test_drag_drop_mapping(self):
        expected = {"int": "numbers", "str": "text"}
        assert (await Grader.grade(0, {"type": "drag_drop"}, dict(expected), expected, None)).correct
        swapped = {"int": "text", "str": "numbers"}
        assert not (await Grader.grade(0, {"type": "drag_drop"}, swapped, expected, None)).correct

    @pytest.mark.asyncio
    async def test_missing_answer(self):
        result = await Grader.grade(2, {"type": "single_choice"}, None, "a", None)
        assert not result.correct
        assert result.method == GradingMethod.MISSING


class TestOpenText:

    @pytest.mark.asyncio
    async def test_oracle_score_at_threshold_passes(self):
        oracle = AsyncMock()
        oracle.score.return_value = 70
        result = await Grader.grade(
            0, {"type": "open_text", "question": "Why?"}, "because", "reason", oracle, 70,
        )
        assert result.correct
        assert result.method == GradingMethod.ORACLE
        assert result.oracle_score == 70
        oracle.score.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_oracle_score_below_threshold_fails(self):
        oracle = AsyncMock()
        oracle.score.return_value = 69
        result = await Grader.grade(0, {"type": "open_text"}, "meh", "reason", oracle, 70)
        assert not result.correct

    @pytest.mark.asyncio
    async def test_oracle_failure_falls_back_to_containment(self):
        oracle = AsyncMock()
        oracle.score.side_effect = UpstreamFailure("timeout")
        result = await Grader.grade(
            0, {"type": "open_text"}, "A List Comprehension builds lists", "list comprehension", oracle,
        )
        assert result.correct
        assert result.method == GradingMethod.FALLBACK

    @pytest.mark.asyncio
    async def test_fallback_without_reference_match(self):
        result = await Grader.grade(0, {"type": "open_text"}, "no idea", "generator", None)
        assert not result.correct
        assert result.method == GradingMethod.FALLBACK

    @pytest.mark.asyncio
    @pytest.mark.parametrize("reference", ["", "   ", None])
    async def test_fallback_with_blank_reference_is_wrong(self, reference):
        result = await Grader.grade(0, {"type": "open_text"}, "anything at all", reference, None)
        assert not result.correct
        assert result.method == GradingMethod.FALLBACK


class TestOracle:

    def test_parse_score(self):
        assert parse_score("85") == 85
        assert parse_score(" 0\n") == 0
        for raw in ("excellent", "150", "1000", "-5", "Score: 42/100", "7.5"):
            with pytest.raises(ValueError):
                parse_score(raw)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("reply", ["1000", "-5"])
    async def test_malformed_reply_is_upstream_failure(self, reply):
        response = MagicMock()
        response.choices = [MagicMock(message=MagicMock(content=reply))]
        client = MagicMock()
        client.chat.completions.create = AsyncMock(return_value=response)

        oracle = OpenAIScoringOracle(Settings(openai_api_key="sk-test-key"))
        with patch("openai.AsyncOpenAI", return_value=client):
            with pytest.raises(UpstreamFailure):
                await oracle.score("q", "a", "r", "rubric")

    @pytest.mark.asyncio
    async def test_placeholder_key_raises_upstream_failure(self):
        oracle = OpenAIScoringOracle(Settings(openai_api_key="sk-your-openai-api-key"))
        with pytest.raises(UpstreamFailure):
            await oracle.score("q", "a", "r", "rubric")

    @pytest.mark.asyncio
    async def test_missing_key_raises_upstream_failure(self):
        oracle = OpenAIScoringOracle(Settings(openai_api_key=""))
        with pytest.raises(UpstreamFailure):
            await oracle.score("q", "a", "r", "rubric")
