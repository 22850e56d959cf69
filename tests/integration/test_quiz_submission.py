"""Integration tests for challenge submission end to end."""

import pytest

from src.engines.scoring.submission import QuizSubmissionService
from src.kernel.errors import Conflict, Unauthenticated
from src.kernel.identity import StaticIdentityResolver


@pytest.fixture
def submissions(store, records, issuer, learner, settings) -> QuizSubmissionService:
    return QuizSubmissionService(store, records, issuer, StaticIdentityResolver(learner), settings=settings)


class TestSubmission:

    @pytest.mark.asyncio
    async def test_pass_completes_hierarchy_and_issues_certificates(
        self, submissions, records, learner, make_hierarchy, quiz_answers,
    ):
        tree = await make_hierarchy()
        challenge_id = tree.all_challenge_ids[0]

        result = await submissions.submit(challenge_id, quiz_answers["correct"])

        assert result.passed is True
        assert result.score_percentage == 100
        assert result.xp_awarded == 30
        assert result.attempts == 1
        assert result.completed_content == [tree.lesson_ids[0], tree.module_id, tree.course_id, tree.path_id]
        assert len(result.certificates_issued) == 2

        xp = await records.get_user_xp(learner.user_id)
        assert xp.total_xp == 40  # challenge 30 + lesson 10
        assert xp.current_level == 1

    @pytest.mark.asyncio
    async def test_failing_attempt(self, submissions, records, learner, make_hierarchy, quiz_answers):
        tree = await make_hierarchy()
        challenge_id = tree.all_challenge_ids[0]

        result = await submissions.submit(challenge_id, quiz_answers["half"])

        assert result.passed is False
        assert result.score_percentage == 50
        assert result.xp_awarded == 10
        assert result.status.value == "in_progress"
        assert result.can_retake is True
        assert result.completed_content == []
        lesson = await records.find_progress(learner.user_id, tree.lesson_ids[0])
        assert lesson is None

    @pytest.mark.asyncio
    async def test_xp_never_decreases_and_completion_sticks(
        self, submissions, records, learner, make_hierarchy, quiz_answers,
    ):
        tree = await make_hierarchy()
        challenge_id = tree.all_challenge_ids[0]
        await submissions.submit(challenge_id, quiz_answers["correct"])
        second = await submissions.submit(challenge_id, quiz_answers["half"])

        assert second.attempts == 2
        assert second.status.value == "completed"
        progress = await records.find_progress(learner.user_id, challenge_id)
        assert progress.xp_earned == 30
        assert progress.score == 50
        assert progress.attempts == 2

    @pytest.mark.asyncio
    async def test_attempt_limit(self, submissions, make_hierarchy, quiz_answers):
        tree = await make_hierarchy(max_attempts=2)
        challenge_id = tree.all_challenge_ids[0]
        await submissions.submit(challenge_id, quiz_answers["half"])
        last = await submissions.submit(challenge_id, quiz_answers["half"])
        assert last.can_retake is False
        with pytest.raises(Conflict):
            await submissions.submit(challenge_id, quiz_answers["correct"])

    @pytest.mark.asyncio
    async def test_lesson_waits_for_every_challenge(self, submissions, records, learner, make_hierarchy, quiz_answers):
        tree = await make_hierarchy(challenges_per_lesson=2)
        first, second = tree.challenge_ids[tree.lesson_ids[0]]

        result = await submissions.submit(first, quiz_answers["correct"])
        assert result.completed_content == []

        result = await submissions.submit(second, quiz_answers["correct"])
        assert tree.lesson_ids[0] in result.completed_content

    @pytest.mark.asyncio
    async def test_draft_challenge_rejected(self, submissions, make_hierarchy, quiz_answers):
        tree = await make_hierarchy(status="draft")
        with pytest.raises(Conflict):
            await submissions.submit(tree.all_challenge_ids[0], quiz_answers["correct"])

    @pytest.mark.asyncio
    async def test_requires_identity(self, store, records, issuer, settings, make_hierarchy, quiz_answers):
        tree = await make_hierarchy()
        anonymous = QuizSubmissionService(store, records, issuer, StaticIdentityResolver(None), settings=settings)
        with pytest.raises(Unauthenticated):
            await anonymous.submit(tree.all_challenge_ids[0], quiz_answers["correct"])

    @pytest.mark.asyncio
    async def test_progress_visible_after_submission(self, submissions, records, learner, make_hierarchy, quiz_answers):
        tree = await make_hierarchy()
        assert await records.get_user_progress(learner.user_id) == []
        await submissions.submit(tree.all_challenge_ids[0], quiz_answers["correct"])
        rows = await records.get_user_progress(learner.user_id)
        assert {row.content_type for row in rows} == {"challenge", "lesson", "module", "course", "path"}
