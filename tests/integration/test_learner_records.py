"""Integration tests for progress writes, XP aggregation and streaks."""

import uuid
from datetime import date, timedelta

import pytest

from src.engines.content import ProgressUpdate
from src.engines.content.learner_records import next_streak
from src.kernel.models.content import ContentKind
from src.kernel.models.progress import ProgressStatus
from src.kernel.models.user import UserProfile


class TestNextStreak:

    def test_same_day(self):
        today = date(2024, 3, 10)
        assert next_streak(today, 4, today) == 4
        assert next_streak(today, 0, today) == 1

    def test_consecutive_day(self):
        today = date(2024, 3, 10)
        assert next_streak(today - timedelta(days=1), 4, today) == 5

    def test_gap_resets(self):
        today = date(2024, 3, 10)
        assert next_streak(today - timedelta(days=3), 4, today) == 1
        assert next_streak(None, 0, today) == 1


class TestProgress:

    @pytest.mark.asyncio
    async def test_started_then_completed(self, records, learner):
        content_id = uuid.uuid4()
        started = await records.update_progress(
            learner.user_id, content_id, ContentKind.LESSON,
            ProgressUpdate(status=ProgressStatus.IN_PROGRESS, completion_percentage=40, time_spent=5),
        )
        assert started.started_at is not None
        assert started.completed_at is None

        done = await records.update_progress(
            learner.user_id, content_id, ContentKind.LESSON,
            ProgressUpdate(status=ProgressStatus.COMPLETED, xp_earned=10),
        )
        assert done.id == started.id
        assert done.completion_percentage == 100
        assert done.completed_at is not None
        assert done.started_at == started.started_at
        assert done.time_spent == 5

    @pytest.mark.asyncio
    async def test_xp_kept_at_maximum(self, records, learner):
        content_id = uuid.uuid4()
        await records.update_progress(learner.user_id, content_id, ContentKind.CHALLENGE, ProgressUpdate(xp_earned=30))
        row = await records.update_progress(
            learner.user_id, content_id, ContentKind.CHALLENGE, ProgressUpdate(xp_earned=10),
        )
        assert row.xp_earned == 30

    @pytest.mark.asyncio
    async def test_cached_progress_refreshed_after_write(self, records, learner):
        assert await records.get_user_progress(learner.user_id) == []
        await records.update_progress(
            learner.user_id, uuid.uuid4(), ContentKind.LESSON, ProgressUpdate(status=ProgressStatus.IN_PROGRESS),
        )
        assert len(await records.get_user_progress(learner.user_id)) == 1


class TestUserXP:

    @pytest.mark.asyncio
    async def test_total_and_level(self, records, learner):
        for xp in (60, 50):
            await records.update_progress(
                learner.user_id, uuid.uuid4(), ContentKind.CHALLENGE, ProgressUpdate(xp_earned=xp),
            )
        xp = await records.get_user_xp(learner.user_id)
        assert xp.total_xp == 110
        assert xp.current_level == 2
        assert xp.current_title == "Explorer"
        assert xp.current_streak == 1

    @pytest.mark.asyncio
    async def test_streak_across_days(self, records, learner):
        await records.update_progress(
            learner.user_id, uuid.uuid4(), ContentKind.LESSON, ProgressUpdate(status=ProgressStatus.IN_PROGRESS),
        )
        first = await records.get_user_xp(learner.user_id)
        tomorrow = first.last_activity_date + timedelta(days=1)
        xp = await records.refresh_user_xp(learner.user_id, tomorrow)
        assert xp.current_streak == 2
        assert xp.longest_streak == 2

        later = await records.refresh_user_xp(learner.user_id, tomorrow + timedelta(days=5))
        assert later.current_streak == 1
        assert later.longest_streak == 2

    @pytest.mark.asyncio
    async def test_activity_stamped_on_profile(self, records, store, learner, learner_profile):
        assert learner_profile.last_active_at is None
        await records.update_progress(
            learner.user_id, uuid.uuid4(), ContentKind.LESSON, ProgressUpdate(status=ProgressStatus.IN_PROGRESS),
        )
        profile = await store.get(UserProfile, learner.user_id)
        assert profile.last_active_at is not None

    @pytest.mark.asyncio
    async def test_level_table_seeded(self, records):
        levels = await records.get_xp_levels()
        assert [lvl.level_id for lvl in levels] == list(range(1, 9))
        assert levels[0].xp_required == 0
