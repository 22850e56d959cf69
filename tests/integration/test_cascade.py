"""Integration tests for status cascade over a SQLite-backed store."""

import pytest

from src.database import build_session_maker
from src.engines.content import CascadePropagator
from src.kernel.errors import UpstreamFailure
from src.kernel.models.content import (
    Challenge,
    ContentKind,
    ContentStatus,
    Course,
    LearningPath,
    Lesson,
    Module,
)
from src.kernel.store import QuerySpec, SqlAlchemyStore


async def _statuses(store, model):
    return {row.status for row in await store.select(model)}


class FailingLessonStore(SqlAlchemyStore):
    """Store whose bulk updates fail on the lesson table."""

    async def update_where(self, model, spec, values):
        if model is Lesson:
            raise UpstreamFailure("lessons table locked", operation="update")
        return await super().update_where(model, spec, values)


class TestCascade:

    @pytest.mark.asyncio
    async def test_archiving_path_reaches_every_descendant(self, store, cache, make_hierarchy):
        tree = await make_hierarchy(lessons=2, challenges_per_lesson=2)
        changed = await CascadePropagator(store, cache).cascade(
            tree.path_id, ContentKind.PATH, ContentStatus.ARCHIVED,
        )

        assert changed == {
            ContentKind.COURSE: 1,
            ContentKind.MODULE: 1,
            ContentKind.LESSON: 2,
            ContentKind.CHALLENGE: 4,
        }
        for model in (Course, Module, Lesson, Challenge):
            assert await _statuses(store, model) == {"archived"}
        # the node itself is the caller's business
        assert await _statuses(store, LearningPath) == {"published"}

    @pytest.mark.asyncio
    async def test_rerun_changes_nothing(self, store, cache, make_hierarchy):
        tree = await make_hierarchy(lessons=2)
        propagator = CascadePropagator(store, cache)
        await propagator.cascade(tree.course_id, ContentKind.COURSE, ContentStatus.DRAFT)
        again = await propagator.cascade(tree.course_id, ContentKind.COURSE, ContentStatus.DRAFT)
        assert set(again.values()) == {0}
        assert await _statuses(store, Challenge) == {"draft"}

    @pytest.mark.asyncio
    async def test_stops_at_first_empty_level(self, store, cache):
        path = await store.insert(LearningPath, {"title": "Empty", "slug": "empty", "status": "published"})
        changed = await CascadePropagator(store, cache).cascade(
            path.id, ContentKind.PATH, ContentStatus.ARCHIVED,
        )
        assert changed == {}

    @pytest.mark.asyncio
    async def test_leaf_has_nothing_to_cascade(self, store, cache, make_hierarchy):
        tree = await make_hierarchy()
        challenge_id = tree.all_challenge_ids[0]
        changed = await CascadePropagator(store, cache).cascade(
            challenge_id, ContentKind.CHALLENGE, ContentStatus.DRAFT,
        )
        assert changed == {}

    @pytest.mark.asyncio
    async def test_published_does_not_cascade(self, store, cache, make_hierarchy):
        tree = await make_hierarchy(status="draft")
        with pytest.raises(ValueError):
            await CascadePropagator(store, cache).cascade(
                tree.path_id, ContentKind.PATH, ContentStatus.PUBLISHED,
            )
        assert await _statuses(store, Course) == {"draft"}

    @pytest.mark.asyncio
    async def test_failure_keeps_shallower_levels_and_raises(self, db_engine, store, cache, make_hierarchy):
        tree = await make_hierarchy()
        failing = FailingLessonStore(build_session_maker(db_engine))
        with pytest.raises(UpstreamFailure):
            await CascadePropagator(failing, cache).cascade(
                tree.course_id, ContentKind.COURSE, ContentStatus.ARCHIVED,
            )
        assert await _statuses(store, Module) == {"archived"}
        assert await _statuses(store, Lesson) == {"published"}

    @pytest.mark.asyncio
    async def test_only_matching_subtree_changes(self, store, cache, make_hierarchy):
        first = await make_hierarchy()
        second = await make_hierarchy()
        await CascadePropagator(store, cache).cascade(first.path_id, ContentKind.PATH, ContentStatus.DRAFT)
        untouched = await store.select(Course, QuerySpec.where(path_id=second.path_id))
        assert [c.status for c in untouched] == ["published"]


class TestRepositoryCascade:

    @pytest.mark.asyncio
    async def test_update_to_archived_cascades_and_refreshes_cache(self, repository, make_hierarchy):
        tree = await make_hierarchy()
        lesson_id = tree.lesson_ids[0]
        before = await repository.get_node(ContentKind.LESSON, lesson_id)
        assert before.status == "published"

        await repository.update_node(ContentKind.MODULE, tree.module_id, {"status": ContentStatus.ARCHIVED})

        after = await repository.get_node(ContentKind.LESSON, lesson_id)
        assert after.status == "archived"

    @pytest.mark.asyncio
    async def test_publishing_does_not_touch_children(self, repository, store, make_hierarchy):
        tree = await make_hierarchy(status="draft")
        await repository.update_node(ContentKind.COURSE, tree.course_id, {"status": ContentStatus.PUBLISHED})
        assert await _statuses(store, Module) == {"draft"}
