"""Integration tests for certificate completion checks, issue and revoke."""

import uuid

import pytest

from src.engines.certificates import CertificateIssuer
from src.engines.content import ProgressUpdate
from src.kernel.errors import IncompleteContent, NotFound, Unauthorized
from src.kernel.identity import StaticIdentityResolver
from src.kernel.models.content import ContentKind, Course, LearningPath, Module
from src.kernel.models.progress import ProgressStatus


async def _complete_lessons(records, user_id, lesson_ids):
    for lesson_id in lesson_ids:
        await records.update_progress(
            user_id, lesson_id, ContentKind.LESSON, ProgressUpdate(status=ProgressStatus.COMPLETED),
        )


class TestCompletion:

    @pytest.mark.asyncio
    async def test_all_lessons_required(self, issuer, records, learner, make_hierarchy):
        tree = await make_hierarchy(lessons=2)
        await _complete_lessons(records, learner.user_id, tree.lesson_ids[:1])
        assert not await issuer.is_completed(learner.user_id, tree.course_id, ContentKind.COURSE)

        await _complete_lessons(records, learner.user_id, tree.lesson_ids[1:])
        assert await issuer.is_completed(learner.user_id, tree.course_id, ContentKind.COURSE)
        assert await issuer.is_completed(learner.user_id, tree.path_id, ContentKind.PATH)

    @pytest.mark.asyncio
    async def test_empty_course_is_never_complete(self, issuer, store, learner, make_hierarchy):
        tree = await make_hierarchy()
        empty = await store.insert(Course, {"path_id": tree.path_id, "title": "Soon", "slug": "soon", "status": "published", "sort_order": 1})
        assert not await issuer.is_completed(learner.user_id, empty.id, ContentKind.COURSE)

    @pytest.mark.asyncio
    async def test_path_without_courses_is_never_complete(self, issuer, store, learner):
        path = await store.insert(LearningPath, {"title": "Coming Soon", "slug": "coming-soon", "status": "published"})
        assert not await issuer.is_completed(learner.user_id, path.id, ContentKind.PATH)
        with pytest.raises(IncompleteContent):
            await issuer.issue_certificate(learner.user_id, path.id, ContentKind.PATH)

    @pytest.mark.asyncio
    async def test_module_without_lessons_blocks_course(self, issuer, store, records, learner, make_hierarchy):
        tree = await make_hierarchy()
        await store.insert(Module, {"course_id": tree.course_id, "title": "Empty", "slug": "empty", "status": "published", "sort_order": 1})
        await _complete_lessons(records, learner.user_id, tree.lesson_ids)
        assert not await issuer.is_completed(learner.user_id, tree.course_id, ContentKind.COURSE)

    @pytest.mark.asyncio
    async def test_draft_lessons_are_ignored(self, issuer, repository, records, learner, make_hierarchy):
        tree = await make_hierarchy(lessons=2)
        await repository.update_node(ContentKind.LESSON, tree.lesson_ids[1], {"status": "draft"})
        await _complete_lessons(records, learner.user_id, tree.lesson_ids[:1])
        assert await issuer.is_completed(learner.user_id, tree.course_id, ContentKind.COURSE)


class TestIssue:

    @pytest.mark.asyncio
    async def test_issue_once(self, issuer, records, learner, make_hierarchy, admin):
        tree = await make_hierarchy()
        await _complete_lessons(records, learner.user_id, tree.lesson_ids)

        certificate = await issuer.issue_certificate(learner.user_id, tree.course_id, ContentKind.COURSE)
        assert certificate.course_id == tree.course_id
        assert certificate.path_id is None
        assert certificate.status == "issued"
        assert certificate.issued_by == admin.user_id
        assert certificate.title == "Certificate of Completion: Getting Started"

        assert await issuer.issue_certificate(learner.user_id, tree.course_id, ContentKind.COURSE) is None
        assert len(await records.get_user_certificates(learner.user_id)) == 1

    @pytest.mark.asyncio
    async def test_incomplete_content_rejected(self, issuer, learner, make_hierarchy):
        tree = await make_hierarchy()
        with pytest.raises(IncompleteContent):
            await issuer.issue_certificate(learner.user_id, tree.path_id, ContentKind.PATH)

    @pytest.mark.asyncio
    async def test_missing_content(self, issuer, learner):
        with pytest.raises(NotFound):
            await issuer.issue_certificate(learner.user_id, uuid.uuid4(), ContentKind.PATH)

    @pytest.mark.asyncio
    async def test_only_paths_and_courses(self, issuer, learner, make_hierarchy):
        tree = await make_hierarchy()
        with pytest.raises(ValueError):
            await issuer.issue_certificate(learner.user_id, tree.module_id, ContentKind.MODULE)

    @pytest.mark.asyncio
    async def test_lookup_by_code(self, issuer, records, learner, make_hierarchy):
        tree = await make_hierarchy()
        await _complete_lessons(records, learner.user_id, tree.lesson_ids)
        certificate = await issuer.issue_certificate(learner.user_id, tree.path_id, ContentKind.PATH)
        found = await records.get_certificate_by_code(certificate.verification_code)
        assert found.id == certificate.id
        assert await records.get_certificate_by_code("AAA-BBB-CCC-DDD") is None


class TestRevoke:

    @pytest.mark.asyncio
    async def test_admin_revokes_and_can_reissue(self, issuer, records, learner, make_hierarchy):
        tree = await make_hierarchy()
        await _complete_lessons(records, learner.user_id, tree.lesson_ids)
        certificate = await issuer.issue_certificate(learner.user_id, tree.course_id, ContentKind.COURSE)

        revoked = await issuer.revoke_certificate(certificate.id)
        assert revoked.status == "revoked"
        assert revoked.revoked_at is not None
        again = await issuer.revoke_certificate(certificate.id)
        assert again.revoked_at == revoked.revoked_at

        reissued = await issuer.issue_certificate(learner.user_id, tree.course_id, ContentKind.COURSE)
        assert reissued is not None
        assert reissued.verification_code != certificate.verification_code

    @pytest.mark.asyncio
    async def test_non_admin_cannot_revoke(self, store, cache, settings, issuer, records, learner, manager, make_hierarchy):
        tree = await make_hierarchy()
        await _complete_lessons(records, learner.user_id, tree.lesson_ids)
        certificate = await issuer.issue_certificate(learner.user_id, tree.course_id, ContentKind.COURSE)

        as_manager = CertificateIssuer(store, cache, StaticIdentityResolver(manager), settings)
        with pytest.raises(Unauthorized):
            await as_manager.revoke_certificate(certificate.id)

    @pytest.mark.asyncio
    async def test_revoke_missing(self, issuer):
        with pytest.raises(NotFound):
            await issuer.revoke_certificate(uuid.uuid4())
