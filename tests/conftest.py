"""
Pytest fixtures for content engine tests.
"""

import uuid
from dataclasses import dataclass, field
from typing import AsyncGenerator, Dict, List

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine

from src.config import Settings
from src.database import build_engine, build_session_maker, init_db
from src.engines.caching import TTLCache
from src.engines.certificates import CertificateIssuer
from src.engines.content import CascadePropagator, ContentRepository, LearnerRecords
from src.kernel.identity import Identity, StaticIdentityResolver
from src.kernel.models.content import Challenge, Course, LearningPath, Lesson, Module
from src.kernel.models.user import UserProfile, UserRole
from src.kernel.store import SqlAlchemyStore


class FakeClock:
    """Manually advanced monotonic clock for cache expiry tests."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


QUIZ_CONTENT = {
    "questions": [
        {"type": "single_choice", "question": "Pick b", "options": ["a", "b", "c"]},
        {"type": "multiple_choice", "question": "Pick a and c", "options": ["a", "b", "c"]},
    ],
}
QUIZ_SOLUTION = {"answers": ["b", ["a", "c"]]}
ALL_CORRECT = {0: "b", 1: ["c", "a"]}
HALF_CORRECT = {0: "b", 1: ["a"]}


@dataclass
class Hierarchy:
    """Ids of a generated path -> course -> module -> lesson -> challenge tree."""

    path_id: uuid.UUID
    course_id: uuid.UUID
    module_id: uuid.UUID
    lesson_ids: List[uuid.UUID] = field(default_factory=list)
    challenge_ids: Dict[uuid.UUID, List[uuid.UUID]] = field(default_factory=dict)

    @property
    def all_challenge_ids(self) -> List[uuid.UUID]:
        return [cid for ids in self.challenge_ids.values() for cid in ids]


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path}/content_engine_test.db",
        openai_api_key="",
        secret_key="test-secret-key-that-is-long-enough-for-hs256",
    )


@pytest_asyncio.fixture
async def db_engine(settings: Settings) -> AsyncGenerator[AsyncEngine, None]:
    """File-backed SQLite engine with tables created and levels seeded."""
    engine = build_engine(settings.database_url)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def store(db_engine: AsyncEngine) -> SqlAlchemyStore:
    return SqlAlchemyStore(build_session_maker(db_engine))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> TTLCache:
    return TTLCache(default_ttl=60.0, clock=clock)


@pytest.fixture
def admin() -> Identity:
    return Identity(user_id=uuid.uuid4(), role=UserRole.ADMIN)


@pytest.fixture
def manager() -> Identity:
    return Identity(user_id=uuid.uuid4(), role=UserRole.CONTENT_MANAGER)


@pytest.fixture
def learner() -> Identity:
    return Identity(user_id=uuid.uuid4(), role=UserRole.USER)


@pytest_asyncio.fixture
async def learner_profile(store: SqlAlchemyStore, learner: Identity) -> UserProfile:
    return await store.insert(
        UserProfile,
        {"id": learner.user_id, "display_name": "Test Learner", "role": UserRole.USER.value},
    )


@pytest.fixture
def repository(store, cache, manager, settings) -> ContentRepository:
    return ContentRepository(
        store,
        cache,
        StaticIdentityResolver(manager),
        CascadePropagator(store, cache),
        settings,
    )


@pytest.fixture
def records(store, cache, settings) -> LearnerRecords:
    return LearnerRecords(store, cache, settings)


@pytest.fixture
def issuer(store, cache, admin, settings) -> CertificateIssuer:
    return CertificateIssuer(store, cache, StaticIdentityResolver(admin), settings)


@pytest.fixture
def quiz_answers() -> Dict[str, Dict[int, object]]:
    """Submissions against QUIZ_CONTENT: 100% and 50%."""
    return {"correct": ALL_CORRECT, "half": HALF_CORRECT}


@pytest.fixture
def make_hierarchy(store):
    """Factory inserting a published tree straight through the store."""

    async def _make(
        lessons: int = 1,
        challenges_per_lesson: int = 1,
        status: str = "published",
        max_attempts=None,
    ) -> Hierarchy:
        suffix = uuid.uuid4().hex[:8]
        path = await store.insert(
            LearningPath,
            {"title": "Python Basics", "slug": f"python-basics-{suffix}", "status": status},
        )
        course = await store.insert(
            Course,
            {"path_id": path.id, "title": "Getting Started", "slug": "getting-started", "status": status},
        )
        module = await store.insert(
            Module,
            {"course_id": course.id, "title": "Variables", "slug": "variables", "status": status},
        )
        tree = Hierarchy(path_id=path.id, course_id=course.id, module_id=module.id)
        for i in range(lessons):
            lesson = await store.insert(
                Lesson,
                {
                    "module_id": module.id,
                    "title": f"Lesson {i + 1}",
                    "slug": f"lesson-{i + 1}",
                    "status": status,
                    "sort_order": i,
                    "xp_reward": 10,
                },
            )
            tree.lesson_ids.append(lesson.id)
            tree.challenge_ids[lesson.id] = []
            for j in range(challenges_per_lesson):
                challenge = await store.insert(
                    Challenge,
                    {
                        "lesson_id": lesson.id,
                        "title": f"Quiz {j + 1}",
                        "slug": f"quiz-{j + 1}",
                        "status": status,
                        "sort_order": j,
                        "content": QUIZ_CONTENT,
                        "solution": QUIZ_SOLUTION,
                        "xp_reward": 20,
                        "max_attempts": max_attempts,
                    },
                )
                tree.challenge_ids[lesson.id].append(challenge.id)
        return tree

    return _make
