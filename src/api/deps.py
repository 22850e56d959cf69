"""
FastAPI dependencies for identity, authorization and engine services.
"""

from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.config import get_settings
from src.database import async_session_maker
from src.engines.analytics import AnalyticsAggregator
from src.engines.caching import TTLCache
from src.engines.certificates import CertificateIssuer
from src.engines.content import ContentRepository, LearnerRecords
from src.engines.scoring import OpenAIScoringOracle, ScoringOracle
from src.engines.scoring.submission import QuizSubmissionService
from src.kernel.identity import Identity, StaticIdentityResolver, get_jwt_manager
from src.kernel.permissions import Action, Resource, has_permission
from src.kernel.store import ContentStore, SqlAlchemyStore

# Security scheme
security = HTTPBearer(auto_error=False)


def get_store(request: Request) -> ContentStore:
    """Process-wide store (created on first use if the lifespan did not run)."""
    store = getattr(request.app.state, "store", None)
    if store is None:
        store = SqlAlchemyStore(async_session_maker)
        request.app.state.store = store
    return store


def get_cache(request: Request) -> TTLCache:
    """Process-wide TTL cache."""
    cache = getattr(request.app.state, "cache", None)
    if cache is None:
        cache = TTLCache(default_ttl=get_settings().cache_ttl_content)
        request.app.state.cache = cache
    return cache


def get_oracle(request: Request) -> ScoringOracle:
    oracle = getattr(request.app.state, "oracle", None)
    if oracle is None:
        oracle = OpenAIScoringOracle()
        request.app.state.oracle = oracle
    return oracle


Store = Annotated[ContentStore, Depends(get_store)]
Cache = Annotated[TTLCache, Depends(get_cache)]
Oracle = Annotated[ScoringOracle, Depends(get_oracle)]


async def get_identity_optional(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
) -> Optional[Identity]:
    """Resolve the caller from the bearer token, None if absent or invalid."""
    if not credentials:
        return None
    return get_jwt_manager().identity_from_token(credentials.credentials)


async def get_current_identity(
    identity: Annotated[Optional[Identity], Depends(get_identity_optional)],
) -> Identity:
    """Resolved caller or 401."""
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return identity


CurrentIdentity = Annotated[Identity, Depends(get_current_identity)]
OptionalIdentity = Annotated[Optional[Identity], Depends(get_identity_optional)]


class PermissionChecker:
    """
    Dependency class checking the caller's role against the permission table.

    Usage:
        @router.post("/paths")
        async def create_path(
            _: Annotated[bool, Depends(PermissionChecker(Resource.CONTENT, Action.CREATE))],
            ...
        ):
            ...
    """

    def __init__(self, resource: Resource, action: Action):
        self.resource = resource
        self.action = action

    async def __call__(self, identity: CurrentIdentity) -> bool:
        if not has_permission(identity.role, self.resource, self.action):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient permissions. Required: {self.resource.value}:{self.action.value}",
            )
        return True


RequireContentCreate = Annotated[bool, Depends(PermissionChecker(Resource.CONTENT, Action.CREATE))]
RequireContentUpdate = Annotated[bool, Depends(PermissionChecker(Resource.CONTENT, Action.UPDATE))]
RequireProgressRead = Annotated[bool, Depends(PermissionChecker(Resource.PROGRESS, Action.READ))]
RequireProgressUpdate = Annotated[bool, Depends(PermissionChecker(Resource.PROGRESS, Action.UPDATE))]
RequireCertificateIssue = Annotated[bool, Depends(PermissionChecker(Resource.CERTIFICATES, Action.ISSUE))]
RequireAnalyticsRead = Annotated[bool, Depends(PermissionChecker(Resource.ANALYTICS, Action.READ))]
RequireCacheRead = Annotated[bool, Depends(PermissionChecker(Resource.CACHE, Action.READ))]
RequireCacheDelete = Annotated[bool, Depends(PermissionChecker(Resource.CACHE, Action.DELETE))]


# Engine services, built per request around the shared store and cache

def get_repository(store: Store, cache: Cache, identity: OptionalIdentity) -> ContentRepository:
    return ContentRepository(store, cache, StaticIdentityResolver(identity))


def get_records(store: Store, cache: Cache) -> LearnerRecords:
    return LearnerRecords(store, cache)


def get_issuer(store: Store, cache: Cache, identity: OptionalIdentity) -> CertificateIssuer:
    return CertificateIssuer(store, cache, StaticIdentityResolver(identity))


def get_analytics(store: Store, cache: Cache) -> AnalyticsAggregator:
    return AnalyticsAggregator(store, cache)


def get_submissions(
    store: Store,
    cache: Cache,
    oracle: Oracle,
    identity: OptionalIdentity,
) -> QuizSubmissionService:
    resolver = StaticIdentityResolver(identity)
    return QuizSubmissionService(
        store,
        LearnerRecords(store, cache),
        CertificateIssuer(store, cache, resolver),
        resolver,
        oracle=oracle,
    )


Repository = Annotated[ContentRepository, Depends(get_repository)]
Records = Annotated[LearnerRecords, Depends(get_records)]
Issuer = Annotated[CertificateIssuer, Depends(get_issuer)]
Analytics = Annotated[AnalyticsAggregator, Depends(get_analytics)]
Submissions = Annotated[QuizSubmissionService, Depends(get_submissions)]
