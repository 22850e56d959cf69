"""
Content endpoints - list/get/create/update for paths, courses, modules, lessons and challenges.

Callers without content update rights only ever see published nodes.
"""

import uuid
from typing import List, Literal, Optional, Type

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel

from src.api.deps import (
    OptionalIdentity,
    Repository,
    RequireContentCreate,
    RequireContentUpdate,
)
from src.engines.content import ContentSearchParams, level_for
from src.kernel.identity import Identity
from src.kernel.models.content import ContentKind, ContentStatus, DifficultyLevel
from src.kernel.permissions import Action, Resource, has_permission
from src.schemas.content import CONTENT_SCHEMAS

router = APIRouter()

SortField = Literal["created_at", "updated_at", "title", "difficulty", "sort_order"]

# URL segment -> kind
SEGMENTS = {
    "paths": ContentKind.PATH,
    "courses": ContentKind.COURSE,
    "modules": ContentKind.MODULE,
    "lessons": ContentKind.LESSON,
    "challenges": ContentKind.CHALLENGE,
}


def _can_manage(identity: Optional[Identity]) -> bool:
    return identity is not None and has_permission(identity.role, Resource.CONTENT, Action.UPDATE)


def _require_publish(identity: Identity, new_status: Optional[ContentStatus]) -> None:
    if new_status == ContentStatus.PUBLISHED and not has_permission(
        identity.role, Resource.CONTENT, Action.PUBLISH,
    ):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions. Required: content:publish",
        )


def _register(segment: str, kind: ContentKind) -> None:
    level = level_for(kind)
    schemas = CONTENT_SCHEMAS[kind]
    create_schema: Type[BaseModel] = schemas["create"]
    update_schema: Type[BaseModel] = schemas["update"]
    response_schema: Type[BaseModel] = schemas["response"]
    tag = level.label.title()

    @router.get(f"/{segment}", response_model=List[response_schema], tags=[tag], name=f"list_{segment}")
    async def list_nodes(
        repo: Repository,
        identity: OptionalIdentity,
        parent_id: Optional[uuid.UUID] = Query(default=None, description="Only children of this parent"),
        query: Optional[str] = None,
        status_filter: Optional[List[ContentStatus]] = Query(default=None, alias="status"),
        difficulty: Optional[List[DifficultyLevel]] = Query(default=None),
        sort_by: Optional[SortField] = None,
        sort_order: Optional[Literal["asc", "desc"]] = None,
        limit: Optional[int] = Query(default=None, ge=1, le=200),
        offset: Optional[int] = Query(default=None, ge=0),
    ):
        if not _can_manage(identity):
            status_filter = [ContentStatus.PUBLISHED]
        params = ContentSearchParams(
            query=query,
            status=status_filter,
            difficulty=difficulty,
            sort_by=sort_by,
            sort_order=sort_order,
            limit=limit,
            offset=offset,
        )
        try:
            return await repo.list_nodes(kind, parent_id, params)
        except ValueError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    @router.get(f"/{segment}/{{node_id}}", response_model=response_schema, tags=[tag], name=f"get_{level.singular}")
    async def get_node(node_id: uuid.UUID, repo: Repository, identity: OptionalIdentity):
        node = await repo.get_node(kind, node_id)
        if node is None or (not _can_manage(identity) and node.status != ContentStatus.PUBLISHED.value):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"{level.label.capitalize()} not found",
            )
        return node

    @router.post(
        f"/{segment}",
        response_model=response_schema,
        status_code=status.HTTP_201_CREATED,
        tags=[tag],
        name=f"create_{level.singular}",
    )
    async def create_node(
        body: create_schema,  # type: ignore[valid-type]
        _: RequireContentCreate,
        repo: Repository,
        identity: OptionalIdentity,
    ):
        _require_publish(identity, body.status)
        try:
            return await repo.create_node(kind, body.model_dump())
        except ValueError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    @router.patch(f"/{segment}/{{node_id}}", response_model=response_schema, tags=[tag], name=f"update_{level.singular}")
    async def update_node(
        node_id: uuid.UUID,
        body: update_schema,  # type: ignore[valid-type]
        _: RequireContentUpdate,
        repo: Repository,
        identity: OptionalIdentity,
    ):
        _require_publish(identity, body.status)
        try:
            return await repo.update_node(kind, node_id, body.model_dump(exclude_unset=True))
        except ValueError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


for _segment, _kind in SEGMENTS.items():
    _register(_segment, _kind)
