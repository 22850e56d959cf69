"""
Content Repository Facade - cached reads and audited writes over the hierarchy.

Reads go through the TTL cache. List reads never surface store failures: once
the cache has no stale value to offer they log and return an empty list.
Writes resolve the caller first, validate parent rules and sibling
uniqueness of slug and sort_order, stamp audit fields, cascade
draft/archived transitions and invalidate the affected cache keys.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from src.config import Settings, get_settings
from src.engines.caching import TTLCache
from src.engines.content.cascade import CASCADING_STATUSES, CascadePropagator
from src.engines.content.hierarchy import HierarchyLevel, level_for, parent_level
from src.kernel.errors import Conflict, NotFound, UpstreamFailure
from src.kernel.identity import IdentityResolver, require_identity
from src.kernel.models.base import Base
from src.kernel.models.content import ContentKind, ContentStatus, DifficultyLevel
from src.kernel.store import ContentStore, QuerySpec
from src.logging_config import get_logger

logger = get_logger(__name__)

SEARCHABLE_FIELDS = ("title", "description")


class ContentSearchParams(BaseModel):
    """Filters, sorting and paging for content list reads."""

    query: Optional[str] = None
    status: Optional[List[ContentStatus]] = None
    difficulty: Optional[List[DifficultyLevel]] = None
    created_by: Optional[uuid.UUID] = None
    sort_by: Optional[Literal["created_at", "updated_at", "title", "difficulty", "sort_order"]] = None
    sort_order: Optional[Literal["asc", "desc"]] = None
    limit: Optional[int] = Field(default=None, ge=1, le=200)
    offset: Optional[int] = Field(default=None, ge=0)

    def is_empty(self) -> bool:
        return not self.model_dump(exclude_none=True)


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


def search_spec(
    level: HierarchyLevel,
    parent_id: Optional[uuid.UUID],
    params: Optional[ContentSearchParams],
) -> QuerySpec:
    """Translate search parameters into a QuerySpec for one hierarchy level."""
    params = params or ContentSearchParams()
    model = level.model
    spec = QuerySpec()

    if parent_id is not None:
        if level.parent_field is None:
            raise ValueError(f"{level.label} has no parent")
        spec = spec.eq(level.parent_field, parent_id)
    if params.status:
        spec = spec.in_("status", _plain(params.status))
    if params.difficulty:
        if not hasattr(model, "difficulty"):
            raise ValueError(f"{level.label} has no difficulty")
        spec = spec.in_("difficulty", _plain(params.difficulty))
    if params.created_by:
        spec = spec.eq("created_by", params.created_by)
    if params.query:
        spec = spec.search(SEARCHABLE_FIELDS, params.query)

    # Paths list newest first; children follow their authored order.
    default_sort = "created_at" if level.kind == ContentKind.PATH else "sort_order"
    sort_by = params.sort_by or default_sort
    if not hasattr(model, sort_by):
        raise ValueError(f"Cannot sort {level.label} by {sort_by}")
    default_order = "desc" if level.kind == ContentKind.PATH else "asc"
    spec = spec.order(sort_by, descending=(params.sort_order or default_order) == "desc")

    limit = params.limit
    if params.offset and limit is None:
        limit = 10
    if limit is not None or params.offset:
        spec = spec.page(limit=limit, offset=params.offset)
    return spec


class ContentRepository:
    """
    Get/list/create/update for the five content kinds.

    Cache keys:
    - lists: "{plural}_{parent_id|all}" plus a token for search parameters
    - details: "{singular}_{id}"
    """

    def __init__(
        self,
        store: ContentStore,
        cache: TTLCache,
        identity_resolver: IdentityResolver,
        cascade: Optional[CascadePropagator] = None,
        settings: Optional[Settings] = None,
    ):
        self.store = store
        self.cache = cache
        self.identity_resolver = identity_resolver
        self.cascade = cascade or CascadePropagator(store, cache)
        self.settings = settings or get_settings()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @staticmethod
    def list_key(
        level: HierarchyLevel,
        parent_id: Optional[uuid.UUID],
        params: Optional[ContentSearchParams],
    ) -> str:
        key = f"{level.plural}_{parent_id or 'all'}"
        if params is not None and not params.is_empty():
            key = f"{key}_{params.model_dump_json(exclude_none=True)}"
        return key

    async def list_nodes(
        self,
        kind: ContentKind,
        parent_id: Optional[uuid.UUID] = None,
        params: Optional[ContentSearchParams] = None,
    ) -> List[Base]:
        """List nodes of one kind, optionally under one parent. Never raises store errors."""
        level = level_for(kind)
        spec = search_spec(level, parent_id, params)
        key = self.list_key(level, parent_id, params)

        async def load() -> List[Base]:
            return await self.store.select(level.model, spec)

        try:
            return await self.cache.get_or_load(key, load, self.settings.cache_ttl_content)
        except UpstreamFailure as exc:
            logger.error(
                "Listing %s failed, returning empty result: %s",
                level.plural,
                exc,
                extra={"operation": f"list_{level.plural}"},
            )
            return []

    async def get_node(self, kind: ContentKind, node_id: uuid.UUID) -> Optional[Base]:
        """Fetch one node; None when it does not exist."""
        level = level_for(kind)

        async def load() -> Optional[Base]:
            return await self.store.get(level.model, node_id)

        return await self.cache.get_or_load(
            f"{level.singular}_{node_id}", load, self.settings.cache_ttl_content,
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create_node(self, kind: ContentKind, values: Dict[str, Any]) -> Base:
        """
        Create a node under an existing parent.

        Raises:
            Unauthenticated: no caller resolved
            NotFound: parent missing
            Conflict: slug or sort_order already used by a sibling, or publishing
                under an unpublished parent while publish order is enforced
        """
        level = level_for(kind)
        operation = f"create_{level.singular}"
        identity = await require_identity(self.identity_resolver, operation)
        data = {name: _plain(value) for name, value in values.items()}

        parent_id = None
        if level.parent_field is not None:
            parent_id = data.get(level.parent_field)
            if parent_id is None:
                raise ValueError(f"{level.parent_field} is required to create a {level.label}")
            await self._require_parent(level, parent_id, operation, data.get("status"))

        await self._require_unique_slug(level, data["slug"], parent_id, None, operation)
        if data.get("sort_order") is None:
            data["sort_order"] = await self._next_sort_order(level, parent_id)
        else:
            await self._require_unique_sort_order(level, data["sort_order"], parent_id, None, operation)

        data["created_by"] = identity.user_id
        data["updated_by"] = identity.user_id
        if data.get("status") == ContentStatus.PUBLISHED.value:
            data["published_by"] = identity.user_id
            data["published_at"] = datetime.now(timezone.utc)

        node = await self.store.insert(level.model, data)
        logger.info(
            "Created %s %s",
            level.label,
            node.id,
            extra={"node_id": str(node.id), "user_id": str(identity.user_id)},
        )

        self.cache.invalidate(level.plural)
        parent = parent_level(kind)
        if parent is not None:
            self.cache.invalidate(parent.plural)
        self.cache.invalidate("stats")
        return node

    async def update_node(
        self,
        kind: ContentKind,
        node_id: uuid.UUID,
        changes: Dict[str, Any],
    ) -> Base:
        """
        Apply changes to a node.

        Unchanged input returns the stored node untouched. Publishing stamps
        published_by/published_at; draft and archived cascade to descendants
        before the call returns.
        """
        level = level_for(kind)
        operation = f"update_{level.singular}"
        identity = await require_identity(self.identity_resolver, operation)

        existing = await self.store.get(level.model, node_id)
        if existing is None:
            raise NotFound(f"{level.label.capitalize()} not found", operation=operation)

        data = {
            name: _plain(value)
            for name, value in changes.items()
            if _plain(value) != _plain(getattr(existing, name, None))
        }
        if not data:
            logger.debug("No changes detected for %s %s", level.label, node_id)
            return existing

        parent_id = getattr(existing, level.parent_field) if level.parent_field else None
        if level.parent_field and level.parent_field in data:
            parent_id = data[level.parent_field]
            await self._require_parent(level, parent_id, operation, None)

        if "slug" in data or (level.parent_field and level.parent_field in data):
            slug = data.get("slug", existing.slug)
            await self._require_unique_slug(level, slug, parent_id, node_id, operation)

        if "sort_order" in data or (level.parent_field and level.parent_field in data):
            sort_order = data.get("sort_order", existing.sort_order)
            await self._require_unique_sort_order(level, sort_order, parent_id, node_id, operation)

        new_status = data.get("status")
        if new_status == ContentStatus.PUBLISHED.value:
            if level.parent_field:
                await self._require_parent(level, parent_id, operation, new_status)
            data["published_by"] = identity.user_id
            data["published_at"] = datetime.now(timezone.utc)
        data["updated_by"] = identity.user_id

        node = await self.store.update(level.model, node_id, data)
        if node is None:
            raise NotFound(f"{level.label.capitalize()} not found", operation=operation)

        try:
            if new_status in {s.value for s in CASCADING_STATUSES}:
                await self.cascade.cascade(node_id, kind, ContentStatus(new_status), identity.user_id)
        finally:
            self.cache.invalidate(level.plural)
            self.cache.invalidate(f"{level.singular}_{node_id}")
            self.cache.invalidate("stats")

        logger.info(
            "Updated %s %s",
            level.label,
            node_id,
            extra={"node_id": str(node_id), "fields": sorted(data)},
        )
        return node

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------

    async def _require_parent(
        self,
        level: HierarchyLevel,
        parent_id: uuid.UUID,
        operation: str,
        status: Optional[str],
    ) -> None:
        parent = parent_level(level.kind)
        row = await self.store.get(parent.model, parent_id)
        if row is None:
            raise NotFound(f"Parent {parent.label} not found", operation=operation)
        if (
            status == ContentStatus.PUBLISHED.value
            and self.settings.enforce_publish_order
            and row.status != ContentStatus.PUBLISHED.value
        ):
            raise Conflict(
                f"Cannot publish a {level.label} while its {parent.label} is {row.status}",
                operation=operation,
            )

    @staticmethod
    def _siblings(
        level: HierarchyLevel,
        parent_id: Optional[uuid.UUID],
        node_id: Optional[uuid.UUID] = None,
    ) -> QuerySpec:
        spec = QuerySpec()
        if level.parent_field is not None:
            spec = spec.eq(level.parent_field, parent_id)
        if node_id is not None:
            spec = spec.neq("id", node_id)
        return spec

    async def _require_unique_slug(
        self,
        level: HierarchyLevel,
        slug: str,
        parent_id: Optional[uuid.UUID],
        node_id: Optional[uuid.UUID],
        operation: str,
    ) -> None:
        spec = self._siblings(level, parent_id, node_id).eq("slug", slug)
        if await self.store.exists(level.model, spec):
            raise Conflict(
                f'A {level.label} with slug "{slug}" already exists',
                operation=operation,
                details={"slug": slug},
            )

    async def _require_unique_sort_order(
        self,
        level: HierarchyLevel,
        sort_order: int,
        parent_id: Optional[uuid.UUID],
        node_id: Optional[uuid.UUID],
        operation: str,
    ) -> None:
        spec = self._siblings(level, parent_id, node_id).eq("sort_order", sort_order)
        if await self.store.exists(level.model, spec):
            raise Conflict(
                f"Sort order {sort_order} is already taken by another {level.label}",
                operation=operation,
                details={"sort_order": sort_order},
            )

    async def _next_sort_order(self, level: HierarchyLevel, parent_id: Optional[uuid.UUID]) -> int:
        """One past the highest sort_order among siblings; 0 for the first child."""
        last = await self.store.first(
            level.model, self._siblings(level, parent_id).order("sort_order", descending=True),
        )
        return 0 if last is None else last.sort_order + 1
