"""
Cascade Propagator - pushes draft/archived transitions down the hierarchy.

Walks the levels beneath the changed node breadth-first: every child of the
current id set is collected, those not already in the target status are
updated, and the collected ids seed the next level. Stops at the leaf level
or at the first level with no children.

Not atomic: a failure at a deeper level leaves shallower levels updated and
is re-raised to the caller. Re-running with the same arguments converges to
the same state without touching rows that already carry the target status.
"""

import uuid
from typing import Dict, List, Optional

from src.engines.caching import TTLCache
from src.engines.content.hierarchy import descendant_levels, level_for
from src.kernel.errors import ContentServiceError
from src.kernel.models.content import ContentKind, ContentStatus
from src.kernel.store import ContentStore, QuerySpec
from src.logging_config import get_logger

logger = get_logger(__name__)

CASCADING_STATUSES = (ContentStatus.DRAFT, ContentStatus.ARCHIVED)


class CascadePropagator:
    """Applies a draft/archived status to every descendant of a node."""

    def __init__(self, store: ContentStore, cache: Optional[TTLCache] = None):
        self.store = store
        self.cache = cache

    async def cascade(
        self,
        node_id: uuid.UUID,
        kind: ContentKind,
        new_status: ContentStatus,
        actor_id: Optional[uuid.UUID] = None,
    ) -> Dict[ContentKind, int]:
        """
        Propagate new_status beneath node_id.

        Returns the number of rows changed per level. Raises ValueError for
        statuses that do not cascade (publishing is per node).
        """
        new_status = ContentStatus(new_status)
        if new_status not in CASCADING_STATUSES:
            raise ValueError(f"Status '{new_status.value}' does not cascade")

        logger.info(
            "Cascading status %s from %s %s",
            new_status.value,
            ContentKind(kind).value,
            node_id,
            extra={"node_id": str(node_id), "status": new_status.value},
        )

        values = {"status": new_status.value, "updated_by": actor_id}
        changed: Dict[ContentKind, int] = {}
        parent_ids: List[uuid.UUID] = [node_id]

        for level in descendant_levels(kind):
            try:
                children = await self.store.select(
                    level.model,
                    QuerySpec().in_(level.parent_field, parent_ids),
                )
                if not children:
                    logger.debug("No %s rows beneath level, cascade stops", level.label)
                    break
                stale_ids = [c.id for c in children if c.status != new_status.value]
                updated = []
                if stale_ids:
                    updated = await self.store.update_where(
                        level.model,
                        QuerySpec().in_("id", stale_ids),
                        values,
                    )
            except ContentServiceError as exc:
                logger.error(
                    "Cascade from %s %s failed at %s level: %s",
                    ContentKind(kind).value,
                    node_id,
                    level.label,
                    exc,
                    extra={"node_id": str(node_id), "level": level.kind.value},
                )
                self._invalidate(changed)
                raise

            changed[level.kind] = len(updated)
            logger.debug(
                "Cascade set %d of %d %s rows to %s",
                len(updated),
                len(children),
                level.label,
                new_status.value,
            )
            parent_ids = [c.id for c in children]

        self._invalidate(changed)
        return changed

    def _invalidate(self, changed: Dict[ContentKind, int]) -> None:
        if self.cache is None:
            return

        for kind, count in changed.items():
            if count:
                # the singular prefix also matches the plural list keys
                self.cache.invalidate(level_for(kind).singular)
        if any(changed.values()):
            self.cache.invalidate("stats")
