"""
ContentStore interface - the persistence capabilities the engine relies on.

Each call is its own unit of work; no transaction spans calls.
"""

import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Type, TypeVar

from src.kernel.store.query import QuerySpec

T = TypeVar("T")


class ContentStore(ABC):
    """
    Persistence port used by the repository facade, cascade propagator,
    certificate issuer and analytics aggregator.

    Implementations raise UpstreamFailure when the backend fails and
    Conflict when a uniqueness constraint rejects a write.
    """

    @abstractmethod
    async def get(self, model: Type[T], entity_id: Any) -> Optional[T]:
        """Fetch one row by primary key."""

    @abstractmethod
    async def select(self, model: Type[T], spec: Optional[QuerySpec] = None) -> List[T]:
        """Fetch rows matching spec."""

    @abstractmethod
    async def count(self, model: Type[T], spec: Optional[QuerySpec] = None) -> int:
        """Count rows matching spec (ordering and paging are ignored)."""

    @abstractmethod
    async def insert(self, model: Type[T], values: Dict[str, Any]) -> T:
        """Insert a row and return it with server defaults loaded."""

    @abstractmethod
    async def update(self, model: Type[T], entity_id: Any, values: Dict[str, Any]) -> Optional[T]:
        """Update one row by primary key; None when it does not exist."""

    @abstractmethod
    async def update_where(
        self,
        model: Type[T],
        spec: QuerySpec,
        values: Dict[str, Any],
    ) -> List[uuid.UUID]:
        """Update every row matching spec and return the ids that were updated."""

    @abstractmethod
    async def upsert(self, model: Type[T], match: Dict[str, Any], values: Dict[str, Any]) -> T:
        """Update the row matching `match` or insert `match | values`."""

    async def first(self, model: Type[T], spec: QuerySpec) -> Optional[T]:
        rows = await self.select(model, spec.page(limit=1, offset=spec.offset))
        return rows[0] if rows else None

    async def exists(self, model: Type[T], spec: QuerySpec) -> bool:
        return await self.count(model, spec) > 0
