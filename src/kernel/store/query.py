"""
Store-agnostic query specification.

The engine describes reads and bulk writes with a QuerySpec instead of a
client library's query builder, so any ContentStore can execute them.

Usage:
    spec = (
        QuerySpec.where(path_id=path_id)
        .in_("status", ["draft", "published"])
        .order("sort_order")
        .page(limit=20, offset=40)
    )
"""

from dataclasses import dataclass, replace
from typing import Any, Iterable, Optional, Sequence, Tuple

FILTER_OPS = ("eq", "neq", "in", "gt", "gte", "lt", "lte", "ilike_any")


@dataclass(frozen=True)
class Filter:
    """A single predicate on one field (or several fields for ilike_any)."""

    field: str
    op: str
    value: Any

    def __post_init__(self) -> None:
        if self.op not in FILTER_OPS:
            raise ValueError(f"Unsupported filter operator: {self.op}")


@dataclass(frozen=True)
class QuerySpec:
    """Immutable filter/sort/pagination description. Builder methods return copies."""

    filters: Tuple[Filter, ...] = ()
    order_by: Tuple[Tuple[str, bool], ...] = ()  # (field, descending)
    limit: Optional[int] = None
    offset: Optional[int] = None

    @classmethod
    def where(cls, **equals: Any) -> "QuerySpec":
        spec = cls()
        for name, value in equals.items():
            spec = spec.eq(name, value)
        return spec

    def _with(self, flt: Filter) -> "QuerySpec":
        return replace(self, filters=self.filters + (flt,))

    def eq(self, name: str, value: Any) -> "QuerySpec":
        return self._with(Filter(name, "eq", value))

    def neq(self, name: str, value: Any) -> "QuerySpec":
        return self._with(Filter(name, "neq", value))

    def in_(self, name: str, values: Iterable[Any]) -> "QuerySpec":
        return self._with(Filter(name, "in", tuple(values)))

    def gt(self, name: str, value: Any) -> "QuerySpec":
        return self._with(Filter(name, "gt", value))

    def gte(self, name: str, value: Any) -> "QuerySpec":
        return self._with(Filter(name, "gte", value))

    def lt(self, name: str, value: Any) -> "QuerySpec":
        return self._with(Filter(name, "lt", value))

    def lte(self, name: str, value: Any) -> "QuerySpec":
        return self._with(Filter(name, "lte", value))

    def search(self, names: Sequence[str], term: str) -> "QuerySpec":
        """Case-insensitive substring match on any of the given fields."""
        return self._with(Filter(",".join(names), "ilike_any", term))

    def order(self, name: str, descending: bool = False) -> "QuerySpec":
        return replace(self, order_by=self.order_by + ((name, descending),))

    def page(self, limit: Optional[int] = None, offset: Optional[int] = None) -> "QuerySpec":
        return replace(self, limit=limit, offset=offset)
