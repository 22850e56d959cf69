"""
Persistence port: query specification, store interface and the SQLAlchemy backend.
"""

from src.kernel.store.query import Filter, QuerySpec
from src.kernel.store.base import ContentStore
from src.kernel.store.sqlalchemy_store import SqlAlchemyStore

__all__ = [
    "Filter",
    "QuerySpec",
    "ContentStore",
    "SqlAlchemyStore",
]
