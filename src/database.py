"""
Database connection and session management.
Uses SQLAlchemy 2.0 async pattern.
"""

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from src.config import get_settings


def build_engine(database_url: str, *, echo: bool = False) -> AsyncEngine:
    """Create an async engine with pool settings suited to the backend."""
    if database_url.startswith("sqlite"):
        # NullPool: every session gets its own connection, so concurrent
        # analytics reads never share a connection mid-statement.
        sqlite_engine = create_async_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=NullPool,
        )

        @event.listens_for(sqlite_engine.sync_engine, "connect")
        def _set_sqlite_pragma(dbapi_conn, connection_record):
            """Enable WAL mode + foreign keys on every new SQLite connection."""
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.execute("PRAGMA busy_timeout=5000")
            cursor.close()

        return sqlite_engine

    # PostgreSQL settings with connection pooling
    return create_async_engine(
        database_url,
        echo=echo,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
    )


def build_session_maker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory used by the store; objects stay readable after commit."""
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


settings = get_settings()
engine = build_engine(settings.database_url, echo=settings.debug)
async_session_maker = build_session_maker(engine)


async def init_db(bind: AsyncEngine = engine) -> None:
    """Create tables and seed the XP level table."""
    # Import Base from kernel models to ensure all models are registered
    from src.kernel.models import Base
    from src.kernel.models.progress import seed_xp_levels

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await seed_xp_levels(build_session_maker(bind))


async def close_db() -> None:
    """Close database connections."""
    await engine.dispose()
