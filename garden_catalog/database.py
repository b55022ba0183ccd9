"""
Async engine, session factory and the ``get_db`` request dependency.

PostgreSQL through asyncpg in production.  SQLite through aiosqlite also
works (the test suite uses it); foreign keys are switched on per connection
so bed/plant ownership is enforced the same way on both.
"""
from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool
from typing import AsyncGenerator
import logging

from garden_catalog.config import settings

logger = logging.getLogger(__name__)


def build_engine(url: str) -> AsyncEngine:
    new_engine = create_async_engine(
        url,
        echo=False,
        pool_pre_ping=True,
        poolclass=NullPool,
    )

    if make_url(url).get_backend_name() == "sqlite":
        @event.listens_for(new_engine.sync_engine, "connect")
        def _enable_sqlite_foreign_keys(dbapi_connection, _record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return new_engine


engine = build_engine(settings.DATABASE_URL)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

# Base class for users, garden_beds, plants, conversations, feedback
Base = declarative_base()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    One session per request, committed when the handler returns.

    Services only flush, so a handler that raises leaves nothing behind.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error("Rolling back request session: %s", e)
            raise


async def init_db() -> None:
    """Create any missing catalog tables.  Alembic owns real schema changes."""
    from garden_catalog.models import database_models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Catalog tables verified: %s", ", ".join(sorted(Base.metadata.tables)))


async def close_db() -> None:
    await engine.dispose()
    logger.info("Database engine disposed")
