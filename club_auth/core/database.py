"""
Database configuration and connection management for the identity service.
Async SQLAlchemy engine, session factory and the unit-of-work scope used
by every multi-step auth operation.
"""
from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncIterator, Any, Dict
from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
import structlog
from .config import settings

logger = structlog.get_logger()


def _engine_options(database_url: str) -> Dict[str, Any]:
    if database_url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": settings.DATABASE_POOL_SIZE,
        "max_overflow": settings.DATABASE_MAX_OVERFLOW,
        "pool_timeout": settings.DATABASE_POOL_TIMEOUT,
        "pool_pre_ping": True,  # Validate connections before use
        "pool_recycle": settings.DATABASE_POOL_RECYCLE,
    }


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """SQLite ignores ON DELETE CASCADE unless the pragma is set per connection."""
    if engine.url.get_backend_name() != "sqlite":
        return

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    **_engine_options(settings.DATABASE_URL),
)
enable_sqlite_foreign_keys(engine)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Database dependency that provides an async session per request.
    Services commit through unit_of_work; anything left open is rolled back.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception as e:
            await session.rollback()
            logger.error("Database session error", error=str(e))
            raise
        finally:
            await session.close()


@asynccontextmanager
async def unit_of_work(db: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    Run a sequence of repository calls as one transaction.

    Commits when the block exits normally and rolls back on any exception,
    so a failure part-way never leaves half-applied token or user state.
    """
    try:
        yield db
        await db.commit()
    except Exception:
        await db.rollback()
        raise


async def create_tables() -> None:
    from ..models.base import Base
    from ..models import user, verification_token  # noqa: F401  register mappers

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ensured")


class DatabaseHealthCheck:
    """Health check utilities for database connections."""

    @staticmethod
    async def check_connection() -> bool:
        try:
            async with AsyncSessionLocal() as session:
                result = await session.execute(text("SELECT 1"))
                return result.scalar() == 1
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return False


async def close_db_connections():
    """Close all database connections on shutdown."""
    await engine.dispose()
    logger.info("Database connections closed")
