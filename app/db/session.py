from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from app.config import settings
from typing import AsyncGenerator
import logging

from app.db.base import Base

logger = logging.getLogger(__name__)

def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()

def build_engine(database_url: str) -> AsyncEngine:
    """Create the pooled async engine shared by all request sessions"""
    if database_url.startswith("sqlite"):
        # SQLite configuration for testing
        engine = create_async_engine(
            database_url,
            echo=settings.DEBUG,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        # Cascading deletes rely on FK enforcement, which SQLite leaves off
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    # PostgreSQL configuration for production/development
    return create_async_engine(
        database_url,
        echo=settings.DEBUG,
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
        pool_pre_ping=True,
    )

def build_session_factory(bind: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

engine = build_engine(settings.database_url)

# Create async session factory
AsyncSessionLocal = build_session_factory(engine)

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency to get database session"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error(f"Database session error: {e}")
            raise

async def init_db():
    """Initialize database (create tables, etc.)"""
    import app.models  # noqa: F401  registers every table on Base.metadata
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database initialized successfully")

async def drop_db():
    """Drop every table known to the metadata"""
    import app.models  # noqa: F401
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    logger.info("Database dropped")

async def close_db():
    """Close database connections"""
    await engine.dispose()
    logger.info("Database connections closed")
