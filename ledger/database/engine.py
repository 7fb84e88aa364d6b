"""
Database engine configuration for Circle Ledger

Async SQLAlchemy 2.0 setup with connection pooling. The engine lives in an
explicitly constructed ``Database`` object owned by the service; there is no
module-level engine.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from loguru import logger
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    create_async_engine,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
)

from ledger.database.models import Base


class Database:
    """
    Store client: async engine plus session maker

    Usage:
        database = Database.from_config()
        async with database.session() as session:
            ...
        await database.dispose()
    """

    def __init__(self, url: str, **engine_kwargs: Any):
        self.url = url
        self.engine: AsyncEngine = create_async_engine(url, **engine_kwargs)
        self.session_maker: async_sessionmaker[AsyncSession] = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,  # Important for async!
            autoflush=False,
        )

    @classmethod
    def from_config(cls) -> "Database":
        """
        Build the production store client from config

        Returns:
            Database with a pooled engine
        """
        from config.config import (
            DATABASE_URL,
            DB_POOL_SIZE,
            DB_MAX_OVERFLOW,
            DB_POOL_RECYCLE,
            ENVIRONMENT,
            normalize_database_url,
        )

        url, connect_args = normalize_database_url(DATABASE_URL)
        engine_kwargs: dict[str, Any] = {
            "echo": False,
            "connect_args": connect_args,
        }
        if not url.startswith("sqlite"):
            engine_kwargs.update(
                pool_size=DB_POOL_SIZE,
                max_overflow=DB_MAX_OVERFLOW,
                pool_pre_ping=True,  # Verify connections before using
                pool_recycle=DB_POOL_RECYCLE,
            )

        database = cls(url, **engine_kwargs)
        logger.info(
            f"Database engine created - Environment: {ENVIRONMENT}, "
            f"Pool size: {DB_POOL_SIZE}, Max overflow: {DB_MAX_OVERFLOW}"
        )
        return database

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        Open a session bound to one pooled connection

        The connection is returned to the pool on every exit path; an
        exception rolls back whatever the session has not committed.
        """
        async with self.session_maker() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def create_tables(self) -> None:
        """
        Create all tables

        WARNING: For production, use Alembic migrations instead.
        """
        logger.info("Creating database tables...")
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created successfully")

    async def drop_tables(self) -> None:
        """
        Drop all tables

        WARNING: This deletes all data! Only for development/testing.
        """
        logger.warning("Dropping all database tables...")
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        logger.warning("Database tables dropped")

    async def check_connection(self) -> bool:
        """
        Check database connection

        Returns:
            True if connection successful, False otherwise
        """
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Database connection check failed: {e}")
            return False

    async def dispose(self) -> None:
        """
        Dispose engine and close all pooled connections

        Call this on application shutdown
        """
        await self.engine.dispose()
        logger.info("Database engine disposed")
