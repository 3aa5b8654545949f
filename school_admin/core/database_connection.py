"""
Database Connection Manager
---------------------------
Manages PostgreSQL database connections with SQLAlchemy async engine.

One DatabaseManager is created at process start (see app lifespan) and handed
to every database service explicitly. There is no module-level instance.
"""

from typing import AsyncGenerator, Optional
from contextlib import asynccontextmanager

from loguru import logger
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from school_admin.core.config_manager import ApplicationSettings


class DatabaseManager:
    """
    Owns the async engine and hands out transactional sessions.

    Sessions yielded by get_session() commit when the block exits cleanly and
    roll back when it raises, so each service call is one transaction.
    """

    def __init__(self, settings: ApplicationSettings):
        self.settings = settings
        self._engine: Optional[AsyncEngine] = None
        self._sessionmaker: Optional[async_sessionmaker] = None

    @property
    def is_initialized(self) -> bool:
        return self._engine is not None

    async def initialize(self) -> None:
        """Create the SQLAlchemy async engine and sessionmaker."""
        if self._engine is not None:
            logger.warning("Database engine already initialized")
            return

        logger.info(
            f"Initializing database connection to "
            f"{self.settings.database_host}:{self.settings.database_port}"
        )

        try:
            self._engine = create_async_engine(
                self.settings.database_url,
                pool_size=self.settings.database_pool_size,
                max_overflow=self.settings.database_max_overflow,
                pool_pre_ping=True,  # Health checks
                pool_recycle=3600,  # Recycle connections every hour
                pool_timeout=30,  # Wait time for connection
                echo=False,
            )

            self._sessionmaker = async_sessionmaker(
                bind=self._engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )
            logger.info(
                "SQLAlchemy async engine and sessionmaker initialized successfully"
            )

        except Exception as e:
            logger.error(f"Error initializing SQLAlchemy engine: {e}")
            raise

    async def close(self) -> None:
        """Close SQLAlchemy engine."""
        if self._engine is not None:
            logger.info("Disposing SQLAlchemy engine")
            await self._engine.dispose()
            self._engine = None
            self._sessionmaker = None
            logger.info("SQLAlchemy engine disposed")

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Get a SQLAlchemy async session from the sessionmaker.

        Yields:
            AsyncSession: Active SQLAlchemy session with automatic
                         commit on success or rollback on exception

        Raises:
            RuntimeError: If database not initialized

        Example:
            async with database_manager.get_session() as session:
                result = await session.execute(text("SELECT 1"))
                value = result.scalar()
        """
        if not self._sessionmaker:
            raise RuntimeError("Database not initialized. Call initialize() first.")

        session = self._sessionmaker()
        try:
            yield session
            await session.commit()
            logger.debug("Session committed successfully")
        except Exception as e:
            await session.rollback()
            logger.warning(f"Session rolled back due to error: {e}")
            raise
        finally:
            await session.close()
            logger.debug("Session closed and returned to pool")

    async def ping(self) -> bool:
        """Run SELECT 1 and report whether the database answered."""
        async with self.get_session() as session:
            result = await session.execute(text("SELECT 1"))
            return result.scalar() == 1
