# src/agent_chat/infrastructure/database/connection.py
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine, AsyncEngine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from agent_chat.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


class DatabaseManager:
    """
    Manages async database connections for the history store.

    Features:
    - Configurable connection pooling (size, overflow, timeout, recycle)
    - Connection health checks via pool_pre_ping
    - In-memory SQLite support (single shared connection) for tests
    - Automatic session management with commit/rollback

    Usage:
        db = DatabaseManager()
        await db.connect(url="postgresql+asyncpg://...")
        async with db.session() as session:
            # use session
        await db.disconnect()
    """

    def __init__(self):
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None
        self._pool_size: int = 5
        self._max_overflow: int = 10

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    async def connect(
        self,
        url: str,
        pool_size: int = 5,
        max_overflow: int = 10,
        pool_timeout: int = 30,
        pool_recycle: int = 3600,
        pool_pre_ping: bool = True,
        echo_sql: bool = False,
    ) -> None:
        """
        Connect to the database with configurable pool settings.

        Args:
            url: Database connection URL
            pool_size: Number of connections to maintain in the pool (default: 5)
            max_overflow: Max connections beyond pool_size (default: 10)
            pool_timeout: Timeout in seconds for getting a connection (default: 30)
            pool_recycle: Recycle connections after N seconds (default: 3600 = 1 hour)
            pool_pre_ping: Enable connection health checks (default: True)
            echo_sql: Log all SQL statements (default: False)

        Raises:
            RuntimeError: If already connected
        """
        if self._engine is not None:
            raise RuntimeError("Database already connected")

        if url.startswith("sqlite"):
            # SQLite ignores pool sizing; an in-memory database must share one connection
            engine_kwargs: dict[str, Any] = {
                "connect_args": {"check_same_thread": False},
                "poolclass": StaticPool,
            }
        else:
            self._pool_size = pool_size
            self._max_overflow = max_overflow
            engine_kwargs = {
                "pool_size": pool_size,
                "max_overflow": max_overflow,
                "pool_timeout": pool_timeout,
                "pool_recycle": pool_recycle,
                "pool_pre_ping": pool_pre_ping,
            }

        self._engine = create_async_engine(url, echo=echo_sql, **engine_kwargs)

        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

        logger.info(
            "Database connected",
            dialect=self._engine.dialect.name,
            pool_size=engine_kwargs.get("pool_size"),
            max_overflow=engine_kwargs.get("max_overflow"),
        )

    async def create_all(self) -> None:
        """Create every SQLModel table that does not exist yet (development and tests)."""
        if not self._engine:
            raise RuntimeError("Database not connected. Call connect() first.")
        # Registers the table on SQLModel.metadata
        from agent_chat.history import models  # noqa: F401

        async with self._engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)

    async def disconnect(self) -> None:
        """
        Dispose of the engine and its pooled connections.

        Safe to call multiple times.
        """
        if self._engine:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("Database disconnected")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Get a database session with automatic commit/rollback.

        Raises:
            RuntimeError: If database not connected

        Usage:
            async with db.session() as session:
                session.add(record)
                # session automatically committed on success
        """
        if not self._session_factory:
            raise RuntimeError("Database not connected. Call connect() first.")

        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def health_check(self) -> bool:
        """
        Perform a health check by executing a simple query.

        Returns:
            True if database is healthy, False otherwise
        """
        if not self._engine:
            return False
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return False
