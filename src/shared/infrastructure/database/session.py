"""Async engine and session maker for the platform database."""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, AsyncGenerator, Dict

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from src.shared.logging import get_logger

if TYPE_CHECKING:
    from src.config import Settings

logger = get_logger(__name__)


class DatabaseSessionFactory:
    """
    Owns one ``AsyncEngine`` per process.

    The API, the billing scheduler and ``python -m src.monitoring`` each build
    their own factory; sessions never cross between them.
    """

    def __init__(self, database_url: str, echo: bool = False, pool_size: int = 20, max_overflow: int = 10) -> None:
        self.database_url = database_url
        options: Dict[str, Any] = {"echo": echo, "pool_pre_ping": True}
        # SQLite drivers reject QueuePool sizing
        if not database_url.startswith("sqlite"):
            options.update(pool_size=pool_size, max_overflow=max_overflow, pool_recycle=1800)

        self.engine: AsyncEngine = create_async_engine(database_url, **options)
        self.session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            self.engine, expire_on_commit=False, autoflush=False
        )
        logger.info("db_engine_created", dialect=self.engine.dialect.name)

    @classmethod
    def from_settings(cls, settings: "Settings") -> DatabaseSessionFactory:
        return cls(
            settings.effective_database_url,
            echo=settings.DB_ECHO,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
        )

    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        async with self.session_factory() as session:
            yield session

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("db_engine_disposed")
