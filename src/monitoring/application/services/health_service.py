from __future__ import annotations

from typing import Any, Dict

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.shared.clock import utcnow
from src.shared.infrastructure.cache.cache_protocol import JsonCache
from src.shared.logging import get_logger

logger = get_logger(__name__)


class HealthService:
    def __init__(self, session: AsyncSession, cache: JsonCache, *, service_name: str) -> None:
        self._session = session
        self._cache = cache
        self._service_name = service_name

    def basic(self) -> Dict[str, Any]:
        return {"status": "ok", "timestamp": utcnow().isoformat(), "service": self._service_name}

    async def check_database(self) -> bool:
        try:
            await self._session.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as exc:
            logger.warning("Database health check failed", error=str(exc))
            return False

    async def check_cache(self) -> bool:
        return await self._cache.ping()

    async def detailed(self) -> Dict[str, Any]:
        database = await self.check_database()
        cache = await self.check_cache()
        return {
            "status": "ok" if database and cache else "degraded",
            "timestamp": utcnow().isoformat(),
            "service": self._service_name,
            "database": "ok" if database else "unavailable",
            "cache": "ok" if cache else "unavailable",
        }
