from __future__ import annotations

import asyncio
import json
from typing import Any, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from src.shared.logging import get_logger

logger = get_logger(__name__)


class InMemoryAsyncRedis:
    """
    Process-local stand-in used when Redis cannot be reached. Traces and
    slow-query stats then live only in this process.
    """
    def __init__(self) -> None:
        self._data: dict[str, Any] = {}
        self._exp: dict[str, float] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Optional[str]:
        async with self._lock:
            self._purge_if_needed(key)
            val = self._data.get(key)
            return None if val is None else str(val)

    async def set(self, key: str, value: str, ex: Optional[int] = None) -> None:
        async with self._lock:
            self._data[key] = value
            if ex is not None:
                self._exp[key] = asyncio.get_running_loop().time() + ex
            else:
                self._exp.pop(key, None)

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._data.pop(key, None)
            self._exp.pop(key, None)

    async def ping(self) -> bool:
        return True

    async def aclose(self) -> None:
        return None

    def _purge_if_needed(self, key: str) -> None:
        exp = self._exp.get(key)
        if exp is not None and asyncio.get_running_loop().time() >= exp:
            self._data.pop(key, None)
            self._exp.pop(key, None)


class RedisClient:
    """JSON cache over ``redis.asyncio``; falls back to ``InMemoryAsyncRedis`` on connect failure."""
    def __init__(self, url: str, client: Any = None) -> None:
        self._url = url
        self._client = client
        self._is_fake = False

    @property
    def is_fake(self) -> bool:
        return self._is_fake

    async def connect(self) -> None:
        if self._client is not None:
            return
        client = redis.from_url(self._url, decode_responses=True)
        try:
            await client.ping()
            self._client = client
        except (RedisError, OSError) as exc:
            logger.warning("Redis unreachable, using in-memory cache", url=self._url, error=str(exc))
            await client.aclose()
            self._client = InMemoryAsyncRedis()
            self._is_fake = True

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _ensure(self) -> Any:
        if self._client is None:
            raise RuntimeError("RedisClient is not connected. Call await connect() first.")
        return self._client

    async def get_json(self, key: str) -> Optional[Any]:
        raw = await self._ensure().get(key)
        return json.loads(raw) if raw else None

    async def set_json(self, key: str, value: Any, ttl_seconds: int = 300) -> None:
        payload = json.dumps(value, separators=(",", ":"), default=str)
        await self._ensure().set(key, payload, ex=ttl_seconds)

    async def delete(self, key: str) -> None:
        await self._ensure().delete(key)

    async def ping(self) -> bool:
        try:
            return bool(await self._ensure().ping())
        except (RedisError, OSError):
            return False
