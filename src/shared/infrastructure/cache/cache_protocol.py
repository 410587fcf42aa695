from __future__ import annotations

from typing import Any, Optional, Protocol, runtime_checkable


@runtime_checkable
class JsonCache(Protocol):
    """
    JSON values with a TTL. Backs the trace store and the slow-query
    statistics; nothing here is a source of truth.
    """

    async def get_json(self, key: str) -> Optional[Any]: ...

    async def set_json(self, key: str, value: Any, ttl_seconds: int = 300) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def ping(self) -> bool: ...
