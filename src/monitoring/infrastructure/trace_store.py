from __future__ import annotations

from typing import Any, Dict, List

from redis.exceptions import RedisError

from src.monitoring.application.tracing_service import Span, TraceStore
from src.shared.infrastructure.cache.cache_protocol import JsonCache
from src.shared.logging import get_logger

logger = get_logger(__name__)


class RedisTraceStore(TraceStore):
    """
    Spans of one trace as a JSON list under ``traces:{trace_id}``.

    Export is best effort: while Redis is down spans are dropped and the
    request carries on.
    """

    def __init__(self, cache: JsonCache, ttl_seconds: int = 3600) -> None:
        self._cache = cache
        self._ttl = ttl_seconds

    @staticmethod
    def key(trace_id: str) -> str:
        return f"traces:{trace_id}"

    async def append(self, span: Span) -> None:
        key = self.key(span.trace_id)
        try:
            spans = await self._cache.get_json(key) or []
            spans.append(span.to_dict())
            await self._cache.set_json(key, spans, ttl_seconds=self._ttl)
        except (RedisError, OSError) as exc:
            logger.warning(
                "trace_export_failed", trace_id=span.trace_id, operation=span.operation_name, error=str(exc)
            )

    async def get(self, trace_id: str) -> List[Dict[str, Any]]:
        try:
            return await self._cache.get_json(self.key(trace_id)) or []
        except (RedisError, OSError) as exc:
            logger.warning("trace_read_failed", trace_id=trace_id, error=str(exc))
            return []
