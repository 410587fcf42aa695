"""
QueryOptimizer

Runs EXPLAIN on demand and reads PostgreSQL statistics views. Results of the
statistics readers are cached in Redis; failures degrade to empty results.
"""
from __future__ import annotations

import hashlib
import json
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.monitoring.domain.query_analysis import analyze_plan, analyze_sql, bind_values, suggestions
from src.shared.clock import utcnow
from src.shared.infrastructure.cache.cache_protocol import JsonCache
from src.shared.logging import get_logger

logger = get_logger(__name__)

CACHE_PREFIX = "query_optimizer:"
SLOW_QUERY_THRESHOLD_MS = 1000.0
CRITICAL_QUERY_MS = 5000.0
SLOW_RECORD_TTL = 3600

_SLOW_QUERIES_SQL = text(
    """
    SELECT query, calls,
           total_exec_time AS total_time,
           mean_exec_time AS mean_time,
           max_exec_time AS max_time,
           min_exec_time AS min_time,
           stddev_exec_time AS stddev_time
    FROM pg_stat_statements
    WHERE mean_exec_time > :threshold
    ORDER BY mean_exec_time DESC
    LIMIT 50
    """
)

_INDEX_STATS_SQL = text(
    """
    SELECT schemaname, relname AS tablename, indexrelname AS indexname,
           idx_scan, idx_tup_read, idx_tup_fetch
    FROM pg_stat_user_indexes
    ORDER BY idx_scan ASC
    LIMIT 50
    """
)

_UNUSED_INDEXES_SQL = text(
    """
    SELECT schemaname, relname AS tablename, indexrelname AS indexname,
           pg_size_pretty(pg_relation_size(indexrelid)) AS index_size
    FROM pg_stat_user_indexes
    WHERE idx_scan = 0
      AND indexrelname NOT LIKE '%_pkey'
    ORDER BY pg_relation_size(indexrelid) DESC
    """
)

_COLUMN_STATS_SQL = text(
    """
    SELECT attname AS column_name, n_distinct, correlation
    FROM pg_stats
    WHERE tablename = :table
    ORDER BY n_distinct DESC
    """
)

_TABLE_STATS_SELECT = """
    SELECT schemaname, relname AS tablename,
           pg_size_pretty(pg_total_relation_size(relid)) AS total_size,
           pg_size_pretty(pg_relation_size(relid)) AS table_size,
           pg_size_pretty(pg_total_relation_size(relid) - pg_relation_size(relid)) AS indexes_size,
           n_tup_ins AS inserts, n_tup_upd AS updates, n_tup_del AS deletes,
           n_live_tup AS live_rows, n_dead_tup AS dead_rows,
           last_vacuum, last_autovacuum, last_analyze, last_autoanalyze
    FROM pg_stat_user_tables
"""


def _rows(result) -> List[Dict[str, Any]]:
    return [dict(r._mapping) for r in result]


class QueryOptimizer:
    def __init__(self, session: AsyncSession, cache: JsonCache) -> None:
        self._session = session
        self._cache = cache

    # ------------------------------------------------------------------ analysis

    async def explain(self, sql: str, params: Optional[Sequence[Any]] = None) -> Any:
        statement = bind_values(sql, params)
        try:
            result = await self._session.execute(text(f"EXPLAIN (FORMAT JSON) {statement}"))
            plan = result.scalar()
        except SQLAlchemyError as exc:
            logger.warning("Failed to explain query", sql=sql, error=str(exc))
            await self._session.rollback()
            return []
        if isinstance(plan, str):
            plan = json.loads(plan)
        return plan or []

    async def analyze(self, sql: str, params: Optional[Sequence[Any]] = None) -> Dict[str, Any]:
        started = time.perf_counter()
        plan = await self.explain(sql, params)
        issues = analyze_sql(sql).merge(analyze_plan(plan))
        return {
            "query": sql,
            "execution_plan": plan,
            "suggestions": suggestions(issues),
            "analysis_time_ms": round((time.perf_counter() - started) * 1000, 2),
        }

    # ------------------------------------------------------------------ statistics

    async def _remember(
        self, key: str, ttl: int, loader: Callable[[], Awaitable[List[Dict[str, Any]]]]
    ) -> List[Dict[str, Any]]:
        cache_key = CACHE_PREFIX + key
        try:
            cached = await self._cache.get_json(cache_key)
        except (RedisError, OSError) as exc:
            logger.warning("Query statistics cache unavailable", stats_kind=key, error=str(exc))
            cached = None
        if cached is not None:
            return cached
        try:
            rows = await loader()
        except SQLAlchemyError as exc:
            logger.warning("Query statistics unavailable", stats_kind=key, error=str(exc))
            await self._session.rollback()
            return []
        try:
            await self._cache.set_json(cache_key, rows, ttl_seconds=ttl)
        except (RedisError, OSError) as exc:
            logger.warning("Query statistics not cached", stats_kind=key, error=str(exc))
        return rows

    async def slow_queries(self, threshold_ms: float = SLOW_QUERY_THRESHOLD_MS) -> List[Dict[str, Any]]:
        async def load():
            return _rows(await self._session.execute(_SLOW_QUERIES_SQL, {"threshold": threshold_ms}))

        return await self._remember(f"slow_queries:{threshold_ms:g}", 300, load)

    async def index_stats(self) -> List[Dict[str, Any]]:
        async def load():
            return _rows(await self._session.execute(_INDEX_STATS_SQL))

        return await self._remember("index_stats", 300, load)

    async def unused_indexes(self) -> List[Dict[str, Any]]:
        async def load():
            return _rows(await self._session.execute(_UNUSED_INDEXES_SQL))

        return await self._remember("unused_indexes", 600, load)

    async def suggest_indexes(self, table: str) -> List[Dict[str, Any]]:
        async def load():
            columns = _rows(await self._session.execute(_COLUMN_STATS_SQL, {"table": table}))
            return [
                {"table": table, "column": c["column_name"], "type": "btree", "reason": "High cardinality column"}
                for c in columns
                if c["n_distinct"] is not None and (c["n_distinct"] > 100 or c["n_distinct"] < 0)
            ]

        return await self._remember(f"suggest_indexes:{table}", 300, load)

    async def table_stats(self, table: Optional[str] = None) -> List[Dict[str, Any]]:
        async def load():
            if table:
                stmt = text(_TABLE_STATS_SELECT + " WHERE relname = :table")
                return _rows(await self._session.execute(stmt, {"table": table}))
            stmt = text(_TABLE_STATS_SELECT + " ORDER BY pg_total_relation_size(relid) DESC LIMIT 20")
            return _rows(await self._session.execute(stmt))

        return await self._remember(f"table_stats:{table or '*'}", 300, load)

    # ------------------------------------------------------------------ recording

    async def record_query_performance(self, sql: str, duration_ms: float) -> Optional[Dict[str, Any]]:
        """Fold one slow execution into the per-statement aggregate; fast queries are ignored."""
        return await record_query_performance(self._cache, sql, duration_ms)


async def record_query_performance(cache: JsonCache, sql: str, duration_ms: float) -> Optional[Dict[str, Any]]:
    if duration_ms < SLOW_QUERY_THRESHOLD_MS:
        return None
    key = f"{CACHE_PREFIX}slow:{hashlib.md5(sql.encode('utf-8')).hexdigest()}"
    data = await cache.get_json(key) or {
        "query": sql,
        "count": 0,
        "total_time": 0.0,
        "max_time": 0.0,
        "min_time": None,
    }
    data["count"] += 1
    data["total_time"] += duration_ms
    data["max_time"] = max(data["max_time"], duration_ms)
    data["min_time"] = duration_ms if data["min_time"] is None else min(data["min_time"], duration_ms)
    data["avg_time"] = data["total_time"] / data["count"]
    data["last_seen"] = utcnow().isoformat()
    await cache.set_json(key, data, ttl_seconds=SLOW_RECORD_TTL)

    if duration_ms > CRITICAL_QUERY_MS:
        logger.warning("Critical slow query detected", sql=sql, duration_ms=duration_ms)
    return data
