"""
QueryMonitor

Hooks SQLAlchemy cursor events to time every statement. Slow statements are
logged with their caller; each one is also folded into the Redis aggregate
kept by the query optimizer.
"""
from __future__ import annotations

import asyncio
import time
import traceback
from typing import Any, Dict, Optional, Set

from sqlalchemy import event
from sqlalchemy.engine import Engine

from src.monitoring.application.query_tracking import count_query
from src.monitoring.domain.query_analysis import analyze_sql, suggestions
from src.monitoring.infrastructure.query_optimizer import record_query_performance
from src.shared.infrastructure.cache.cache_protocol import JsonCache
from src.shared.logging import get_logger

logger = get_logger("monitoring.queries")

_START_KEY = "query_monitor_start"
_SKIPPED_PATHS = ("/sqlalchemy/", "/asyncpg/", "/aiosqlite/", "/greenlet/", "query_monitor.py", "/asyncio/")


def _find_caller() -> Dict[str, Any]:
    for frame in reversed(traceback.extract_stack()[:-2]):
        if not any(p in frame.filename for p in _SKIPPED_PATHS):
            return {"caller_file": frame.filename, "caller_line": frame.lineno, "caller_function": frame.name}
    return {}


class QueryMonitor:
    def __init__(
        self,
        *,
        slow_threshold_ms: float = 1000,
        auto_explain_threshold_ms: float = 5000,
        critical_threshold_ms: float = 10000,
        log_all: bool = False,
        explain_in_logs: bool = False,
        cache: Optional[JsonCache] = None,
    ) -> None:
        self.slow_threshold_ms = slow_threshold_ms
        self.auto_explain_threshold_ms = auto_explain_threshold_ms
        self.critical_threshold_ms = critical_threshold_ms
        self.log_all = log_all
        self.explain_in_logs = explain_in_logs
        self._cache = cache
        self._pending: Set[asyncio.Task] = set()

    @classmethod
    def from_settings(cls, settings, cache: Optional[JsonCache] = None) -> "QueryMonitor":
        return cls(
            slow_threshold_ms=settings.DB_SLOW_QUERY_THRESHOLD_MS,
            auto_explain_threshold_ms=settings.DB_AUTO_EXPLAIN_THRESHOLD_MS,
            critical_threshold_ms=settings.DB_CRITICAL_QUERY_THRESHOLD_MS,
            log_all=settings.DB_LOG_ALL_QUERIES,
            explain_in_logs=settings.is_dev,
            cache=cache,
        )

    # -------------------------------------------------------------- wiring

    def attach(self, engine: Any) -> None:
        """Accepts a sync ``Engine`` or an ``AsyncEngine``."""
        target: Engine = getattr(engine, "sync_engine", engine)
        event.listen(target, "before_cursor_execute", self._before_cursor_execute)
        event.listen(target, "after_cursor_execute", self._after_cursor_execute)
        logger.info("Query monitoring attached", slow_threshold_ms=self.slow_threshold_ms)

    def detach(self, engine: Any) -> None:
        target: Engine = getattr(engine, "sync_engine", engine)
        if event.contains(target, "before_cursor_execute", self._before_cursor_execute):
            event.remove(target, "before_cursor_execute", self._before_cursor_execute)
            event.remove(target, "after_cursor_execute", self._after_cursor_execute)

    def _before_cursor_execute(self, conn, cursor, statement, parameters, context, executemany) -> None:
        conn.info.setdefault(_START_KEY, []).append(time.perf_counter())

    def _after_cursor_execute(self, conn, cursor, statement, parameters, context, executemany) -> None:
        starts = conn.info.get(_START_KEY)
        if not starts:
            return
        duration_ms = (time.perf_counter() - starts.pop()) * 1000.0
        self.observe(statement, parameters, duration_ms)

    # -------------------------------------------------------------- per query

    def observe(self, sql: str, parameters: Any, duration_ms: float) -> None:
        count_query(duration_ms)
        duration_ms = round(duration_ms, 2)

        if duration_ms >= self.slow_threshold_ms:
            log = logger.error if duration_ms > self.critical_threshold_ms else logger.warning
            log(
                "Slow query detected",
                sql=sql,
                bindings=_safe_params(parameters),
                time_ms=duration_ms,
                **_find_caller(),
            )
            if self.explain_in_logs and duration_ms >= self.auto_explain_threshold_ms:
                advice = suggestions(analyze_sql(sql))
                if advice:
                    logger.info("Query optimization suggestions", sql=sql, suggestions=advice)

        self._record(sql, duration_ms)

        if self.log_all:
            logger.debug("Database query", sql=sql, bindings=_safe_params(parameters), time_ms=duration_ms)

    def _record(self, sql: str, duration_ms: float) -> None:
        if self._cache is None or duration_ms < self.slow_threshold_ms:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # sync engine outside an event loop
            return
        task = loop.create_task(record_query_performance(self._cache, sql, duration_ms))
        self._pending.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.warning("Failed to record query performance", error=str(task.exception()))


def _safe_params(parameters: Any) -> Any:
    if parameters is None:
        return None
    if isinstance(parameters, dict):
        return {k: repr(v) for k, v in parameters.items()}
    if isinstance(parameters, (list, tuple)):
        return [repr(v) for v in parameters]
    return repr(parameters)
