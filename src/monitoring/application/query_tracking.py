"""Per-request query counters kept in a context variable."""
from __future__ import annotations

from contextvars import ContextVar, Token
from dataclasses import dataclass
from typing import Optional

from src.shared.logging import get_logger, log_performance_metric

logger = get_logger("monitoring.queries")

N_PLUS_ONE_HINT = "Potential N+1 query problem - use eager loading"


@dataclass
class RequestQueryStats:
    count: int = 0
    total_ms: float = 0.0

    @property
    def avg_ms(self) -> float:
        return round(self.total_ms / self.count, 2) if self.count else 0.0


_current: ContextVar[Optional[RequestQueryStats]] = ContextVar("request_query_stats", default=None)


def begin_request() -> Token:
    return _current.set(RequestQueryStats())


def current_stats() -> Optional[RequestQueryStats]:
    return _current.get()


def count_query(duration_ms: float) -> None:
    stats = _current.get()
    if stats is not None:
        stats.count += 1
        stats.total_ms += duration_ms


def finish_request(token: Token, *, max_queries: int, log_totals: bool = True) -> RequestQueryStats:
    """Close the request scope and report its totals."""
    stats = _current.get() or RequestQueryStats()
    _current.reset(token)
    if stats.count > max_queries:
        logger.warning(
            "High query count detected",
            total_queries=stats.count,
            total_time_ms=round(stats.total_ms, 2),
            avg_time_ms=stats.avg_ms,
            hint=N_PLUS_ONE_HINT,
        )
    if log_totals:
        log_performance_metric(
            "database_queries",
            stats.count,
            unit="count",
            total_time_ms=round(stats.total_ms, 2),
        )
    return stats
