"""
structlog configuration shared by the API, the billing scheduler and the
monitoring CLI.

Events are rendered by ``structlog.dev.ConsoleRenderer`` on developer
machines and handed to python-json-logger everywhere else. Request context
(correlation id, tenant, impersonation session) travels in structlog
contextvars.
"""

from __future__ import annotations

import contextlib
import logging
import logging.config
import re
import sys
import time
import uuid
from typing import Any, Dict, Iterator, List, Optional

import structlog
from pythonjsonlogger.json import JsonFormatter

from src.config import get_settings

SENSITIVE_KEYS = frozenset({"secret", "api_key", "token", "token_hash", "authorization", "password"})
_EMAIL = re.compile(r"\b([A-Za-z0-9._%+-]+)@([A-Za-z0-9.-]+\.[A-Za-z]{2,})\b")


def _scrub(value: Any, key: Optional[str] = None) -> Any:
    if key is not None and key.lower() in SENSITIVE_KEYS:
        return "***"
    if isinstance(value, dict):
        return {k: _scrub(v, k) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_scrub(v) for v in value]
    if isinstance(value, str):
        return _EMAIL.sub(lambda m: f"***@{m.group(2)}", value)
    return value


def redact_sensitive(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Mask secret-bearing keys and e-mail local parts."""
    return {k: (v if k == "event" else _scrub(v, k)) for k, v in event_dict.items()}


def set_correlation_id(correlation_id: Optional[str] = None) -> str:
    cid = correlation_id or uuid.uuid4().hex
    structlog.contextvars.bind_contextvars(correlation_id=cid)
    return cid


def bind_request_context(**fields: Any) -> None:
    """Bind non-null fields (path, method, tenant_id, ...) for the rest of the request."""
    payload = {k: v for k, v in fields.items() if v is not None}
    if payload:
        structlog.contextvars.bind_contextvars(**payload)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()


@contextlib.contextmanager
def time_block(name: str, *, labels: Optional[Dict[str, str]] = None) -> Iterator[None]:
    """
    Time a block and emit it as a performance metric.

        with time_block("billing.generate_monthly_invoices", labels={"job": "invoices"}):
            await job.run()
    """
    started = time.perf_counter()
    try:
        yield
    finally:
        log_performance_metric(name, round((time.perf_counter() - started) * 1000.0, 2), labels=labels)


def _resolve_format(settings) -> str:
    fmt = (settings.LOG_FORMAT or "").lower()
    if fmt in ("json", "console"):
        return fmt
    return "console" if settings.is_dev else "json"


def _quiet(*names: str, level: str = "WARNING") -> Dict[str, Dict[str, Any]]:
    return {name: {"level": level, "handlers": ["default"], "propagate": False} for name in names}


def setup_logging() -> None:
    """Configure stdlib logging and structlog; safe to call more than once."""
    settings = get_settings()
    log_format = _resolve_format(settings)

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {
                    "()": JsonFormatter,
                    "format": "%(asctime)s %(name)s %(levelname)s %(message)s",
                    "rename_fields": {"levelname": "level", "asctime": "timestamp"},
                },
                "console": {"format": "%(message)s"},
            },
            "handlers": {
                "default": {"class": "logging.StreamHandler", "formatter": log_format, "stream": sys.stdout},
            },
            "root": {"level": settings.LOG_LEVEL.upper(), "handlers": ["default"]},
            "loggers": {
                **_quiet("uvicorn.access", "sqlalchemy.engine", "httpx"),
                **_quiet("uvicorn.error", "apscheduler", "alembic", level="INFO"),
            },
        }
    )

    processors: List[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if settings.is_prod or settings.is_staging:
        processors.append(redact_sensitive)
    processors += [
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.stdlib.render_to_log_kwargs if log_format == "json" else structlog.dev.ConsoleRenderer(),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    structlog.contextvars.clear_contextvars()


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


security_logger = get_logger("security")
performance_logger = get_logger("performance")
activity_logger = get_logger("activity")


def log_security_event(
    event_type: str,
    *,
    user_id: Optional[str] = None,
    tenant_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> None:
    """Authorization denials, rejected impersonation tokens and console actions."""
    security_logger.warning(
        "security_event",
        event_type=event_type,
        user_id=user_id,
        tenant_id=tenant_id,
        details=details or {},
    )


def log_performance_metric(
    metric_name: str,
    value: float,
    unit: str = "ms",
    labels: Optional[Dict[str, str]] = None,
    **extra: Any,
) -> None:
    performance_logger.info(
        "performance_metric", metric_name=metric_name, value=value, unit=unit, labels=labels or {}, **extra
    )
