"""
Distributed Tracing

W3C ``traceparent`` compatible spans kept per request in a context variable.
Finished spans are handed to a ``TraceStore`` so admins can read a trace back
by id.
"""
from __future__ import annotations

import functools
import re
import secrets
import time
from abc import ABC, abstractmethod
from contextvars import ContextVar
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, List, Optional

from src.shared.logging import get_logger

logger = get_logger("monitoring.tracing")

_TRACEPARENT = re.compile(r"^00-([0-9a-f]{32})-([0-9a-f]{16})-[0-9a-f]{2}$")
EMPTY_TRACE_ID = "0" * 32
EMPTY_SPAN_ID = "0" * 16


def generate_trace_id() -> str:
    return secrets.token_hex(16)


def generate_span_id() -> str:
    return secrets.token_hex(8)


def parse_traceparent(value: Optional[str]) -> Optional[tuple]:
    """(trace_id, parent_span_id) from a version-00 traceparent header, else None."""
    if not value:
        return None
    match = _TRACEPARENT.match(value.strip().lower())
    if not match or match.group(1) == EMPTY_TRACE_ID:
        return None
    return match.group(1), match.group(2)


@dataclass
class Span:
    trace_id: str
    span_id: str
    operation_name: str
    parent_span_id: Optional[str] = None
    start_time: float = field(default_factory=time.time)
    context: Dict[str, Any] = field(default_factory=dict)
    tags: Dict[str, Any] = field(default_factory=dict)
    logs: List[Dict[str, Any]] = field(default_factory=list)
    end_time: Optional[float] = None
    duration_ms: Optional[float] = None
    error: bool = False
    error_message: Optional[str] = None

    def finish(self, error: Optional[str] = None) -> None:
        self.end_time = time.time()
        self.duration_ms = round((self.end_time - self.start_time) * 1000, 2)
        if error:
            self.error = True
            self.error_message = error

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class _TraceState:
    trace_id: str
    root_span_id: str
    spans: Dict[str, Span] = field(default_factory=dict)


class TraceStore(ABC):
    @abstractmethod
    async def append(self, span: Span) -> None:
        raise NotImplementedError

    @abstractmethod
    async def get(self, trace_id: str) -> List[Dict[str, Any]]:
        raise NotImplementedError


class TracingService:
    def __init__(self, store: Optional[TraceStore] = None, *, enabled: bool = True) -> None:
        self._store = store
        self.enabled = enabled
        self._state: ContextVar[Optional[_TraceState]] = ContextVar("trace_state", default=None)

    # ---------------------------------------------------------------- lifecycle

    def start_trace(
        self,
        operation_name: str,
        context: Optional[Dict[str, Any]] = None,
        parent_traceparent: Optional[str] = None,
    ) -> str:
        """Open the root span of a trace; continues the caller's trace when a traceparent is given."""
        parent = parse_traceparent(parent_traceparent)
        trace_id, parent_span_id = parent if parent else (generate_trace_id(), None)
        span = Span(
            trace_id=trace_id,
            span_id=generate_span_id(),
            parent_span_id=parent_span_id,
            operation_name=operation_name,
            context=dict(context or {}),
        )
        self._state.set(_TraceState(trace_id=trace_id, root_span_id=span.span_id, spans={span.span_id: span}))
        logger.debug("Trace started", trace_id=trace_id, span_id=span.span_id, operation=operation_name)
        return trace_id

    def start_span(
        self,
        operation_name: str,
        parent_span_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> str:
        state = self._state.get()
        if state is None:
            self.start_trace(operation_name, context)
            return self._state.get().root_span_id
        span = Span(
            trace_id=state.trace_id,
            span_id=generate_span_id(),
            parent_span_id=parent_span_id or state.root_span_id,
            operation_name=operation_name,
            context=dict(context or {}),
        )
        state.spans[span.span_id] = span
        return span.span_id

    async def end_span(
        self,
        span_id: str,
        tags: Optional[Dict[str, Any]] = None,
        error: Optional[str] = None,
    ) -> Optional[Span]:
        state = self._state.get()
        span = state.spans.get(span_id) if state else None
        if span is None or span.end_time is not None:
            return None
        if tags:
            span.tags.update(tags)
        span.finish(error)
        logger.info(
            "Span completed",
            trace_id=span.trace_id,
            span_id=span.span_id,
            operation=span.operation_name,
            duration_ms=span.duration_ms,
            error=span.error,
        )
        if self.enabled and self._store is not None:
            await self._store.append(span)
        return span

    def add_tags(self, span_id: str, tags: Dict[str, Any]) -> None:
        span = self._span(span_id)
        if span is not None:
            span.tags.update(tags)

    def add_event(self, span_id: str, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        span = self._span(span_id)
        if span is not None:
            span.logs.append({"timestamp": time.time(), "message": message, "context": dict(context or {})})

    def clear(self) -> None:
        self._state.set(None)

    # ---------------------------------------------------------------- accessors

    def _span(self, span_id: str) -> Optional[Span]:
        state = self._state.get()
        return state.spans.get(span_id) if state else None

    @property
    def trace_id(self) -> Optional[str]:
        state = self._state.get()
        return state.trace_id if state else None

    @property
    def span_id(self) -> Optional[str]:
        state = self._state.get()
        return state.root_span_id if state else None

    def spans(self) -> List[Span]:
        state = self._state.get()
        return list(state.spans.values()) if state else []

    def current_traceparent(self) -> str:
        return f"00-{self.trace_id or EMPTY_TRACE_ID}-{self.span_id or EMPTY_SPAN_ID}-01"

    async def get_trace(self, trace_id: str) -> List[Dict[str, Any]]:
        if self._store is None:
            return []
        return await self._store.get(trace_id)

    # ---------------------------------------------------------------- helpers

    def trace_function(self, name: Optional[str] = None) -> Callable:
        """
        Decorator wrapping an async function in a child span.

        Usage:
            @tracing.trace_function("billing.monthly")
            async def run(): ...
        """
        def decorator(func: Callable) -> Callable:
            @functools.wraps(func)
            async def wrapper(*args: Any, **kwargs: Any) -> Any:
                span_id = self.start_span(name or func.__name__)
                try:
                    result = await func(*args, **kwargs)
                except Exception as exc:
                    await self.end_span(span_id, {"status": "error"}, error=str(exc))
                    raise
                await self.end_span(span_id, {"status": "success"})
                return result

            return wrapper
        return decorator
