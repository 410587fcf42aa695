from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.types import ASGIApp

from src.monitoring.application.query_tracking import begin_request, finish_request
from src.monitoring.application.tracing_service import TracingService


class DistributedTracingMiddleware(BaseHTTPMiddleware):
    """
    One trace per request.

    Continues an incoming ``traceparent``; the ids are echoed back as
    ``X-Trace-ID`` / ``X-Span-ID``.
    """

    def __init__(self, app: ASGIApp, tracing: TracingService) -> None:
        super().__init__(app)
        self.tracing = tracing

    async def dispatch(self, request: Request, call_next):
        claims = getattr(request.state, "user_claims", None) or {}
        trace_id = self.tracing.start_trace(
            f"{request.method} {request.url.path}",
            {
                "http.method": request.method,
                "http.url": str(request.url),
                "user_id": claims.get("sub"),
                "tenant_id": claims.get("tenant_id"),
                "client_ip": request.client.host if request.client else None,
            },
            parent_traceparent=request.headers.get("traceparent"),
        )
        span_id = self.tracing.span_id
        request.state.trace_id = trace_id
        try:
            try:
                response = await call_next(request)
            except Exception as exc:
                self.tracing.add_tags(span_id, {"error": True, "error.type": type(exc).__name__})
                await self.tracing.end_span(span_id, error=str(exc))
                raise

            response.headers["X-Trace-ID"] = trace_id
            response.headers["X-Span-ID"] = span_id
            await self.tracing.end_span(
                span_id,
                {"http.status_code": response.status_code, "success": response.status_code < 400},
            )
            return response
        finally:
            self.tracing.clear()


class QueryCountMiddleware(BaseHTTPMiddleware):
    """Opens the per-request query counter read by the query monitor."""

    def __init__(self, app: ASGIApp, max_queries: int = 50, log_totals: bool = True) -> None:
        super().__init__(app)
        self.max_queries = max_queries
        self.log_totals = log_totals

    async def dispatch(self, request: Request, call_next):
        token = begin_request()
        try:
            return await call_next(request)
        finally:
            finish_request(token, max_queries=self.max_queries, log_totals=self.log_totals)
