from __future__ import annotations

import time

from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from src.shared.logging import bind_request_context, clear_request_context, get_logger, set_correlation_id

logger = get_logger("http")

CORRELATION_HEADER = "X-Correlation-ID"


class CorrelationIdMiddleware:
    """
    Outermost application middleware.

    Reuses an incoming ``X-Correlation-ID`` or mints one, stores it on
    ``request.state.correlation_id`` for error bodies, echoes it on the
    response and logs one ``http_request`` line per request.
    """

    def __init__(self, app: ASGIApp, header_name: str = CORRELATION_HEADER) -> None:
        self.app = app
        self.header_name = header_name

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        correlation_id = set_correlation_id(Headers(scope=scope).get(self.header_name))
        scope.setdefault("state", {})["correlation_id"] = correlation_id
        client = scope.get("client")
        bind_request_context(method=scope["method"], path=scope["path"], client_ip=client[0] if client else None)
        started = time.perf_counter()

        async def send_with_header(message: Message) -> None:
            if message["type"] == "http.response.start":
                MutableHeaders(scope=message)[self.header_name] = correlation_id
                logger.info(
                    "http_request",
                    status=message["status"],
                    duration_ms=round((time.perf_counter() - started) * 1000, 2),
                )
            await send(message)

        try:
            await self.app(scope, receive, send_with_header)
        finally:
            clear_request_context()
