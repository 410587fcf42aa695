from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request


class AddTenantHeaderMiddleware(BaseHTTPMiddleware):
    """Echo the resolved tenant back as ``X-Tenant-Id``."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        tenant_id = getattr(request.state, "tenant_id", None)
        if tenant_id:
            response.headers["X-Tenant-Id"] = str(tenant_id)
        return response
