"""
Tenant context dependencies.

Every tenant scoped route depends on ``get_tenant_context``; FastAPI caches
it per request so permission guards share the same resolved context.
"""
from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header, Request

from src.dependencies import get_tenant_resolver
from src.shared.auth import CurrentUser, get_optional_user
from src.shared.exceptions import ForbiddenError
from src.shared.logging import bind_request_context, get_logger
from src.tenancy.application.services.tenant_context_service import TenantContext, TenantContextResolver

logger = get_logger(__name__)


async def get_tenant_context(
    request: Request,
    user: Optional[CurrentUser] = Depends(get_optional_user),
    resolver: TenantContextResolver = Depends(get_tenant_resolver),
    x_tenant_id: Optional[str] = Header(None, alias="X-Tenant-Id"),
    x_impersonation_token: Optional[str] = Header(None, alias="X-Impersonation-Token"),
) -> TenantContext:
    ctx = await resolver.resolve(
        user,
        host=request.headers.get("host"),
        explicit_tenant_id=x_tenant_id,
        impersonation_token=x_impersonation_token,
    )
    request.state.tenant_id = ctx.tenant_id
    bind_request_context(
        tenant_id=ctx.tenant_id,
        impersonation_log_id=str(ctx.impersonation_log_id) if ctx.impersonation_mode else None,
    )
    return ctx


def require_tenant_permission(permission: str):
    """
    Dependency generator enforcing a tenant permission inside the resolved tenant.

    Usage:
        @router.post("", dependencies=[Depends(require_tenant_permission("tenant.roles.create"))])
    """
    async def _enforce(ctx: TenantContext = Depends(get_tenant_context)) -> TenantContext:
        if not ctx.has_permission(permission):
            logger.warning("Tenant permission denied", user_id=ctx.user_id, permission=permission)
            raise ForbiddenError(
                f"Unauthorized: Missing {permission} permission",
                details={"required_permission": permission},
            )
        return ctx

    return _enforce
