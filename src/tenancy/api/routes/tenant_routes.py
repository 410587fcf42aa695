"""
Current Tenant Routes
"""
from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from src.dependencies import get_tenant_profile_service
from src.tenancy.api.dependencies import get_tenant_context, require_tenant_permission
from src.tenancy.api.schemas import TenantProfileResponse, UpdateTenantRequest
from src.tenancy.application.services.tenant_context_service import TenantContext
from src.tenancy.application.services.tenant_service import TenantProfileService

router = APIRouter(prefix="/api/v1/tenant", tags=["Tenancy:Tenant"])


@router.get("", response_model=TenantProfileResponse, summary="Current tenant")
async def show_tenant(
    ctx: Annotated[TenantContext, Depends(get_tenant_context)],
    service: Annotated[TenantProfileService, Depends(get_tenant_profile_service)],
):
    return await service.get_profile(ctx)


@router.patch(
    "",
    response_model=TenantProfileResponse,
    summary="Update current tenant",
    dependencies=[Depends(require_tenant_permission("tenant.profile.edit"))],
)
async def update_tenant(
    body: UpdateTenantRequest,
    ctx: Annotated[TenantContext, Depends(get_tenant_context)],
    service: Annotated[TenantProfileService, Depends(get_tenant_profile_service)],
):
    """Rename the tenant or change its short name (unique across tenants)."""
    return await service.update_profile(ctx, name=body.name, short_name=body.short_name)
