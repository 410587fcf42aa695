"""
Tenant Role Routes
"""
from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from src.dependencies import get_tenant_role_service
from src.tenancy.api.dependencies import get_tenant_context, require_tenant_permission
from src.tenancy.api.schemas import (
    CreateTenantRoleRequest,
    PermissionCatalogResponse,
    TenantRoleListResponse,
    TenantRoleResponse,
    UpdateTenantRoleRequest,
)
from src.tenancy.application.services.tenant_context_service import TenantContext
from src.tenancy.application.services.tenant_role_service import TenantRoleService

router = APIRouter(prefix="/api/v1/tenant", tags=["Tenancy:Roles"])

Ctx = Annotated[TenantContext, Depends(get_tenant_context)]
Service = Annotated[TenantRoleService, Depends(get_tenant_role_service)]


@router.get("/roles", response_model=TenantRoleListResponse, summary="List tenant roles")
async def list_roles(ctx: Ctx, service: Service):
    return {"data": await service.list(ctx)}


@router.post(
    "/roles",
    response_model=TenantRoleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create tenant role",
    dependencies=[Depends(require_tenant_permission("tenant.roles.create"))],
)
async def create_role(body: CreateTenantRoleRequest, ctx: Ctx, service: Service):
    return await service.create(ctx, body.name, body.permissions)


@router.get("/roles/{role_id}", response_model=TenantRoleResponse, summary="Get tenant role")
async def show_role(role_id: UUID, ctx: Ctx, service: Service):
    return await service.get(ctx, role_id)


@router.patch(
    "/roles/{role_id}",
    response_model=TenantRoleResponse,
    summary="Update tenant role",
    dependencies=[Depends(require_tenant_permission("tenant.roles.edit"))],
)
async def update_role(role_id: UUID, body: UpdateTenantRoleRequest, ctx: Ctx, service: Service):
    return await service.update(ctx, role_id, name=body.name, permissions=body.permissions)


@router.delete(
    "/roles/{role_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete tenant role",
    dependencies=[Depends(require_tenant_permission("tenant.roles.delete"))],
)
async def delete_role(role_id: UUID, ctx: Ctx, service: Service) -> Response:
    await service.delete(ctx, role_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/permissions", response_model=PermissionCatalogResponse, summary="Tenant permission catalog")
async def list_permissions(ctx: Ctx):
    return TenantRoleService.list_permissions()
