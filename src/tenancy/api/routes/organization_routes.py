"""
Organization Routes

Two surfaces share the service: the collection under ``/organizations`` and the
single "current organization" under ``/organization``.
"""
from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from src.dependencies import get_organization_service
from src.tenancy.api.dependencies import get_tenant_context, require_tenant_permission
from src.tenancy.api.schemas import (
    CreateOrganizationRequest,
    OrganizationListResponse,
    OrganizationResponse,
    UpdateOrganizationRequest,
)
from src.tenancy.application.services.organization_service import OrganizationService
from src.tenancy.application.services.tenant_context_service import TenantContext

router = APIRouter(prefix="/api/v1", tags=["Tenancy:Organizations"])

Ctx = Annotated[TenantContext, Depends(get_tenant_context)]
Service = Annotated[OrganizationService, Depends(get_organization_service)]
_can_edit = [Depends(require_tenant_permission("tenant.organizations.edit"))]


@router.get("/organizations", response_model=OrganizationListResponse, summary="List organizations")
async def list_organizations(
    ctx: Ctx,
    service: Service,
    page: int = Query(1, ge=1),
    per_page: int = Query(15, ge=1, le=100),
):
    result = await service.list(ctx, page=page, per_page=per_page)
    return {"data": result.items, "meta": result.meta()}


@router.post(
    "/organizations",
    response_model=OrganizationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create organization",
    dependencies=_can_edit,
)
async def create_organization(body: CreateOrganizationRequest, ctx: Ctx, service: Service):
    return await service.create(ctx, body.model_dump(exclude_none=True))


@router.get("/organizations/{organization_id}", response_model=OrganizationResponse, summary="Get organization")
async def show_organization(organization_id: UUID, ctx: Ctx, service: Service):
    return await service.get(ctx, organization_id)


@router.patch(
    "/organizations/{organization_id}",
    response_model=OrganizationResponse,
    summary="Update organization",
    dependencies=_can_edit,
)
async def update_organization(
    organization_id: UUID,
    body: UpdateOrganizationRequest,
    ctx: Ctx,
    service: Service,
):
    return await service.update(ctx, organization_id, body.model_dump(exclude_unset=True))


@router.delete(
    "/organizations/{organization_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete organization",
    dependencies=_can_edit,
)
async def delete_organization(organization_id: UUID, ctx: Ctx, service: Service) -> Response:
    await service.delete(ctx, organization_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/organizations/{organization_id}/switch",
    response_model=OrganizationResponse,
    summary="Switch current organization",
)
async def switch_organization(organization_id: UUID, ctx: Ctx, service: Service):
    return await service.switch(ctx, organization_id)


# ---------- current organization ----------

@router.get("/organization", response_model=OrganizationResponse, summary="Current organization")
async def show_current_organization(ctx: Ctx, service: Service):
    return await service.get_current(ctx)


@router.post(
    "/organization",
    response_model=OrganizationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create the tenant's organization",
    dependencies=_can_edit,
)
async def create_current_organization(body: CreateOrganizationRequest, ctx: Ctx, service: Service):
    return await service.create_current(ctx, body.model_dump(exclude_none=True))


@router.patch(
    "/organization",
    response_model=OrganizationResponse,
    summary="Update current organization",
    dependencies=_can_edit,
)
async def update_current_organization(body: UpdateOrganizationRequest, ctx: Ctx, service: Service):
    return await service.update_current(ctx, body.model_dump(exclude_unset=True))
