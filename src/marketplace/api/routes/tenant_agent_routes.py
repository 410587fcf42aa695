"""
Tenant Agent Installation Routes
"""
from __future__ import annotations

from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from src.dependencies import get_tenant_agent_service
from src.marketplace.api.schemas import InstallAgentRequest, TenantAgentListResponse, TenantAgentResponse
from src.marketplace.application.services.tenant_agent_service import TenantAgentService
from src.tenancy.api.dependencies import get_tenant_context, require_tenant_permission
from src.tenancy.application.services.tenant_context_service import TenantContext

router = APIRouter(prefix="/api/v1/tenant/agents", tags=["Marketplace:Installations"])

Ctx = Annotated[TenantContext, Depends(get_tenant_context)]
Service = Annotated[TenantAgentService, Depends(get_tenant_agent_service)]


@router.get("", response_model=TenantAgentListResponse, summary="Installed agents")
async def list_installed(ctx: Ctx, service: Service):
    return {"data": await service.list(ctx)}


@router.post(
    "/{agent_id}",
    response_model=TenantAgentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Install agent",
    dependencies=[Depends(require_tenant_permission("tenant.agents.install"))],
)
async def install_agent(
    agent_id: UUID,
    ctx: Ctx,
    service: Service,
    body: Optional[InstallAgentRequest] = None,
):
    return await service.install(ctx, agent_id, body.configuration if body else None)


@router.delete(
    "/{agent_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Uninstall agent",
    dependencies=[Depends(require_tenant_permission("tenant.agents.uninstall"))],
)
async def uninstall_agent(agent_id: UUID, ctx: Ctx, service: Service) -> Response:
    await service.uninstall(ctx, agent_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
