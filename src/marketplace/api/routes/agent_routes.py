"""
Agent Marketplace Routes

Static paths (categories, runs, callback) are declared before
``/{agent_id}`` so they are not captured by it.
"""
from __future__ import annotations

from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from src.dependencies import get_agent_catalog_service, get_agent_run_service
from src.marketplace.api.schemas import (
    AgentCallbackRequest,
    AgentCallbackResponse,
    AgentListResponse,
    AgentResponse,
    AgentRunResponse,
    CategoryListResponse,
    RunAcceptedResponse,
    RunAgentRequest,
)
from src.marketplace.application.services.agent_catalog_service import AgentCatalogService
from src.marketplace.application.services.agent_run_service import AgentRunService
from src.tenancy.api.dependencies import get_tenant_context, require_tenant_permission
from src.tenancy.application.services.tenant_context_service import TenantContext

router = APIRouter(prefix="/api/v1/agents", tags=["Marketplace:Agents"])

Catalog = Annotated[AgentCatalogService, Depends(get_agent_catalog_service)]
Runs = Annotated[AgentRunService, Depends(get_agent_run_service)]


@router.get("", response_model=AgentListResponse, summary="Browse marketplace agents")
async def list_agents(
    catalog: Catalog,
    category: Optional[str] = Query(None, description="Category slug or id"),
    search: Optional[str] = Query(None, max_length=255),
    page: int = Query(1, ge=1),
    per_page: int = Query(12, ge=1, le=100),
):
    result = await catalog.list_agents(category=category, search=search, page=page, per_page=per_page)
    return {"data": result.items, "meta": result.meta()}


@router.get("/categories", response_model=CategoryListResponse, summary="List agent categories")
async def list_categories(catalog: Catalog):
    return {"data": await catalog.list_categories()}


@router.get("/runs/{run_id}", response_model=AgentRunResponse, summary="Agent run status")
async def run_status(
    run_id: UUID,
    ctx: Annotated[TenantContext, Depends(get_tenant_context)],
    runs: Runs,
):
    return await runs.status(ctx, run_id)


@router.post("/callback", response_model=AgentCallbackResponse, summary="Agent result callback")
async def agent_callback(body: AgentCallbackRequest, runs: Runs):
    """
    Called by agent runtimes, not by users; authenticated by the callback
    endpoint secret instead of a bearer token.
    """
    return await runs.handle_callback(
        run_id=body.run_id,
        status=body.status,
        secret=body.secret,
        output=body.output,
        error=body.error,
    )


@router.get("/{agent_id}", response_model=AgentResponse, summary="Get agent")
async def show_agent(agent_id: UUID, catalog: Catalog):
    return await catalog.get_agent(agent_id)


@router.post(
    "/{agent_id}/run",
    response_model=RunAcceptedResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Run agent asynchronously",
    dependencies=[Depends(require_tenant_permission("tenant.agents.run"))],
)
async def run_agent(
    agent_id: UUID,
    body: RunAgentRequest,
    ctx: Annotated[TenantContext, Depends(get_tenant_context)],
    runs: Runs,
):
    return await runs.run(ctx, agent_id, body.input)
