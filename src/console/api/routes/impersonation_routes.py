"""
Impersonation Routes

Starting a session needs ``support.impersonate``; listing and reading are
limited to the caller's own sessions unless they hold ``console.logs.view``.
"""
from __future__ import annotations

from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query, Request, status

from src.console.api.schemas import (
    ImpersonationEndedResponse,
    ImpersonationListResponse,
    ImpersonationResponse,
    ImpersonationStartedResponse,
    StartImpersonationRequest,
)
from src.console.application.services.impersonation_service import ImpersonationService
from src.console.domain.entities.impersonation import ImpersonationStatus
from src.dependencies import get_impersonation_service
from src.shared.auth import CurrentUser, get_current_user, require_console_permission

router = APIRouter(prefix="/api/v1/admin", tags=["Console:Impersonation"])

User = Annotated[CurrentUser, Depends(get_current_user)]
Impersonator = Annotated[CurrentUser, Depends(require_console_permission("support.impersonate"))]
Service = Annotated[ImpersonationService, Depends(get_impersonation_service)]


@router.post(
    "/tenants/{tenant_id}/impersonations/start",
    response_model=ImpersonationStartedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Start impersonating a tenant",
)
async def start_impersonation(
    tenant_id: str,
    request: Request,
    admin: Impersonator,
    service: Service,
    body: Optional[StartImpersonationRequest] = Body(None),
):
    body = body or StartImpersonationRequest()
    return await service.start(
        admin,
        tenant_id,
        reason=body.reason,
        ttl_minutes=body.ttl_minutes,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


@router.post(
    "/impersonations/{impersonation_id}/end",
    response_model=ImpersonationEndedResponse,
    summary="End an impersonation session",
)
async def end_impersonation(impersonation_id: UUID, admin: User, service: Service):
    return await service.end(admin, impersonation_id)


@router.get("/impersonations", response_model=ImpersonationListResponse, summary="List impersonation sessions")
async def list_impersonations(
    admin: User,
    service: Service,
    status_filter: Optional[ImpersonationStatus] = Query(None, alias="status"),
    tenant_id: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
):
    result = await service.index(admin, status=status_filter, tenant_id=tenant_id, page=page)
    return {
        "data": result.items,
        "meta": {"current_page": result.page, "total": result.total, "per_page": result.per_page},
    }


@router.get(
    "/impersonations/{impersonation_id}",
    response_model=ImpersonationResponse,
    summary="Get impersonation session",
)
async def show_impersonation(impersonation_id: UUID, admin: User, service: Service):
    return await service.show(admin, impersonation_id)
