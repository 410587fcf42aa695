"""
Admin tenant management.

Every route here is restricted to system admins (``is_system_admin`` or the
``super_admin`` console role).
"""
from __future__ import annotations

from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from src.billing.api.schemas import SubscriptionResponse
from src.console.api.schemas import (
    AdminTenantListResponse,
    AdminTenantResponse,
    ChangeSubscriptionRequest,
    ExtendTrialRequest,
    SubscriptionChangeResponse,
    SubscriptionHistoryResponse,
    TenantStatisticsResponse,
    UpdateTenantStatusRequest,
)
from src.console.application.services.tenant_management_service import TenantManagementService
from src.console.domain.repositories.tenant_directory import TenantSearchCriteria
from src.dependencies import get_tenant_management_service
from src.shared.auth import CurrentUser, require_system_admin
from src.tenancy.domain.entities.tenant import TenantStatus, TenantType

router = APIRouter(
    prefix="/api/v1/admin/tenants",
    tags=["Console:Tenants"],
    dependencies=[Depends(require_system_admin)],
)

Admin = Annotated[CurrentUser, Depends(require_system_admin)]
Service = Annotated[TenantManagementService, Depends(get_tenant_management_service)]


@router.get("", response_model=AdminTenantListResponse, summary="List tenants")
async def list_tenants(
    service: Service,
    search: Optional[str] = Query(None),
    type: Optional[TenantType] = Query(None),
    status_filter: Optional[TenantStatus] = Query(None, alias="status"),
    plan_id: Optional[UUID] = Query(None),
    has_subscription: Optional[str] = Query(None),
    sort_by: str = Query("created_at"),
    sort_order: str = Query("desc"),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
):
    criteria = TenantSearchCriteria(
        search=search,
        type=type,
        status=status_filter,
        plan_id=plan_id,
        has_subscription=None if has_subscription is None else has_subscription == "true",
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        per_page=per_page,
    )
    result = await service.index(criteria)
    return {"data": result.items, "meta": result.meta()}


@router.get("/statistics", response_model=TenantStatisticsResponse, summary="Tenant statistics")
async def tenant_statistics(service: Service):
    return await service.statistics()


@router.get("/{tenant_id}", response_model=AdminTenantResponse, summary="Get tenant")
async def show_tenant(tenant_id: str, service: Service):
    return await service.show(tenant_id)


@router.patch("/{tenant_id}/status", response_model=AdminTenantResponse, summary="Change tenant status")
async def update_tenant_status(tenant_id: str, body: UpdateTenantStatusRequest, admin: Admin, service: Service):
    return await service.update_status(admin.user_id, tenant_id, body.status, body.reason)


@router.post(
    "/{tenant_id}/subscription",
    response_model=SubscriptionChangeResponse,
    summary="Change tenant subscription plan",
)
async def change_tenant_subscription(
    tenant_id: str,
    body: ChangeSubscriptionRequest,
    admin: Admin,
    service: Service,
):
    return await service.change_subscription(
        admin.user_id,
        tenant_id,
        plan_id=body.plan_id,
        billing_cycle=body.billing_cycle,
        starts_immediately=body.starts_immediately,
        prorate=body.prorate,
    )


@router.get(
    "/{tenant_id}/subscriptions",
    response_model=SubscriptionHistoryResponse,
    summary="Subscription history",
)
async def subscription_history(tenant_id: str, service: Service):
    return await service.history(tenant_id)


@router.post("/{tenant_id}/extend-trial", response_model=SubscriptionResponse, summary="Extend trial")
async def extend_trial(tenant_id: str, body: ExtendTrialRequest, admin: Admin, service: Service):
    return await service.extend_trial(admin.user_id, tenant_id, body.days, body.reason)


@router.delete("/{tenant_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete tenant")
async def delete_tenant(tenant_id: str, admin: Admin, service: Service) -> Response:
    await service.destroy(admin.user_id, tenant_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
