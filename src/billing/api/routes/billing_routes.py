"""
Billing Routes

Plans are public; everything else is scoped to the resolved tenant.
"""
from __future__ import annotations

from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from src.billing.api.schemas import (
    InvoiceListResponse,
    InvoiceResponse,
    PaymentMethodListResponse,
    PaymentMethodResponse,
    PlanListResponse,
    SubscriptionResponse,
)
from src.billing.application.services.billing_service import PlanCatalogService, TenantBillingService
from src.billing.domain.entities.plan import PlanType
from src.dependencies import get_plan_catalog_service, get_tenant_billing_service
from src.tenancy.api.dependencies import get_tenant_context, require_tenant_permission
from src.tenancy.application.services.tenant_context_service import TenantContext

router = APIRouter(prefix="/api/v1/billing", tags=["Billing"])

Ctx = Annotated[TenantContext, Depends(get_tenant_context)]
Service = Annotated[TenantBillingService, Depends(get_tenant_billing_service)]


@router.get("/plans", response_model=PlanListResponse, summary="List public plans")
async def list_plans(
    service: Annotated[PlanCatalogService, Depends(get_plan_catalog_service)],
    type: Optional[PlanType] = Query(None, description="personal or organization"),
):
    return {"data": await service.list_public(type)}


@router.get("/subscription", response_model=SubscriptionResponse, summary="Current subscription")
async def current_subscription(ctx: Ctx, service: Service):
    return await service.current_subscription(ctx)


@router.get("/invoices", response_model=InvoiceListResponse, summary="List invoices")
async def list_invoices(
    ctx: Ctx,
    service: Service,
    page: int = Query(1, ge=1),
    per_page: int = Query(15, ge=1, le=100),
):
    result = await service.list_invoices(ctx, page=page, per_page=per_page)
    return {"data": result.items, "meta": result.meta()}


@router.get("/invoices/{invoice_id}", response_model=InvoiceResponse, summary="Get invoice")
async def show_invoice(invoice_id: UUID, ctx: Ctx, service: Service):
    return await service.get_invoice(ctx, invoice_id)


@router.get("/payment-methods", response_model=PaymentMethodListResponse, summary="List payment methods")
async def list_payment_methods(ctx: Ctx, service: Service):
    return {"data": await service.list_payment_methods(ctx)}


@router.post(
    "/payment-methods/{method_id}/default",
    response_model=PaymentMethodResponse,
    summary="Set default payment method",
    dependencies=[Depends(require_tenant_permission("tenant.billing.manage_payment_methods"))],
)
async def set_default_payment_method(method_id: UUID, ctx: Ctx, service: Service):
    return await service.set_default_payment_method(ctx, method_id)
