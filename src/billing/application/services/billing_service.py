from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from src.billing.application.dtos import InvoiceDTO, PaymentMethodDTO, PlanDTO, SubscriptionDTO
from src.billing.domain.entities.plan import PlanType
from src.billing.domain.repositories.invoice_repository import InvoiceRepository
from src.billing.domain.repositories.payment_method_repository import PaymentMethodRepository
from src.billing.domain.repositories.plan_repository import PlanRepository
from src.billing.domain.repositories.subscription_repository import SubscriptionRepository
from src.shared.domain.activity import ActivityRecorder
from src.shared.exceptions import NotFoundError
from src.shared.infrastructure.database.unit_of_work import IUnitOfWork
from src.shared.pagination import Page
from src.tenancy.application.services.tenant_context_service import TenantContext


class PlanCatalogService:
    def __init__(self, plans: PlanRepository) -> None:
        self._plans = plans

    async def list_public(self, plan_type: Optional[PlanType] = None) -> List[PlanDTO]:
        return [PlanDTO.from_entity(p) for p in await self._plans.list_public(plan_type=plan_type)]


class TenantBillingService:
    """Tenant-facing read side of billing plus payment method defaults."""

    def __init__(
        self,
        plans: PlanRepository,
        subscriptions: SubscriptionRepository,
        invoices: InvoiceRepository,
        payment_methods: PaymentMethodRepository,
        uow: IUnitOfWork,
        activity: ActivityRecorder,
    ) -> None:
        self._plans = plans
        self._subscriptions = subscriptions
        self._invoices = invoices
        self._payment_methods = payment_methods
        self._uow = uow
        self._activity = activity

    async def current_subscription(self, ctx: TenantContext) -> SubscriptionDTO:
        sub = await self._subscriptions.current_for_tenant(ctx.tenant_id)
        if sub is None:
            raise NotFoundError.from_code("subscription_not_found")
        return SubscriptionDTO.from_entity(sub, await self._plans.get(sub.plan_id))

    async def list_invoices(self, ctx: TenantContext, *, page: int = 1, per_page: int = 15) -> Page[InvoiceDTO]:
        result = await self._invoices.list_for_tenant(ctx.tenant_id, page=page, per_page=per_page)
        return result.map(InvoiceDTO.from_entity)

    async def get_invoice(self, ctx: TenantContext, invoice_id: UUID) -> InvoiceDTO:
        invoice = await self._invoices.get(ctx.tenant_id, invoice_id)
        if invoice is None:
            raise NotFoundError.from_code("invoice_not_found")
        return InvoiceDTO.from_entity(invoice)

    async def list_payment_methods(self, ctx: TenantContext) -> List[PaymentMethodDTO]:
        return [PaymentMethodDTO.from_entity(m) for m in await self._payment_methods.list_for_tenant(ctx.tenant_id)]

    async def set_default_payment_method(self, ctx: TenantContext, method_id: UUID) -> PaymentMethodDTO:
        method = await self._payment_methods.get(ctx.tenant_id, method_id)
        if method is None:
            raise NotFoundError.from_code("payment_method_not_found")
        async with self._uow:
            await self._payment_methods.set_default(ctx.tenant_id, method.id)
            await self._activity.record(
                "Default payment method changed",
                subject_type="payment_method",
                subject_id=method.id,
                causer_id=ctx.user_id,
                properties={"tenant_id": ctx.tenant_id},
            )
            await self._uow.commit()
        method.is_default = True
        return PaymentMethodDTO.from_entity(method)
