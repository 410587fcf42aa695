"""
Subscription lifecycle jobs: monthly invoicing, expiry, quota resets
and agent add-on renewals.
"""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from src.billing.application.jobs.base import JobResult, logger, run_each
from src.billing.domain.entities.agent_subscription import AgentSubscription
from src.billing.domain.entities.invoice import Invoice, InvoiceLineItem, LineItemType
from src.billing.domain.entities.subscription import Subscription
from src.billing.domain.repositories.agent_subscription_repository import AgentSubscriptionRepository
from src.billing.domain.repositories.invoice_repository import InvoiceRepository
from src.billing.domain.repositories.plan_repository import PlanRepository
from src.billing.domain.repositories.subscription_repository import SubscriptionRepository
from src.shared.clock import month_bounds, utcnow
from src.shared.infrastructure.database.unit_of_work import IUnitOfWork


def _describe(sub: Subscription):
    return {"subscription_id": str(sub.id), "tenant_id": sub.tenant_id}


class ProcessMonthlyBillingJob:
    """Invoice every active subscription due for renewal for one calendar month."""

    name = "process_monthly_billing"

    def __init__(
        self,
        *,
        subscriptions: SubscriptionRepository,
        plans: PlanRepository,
        invoices: InvoiceRepository,
        agent_subscriptions: AgentSubscriptionRepository,
        uow: IUnitOfWork,
        due_days: int = 14,
    ) -> None:
        self._subscriptions = subscriptions
        self._plans = plans
        self._invoices = invoices
        self._agent_subscriptions = agent_subscriptions
        self._uow = uow
        self._due_days = due_days

    async def run(self, year: Optional[int] = None, month: Optional[int] = None, *, now: Optional[datetime] = None) -> JobResult:
        now = now or utcnow()
        year = year or now.year
        month = month or now.month
        period_start, period_end = month_bounds(year, month)
        due = await self._subscriptions.due_for_billing(now)
        logger.info("Monthly billing period", year=year, month=month, subscriptions=len(due))

        async def _bill(sub: Subscription) -> bool:
            await self._bill_one(sub, period_start, period_end, now)
            return True

        return await run_each(self.name, due, _bill, describe=_describe)

    async def _bill_one(self, sub: Subscription, period_start: datetime, period_end: datetime, now: datetime) -> Invoice:
        plan = await self._plans.get(sub.plan_id)
        if plan is None:
            raise LookupError(f"plan {sub.plan_id} not found")

        invoice = Invoice(
            tenant_id=sub.tenant_id,
            subscription_id=sub.id,
            period_start=period_start,
            period_end=period_end,
            due_date=now + timedelta(days=self._due_days),
        )
        invoice.add_line_item(
            InvoiceLineItem.of(
                LineItemType.BASE_PLAN,
                f"{plan.display_name} subscription",
                1,
                plan.monthly_equivalent_price(sub.billing_cycle),
                plan_id=str(plan.id),
            )
        )
        for addon in await self._agent_subscriptions.active_for_tenant(sub.tenant_id):
            invoice.add_line_item(
                InvoiceLineItem.of(
                    LineItemType.AGENT_ADDON,
                    f"Agent add-on: {addon.agent_name or addon.agent_id}",
                    1,
                    addon.monthly_price,
                    agent_id=str(addon.agent_id),
                )
            )
        overage = sub.overage_executions
        if overage > 0 and plan.overage_price_per_execution:
            invoice.add_line_item(
                InvoiceLineItem.of(
                    LineItemType.USAGE_OVERAGE,
                    f"Usage overage: {overage} executions",
                    overage,
                    plan.overage_price_per_execution,
                )
            )
        invoice.recalculate_total()
        sub.advance_period(period_start, period_end)

        async with self._uow:
            invoice = await self._invoices.add(invoice)
            await self._subscriptions.update(sub)
            await self._uow.commit()

        logger.info(
            "Invoice created",
            invoice_id=str(invoice.id),
            invoice_number=invoice.invoice_number,
            tenant_id=sub.tenant_id,
            total=str(invoice.total),
        )
        return invoice


class HandleExpiredSubscriptionsJob:
    name = "handle_expired_subscriptions"

    def __init__(
        self,
        *,
        subscriptions: SubscriptionRepository,
        agent_subscriptions: AgentSubscriptionRepository,
        uow: IUnitOfWork,
    ) -> None:
        self._subscriptions = subscriptions
        self._agent_subscriptions = agent_subscriptions
        self._uow = uow

    async def run(self, *, now: Optional[datetime] = None) -> JobResult:
        now = now or utcnow()

        async def _expire(sub: Subscription) -> bool:
            logger.info("Deactivating expired subscription", **_describe(sub))
            sub.cancel(now=now)
            async with self._uow:
                await self._subscriptions.update(sub)
                for addon in await self._agent_subscriptions.active_for_tenant(sub.tenant_id):
                    addon.cancel()
                    await self._agent_subscriptions.update(addon)
                await self._uow.commit()
            return True

        return await run_each(self.name, await self._subscriptions.expired_without_renewal(now), _expire, describe=_describe)


class ResetUsageQuotasJob:
    name = "reset_usage_quotas"

    def __init__(self, *, subscriptions: SubscriptionRepository, uow: IUnitOfWork) -> None:
        self._subscriptions = subscriptions
        self._uow = uow

    async def run(self) -> JobResult:
        async def _reset(sub: Subscription) -> bool:
            previous = sub.reset_usage()
            async with self._uow:
                await self._subscriptions.update(sub)
                await self._uow.commit()
            logger.info("Usage quota reset", previous_usage=previous, **_describe(sub))
            return True

        return await run_each(self.name, await self._subscriptions.with_usage(), _reset, describe=_describe)


class RenewAgentSubscriptionsJob:
    name = "renew_agent_subscriptions"

    def __init__(self, *, agent_subscriptions: AgentSubscriptionRepository, uow: IUnitOfWork) -> None:
        self._agent_subscriptions = agent_subscriptions
        self._uow = uow

    async def run(self, *, now: Optional[datetime] = None) -> JobResult:
        now = now or utcnow()

        async def _renew(addon: AgentSubscription) -> bool:
            next_date = addon.renew()
            async with self._uow:
                await self._agent_subscriptions.update(addon)
                await self._uow.commit()
            logger.info(
                "Agent subscription renewed",
                agent_subscription_id=str(addon.id),
                tenant_id=addon.tenant_id,
                next_billing_date=next_date.isoformat(),
            )
            return True

        return await run_each(
            self.name,
            await self._agent_subscriptions.due_for_renewal(now),
            _renew,
            describe=lambda a: {"agent_subscription_id": str(a.id), "tenant_id": a.tenant_id},
        )
