from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from src.billing.application.jobs import (
    CleanupOldInvoicesJob,
    HandleExpiredSubscriptionsJob,
    ProcessMonthlyBillingJob,
    RenewAgentSubscriptionsJob,
    ResetUsageQuotasJob,
    RetryFailedPaymentsJob,
    SendOverdueInvoiceRemindersJob,
)
from src.billing.domain.entities.agent_subscription import AgentSubscription, AgentSubscriptionStatus
from src.billing.domain.entities.invoice import Invoice, InvoiceStatus, LineItemType
from src.billing.domain.entities.plan import PlanTier, SubscriptionPlan
from src.billing.domain.entities.subscription import Subscription, SubscriptionStatus
from tests.fakes import (
    FakeAgentSubscriptionRepository,
    FakeInvoiceRepository,
    FakePlanRepository,
    FakeSubscriptionRepository,
    FakeUnitOfWork,
)

NOW = datetime(2025, 1, 31, 2, 0, tzinfo=timezone.utc)


@pytest.fixture
def plan():
    return SubscriptionPlan(
        name="Pro",
        tier=PlanTier.PRO,
        price_monthly=Decimal("29.00"),
        execution_quota=100,
        overage_price_per_execution=Decimal("0.05"),
    )


def _active_sub(plan, **kw):
    return Subscription(
        tenant_id=kw.pop("tenant_id", "acme"),
        plan_id=plan.id,
        status=SubscriptionStatus.ACTIVE,
        next_billing_date=NOW - timedelta(hours=1),
        execution_quota=plan.execution_quota,
        **kw,
    )


def _invoice(**kw):
    return Invoice(tenant_id="acme", period_start=NOW, period_end=NOW, **kw)


async def test_monthly_billing_invoices_plan_addons_and_overage(plan):
    sub = _active_sub(plan, executions_used=130)
    invoices = FakeInvoiceRepository()
    addons = FakeAgentSubscriptionRepository(
        AgentSubscription(tenant_id="acme", agent_id=uuid4(), monthly_price=Decimal("9.99"), agent_name="Summarizer")
    )
    uow = FakeUnitOfWork()
    job = ProcessMonthlyBillingJob(
        subscriptions=FakeSubscriptionRepository(sub),
        plans=FakePlanRepository(plan),
        invoices=invoices,
        agent_subscriptions=addons,
        uow=uow,
    )

    result = await job.run(2025, 1, now=NOW)

    assert (result.success, result.failed, result.skipped) == (1, 0, 0)
    invoice = invoices.rows[0]
    assert [i.type for i in invoice.line_items] == [
        LineItemType.BASE_PLAN,
        LineItemType.AGENT_ADDON,
        LineItemType.USAGE_OVERAGE,
    ]
    assert invoice.line_items[1].description == "Agent add-on: Summarizer"
    assert invoice.line_items[2].quantity == 30
    assert invoice.total == Decimal("40.49")
    assert invoice.due_date == NOW + timedelta(days=14)
    assert invoice.period_start == datetime(2025, 1, 1, tzinfo=timezone.utc)
    assert sub.next_billing_date == datetime(2025, 2, 28, 23, 59, 59, 999999, tzinfo=timezone.utc)
    assert uow.commits == 1


async def test_monthly_billing_isolates_failing_subscription(plan):
    orphan = Subscription(
        tenant_id="globex",
        plan_id=uuid4(),
        status=SubscriptionStatus.ACTIVE,
        next_billing_date=NOW - timedelta(days=1),
    )
    invoices = FakeInvoiceRepository()
    job = ProcessMonthlyBillingJob(
        subscriptions=FakeSubscriptionRepository(orphan, _active_sub(plan)),
        plans=FakePlanRepository(plan),
        invoices=invoices,
        agent_subscriptions=FakeAgentSubscriptionRepository(),
        uow=FakeUnitOfWork(),
    )

    result = await job.run(now=NOW)

    assert (result.success, result.failed) == (1, 1)
    assert len(invoices.rows) == 1
    assert invoices.rows[0].total == Decimal("29.00")


async def test_subscriptions_not_yet_due_are_not_billed(plan):
    later = _active_sub(plan)
    later.next_billing_date = NOW + timedelta(days=3)
    invoices = FakeInvoiceRepository()
    job = ProcessMonthlyBillingJob(
        subscriptions=FakeSubscriptionRepository(later),
        plans=FakePlanRepository(plan),
        invoices=invoices,
        agent_subscriptions=FakeAgentSubscriptionRepository(),
        uow=FakeUnitOfWork(),
    )
    result = await job.run(now=NOW)
    assert result.success == 0
    assert invoices.rows == []


async def test_expired_subscriptions_are_canceled_with_their_addons(plan):
    expired = _active_sub(plan, auto_renew=False, current_period_end=NOW - timedelta(days=1))
    renewing = _active_sub(plan, tenant_id="globex", current_period_end=NOW - timedelta(days=1))
    addon = AgentSubscription(tenant_id="acme", agent_id=uuid4())
    job = HandleExpiredSubscriptionsJob(
        subscriptions=FakeSubscriptionRepository(expired, renewing),
        agent_subscriptions=FakeAgentSubscriptionRepository(addon),
        uow=FakeUnitOfWork(),
    )

    result = await job.run(now=NOW)

    assert result.success == 1
    assert expired.status == SubscriptionStatus.CANCELED
    assert renewing.status == SubscriptionStatus.ACTIVE
    assert addon.status == AgentSubscriptionStatus.CANCELLED


async def test_reset_usage_quotas(plan):
    used = _active_sub(plan, executions_used=42)
    idle = _active_sub(plan)
    subs = FakeSubscriptionRepository(used, idle)

    result = await ResetUsageQuotasJob(subscriptions=subs, uow=FakeUnitOfWork()).run()

    assert result.success == 1
    assert used.executions_used == 0
    assert subs.updated == [used]


async def test_renew_agent_subscriptions():
    due = AgentSubscription(tenant_id="acme", agent_id=uuid4(), next_billing_date=NOW - timedelta(days=1))
    manual = AgentSubscription(
        tenant_id="acme", agent_id=uuid4(), next_billing_date=NOW - timedelta(days=1), auto_renew=False
    )
    job = RenewAgentSubscriptionsJob(
        agent_subscriptions=FakeAgentSubscriptionRepository(due, manual), uow=FakeUnitOfWork()
    )

    result = await job.run(now=NOW)

    assert result.success == 1
    assert due.next_billing_date == datetime(2025, 2, 28, 2, 0, tzinfo=timezone.utc)


async def test_failed_payments_are_retried_on_schedule_days():
    on_day_three = _invoice(status=InvoiceStatus.FAILED, created_at=NOW - timedelta(days=3))
    on_day_two = _invoice(status=InvoiceStatus.FAILED, created_at=NOW - timedelta(days=2))
    invoices = FakeInvoiceRepository(on_day_three, on_day_two)

    result = await RetryFailedPaymentsJob(invoices=invoices, uow=FakeUnitOfWork()).run(now=NOW)

    assert (result.success, result.skipped) == (1, 1)
    assert on_day_three.retry_count == 1
    assert on_day_three.status == InvoiceStatus.PENDING
    assert on_day_two.status == InvoiceStatus.FAILED


async def test_overdue_reminders_follow_reminder_days():
    week_late = _invoice(due_date=NOW - timedelta(days=7))
    five_days_late = _invoice(due_date=NOW - timedelta(days=5))
    paid = _invoice(due_date=NOW - timedelta(days=7), status=InvoiceStatus.PAID)
    invoices = FakeInvoiceRepository(week_late, five_days_late, paid)

    result = await SendOverdueInvoiceRemindersJob(invoices=invoices, uow=FakeUnitOfWork()).run(now=NOW)

    assert (result.success, result.skipped) == (1, 1)
    assert week_late.last_reminder_at == NOW
    assert five_days_late.last_reminder_at is None


async def test_cleanup_only_reports_closed_invoices_past_retention():
    old_paid = _invoice(status=InvoiceStatus.PAID, created_at=NOW - timedelta(days=800))
    old_pending = _invoice(created_at=NOW - timedelta(days=800))
    recent_paid = _invoice(status=InvoiceStatus.PAID, created_at=NOW - timedelta(days=30))
    invoices = FakeInvoiceRepository(old_paid, old_pending, recent_paid)

    result = await CleanupOldInvoicesJob(invoices=invoices, retention_years=2).run(now=NOW)

    assert result.success == 1
    assert len(invoices.rows) == 3
