import re
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from src.billing.domain.entities.agent_subscription import AgentSubscription, AgentSubscriptionStatus
from src.billing.domain.entities.invoice import (
    Invoice,
    InvoiceLineItem,
    InvoiceStatus,
    LineItemType,
    generate_invoice_number,
)
from src.billing.domain.entities.plan import BillingCycle, PlanTier, SubscriptionPlan
from src.billing.domain.entities.subscription import Subscription, SubscriptionStatus

NOW = datetime(2025, 1, 31, 9, 0, tzinfo=timezone.utc)


def _plan(**kw):
    defaults = dict(name="Pro", tier=PlanTier.PRO, price_monthly=Decimal("29.00"), price_annual=Decimal("290.00"))
    defaults.update(kw)
    return SubscriptionPlan(**defaults)


def test_plan_pricing():
    plan = _plan()
    assert plan.display_name == "Pro (pro)"
    assert plan.annual_savings_percent == 17
    assert plan.monthly_equivalent_price(BillingCycle.MONTHLY) == Decimal("29.00")
    assert plan.monthly_equivalent_price(BillingCycle.ANNUAL) == Decimal("24.17")


def test_plan_without_prices_has_no_savings():
    plan = _plan(price_monthly=None, price_annual=None, tier=PlanTier.FREE)
    assert plan.is_free
    assert plan.annual_savings_percent == 0
    assert plan.monthly_equivalent_price() == Decimal("0")


def test_archived_plan_is_not_public():
    assert not _plan(is_archived=True).is_public
    assert not _plan(is_published=False).is_public
    assert _plan().is_public


def test_subscription_for_plan_with_trial():
    sub = Subscription.for_plan("acme", _plan(trial_days=14), billing_cycle=BillingCycle.MONTHLY, starts_at=NOW, now=NOW)
    assert sub.status == SubscriptionStatus.TRIALING
    assert sub.trial_ends_at == NOW + timedelta(days=14)
    # Jan 31 + 1 month clamps to Feb 28
    assert sub.current_period_end == datetime(2025, 2, 28, 9, 0, tzinfo=timezone.utc)
    assert sub.next_billing_date == sub.current_period_end


def test_subscription_for_plan_without_trial_is_active():
    sub = Subscription.for_plan("acme", _plan(trial_days=0), billing_cycle=BillingCycle.ANNUAL, starts_at=NOW, now=NOW)
    assert sub.status == SubscriptionStatus.ACTIVE
    assert sub.current_period_end == datetime(2026, 1, 31, 9, 0, tzinfo=timezone.utc)


def test_subscription_overage_and_reset():
    sub = Subscription(tenant_id="acme", plan_id=_plan().id, execution_quota=100, executions_used=130)
    assert sub.overage_executions == 30
    assert sub.reset_usage() == 130
    assert sub.overage_executions == 0


def test_extend_trial_from_existing_end():
    sub = Subscription(tenant_id="acme", plan_id=_plan().id, trial_ends_at=NOW)
    assert sub.extend_trial(7, NOW - timedelta(days=30)) == NOW + timedelta(days=7)
    assert sub.status == SubscriptionStatus.TRIALING


def test_cancel_keeps_requested_end():
    sub = Subscription(tenant_id="acme", plan_id=_plan().id)
    sub.cancel(now=NOW, ends_at=NOW + timedelta(days=10))
    assert sub.status == SubscriptionStatus.CANCELED
    assert sub.canceled_at == NOW
    assert not sub.is_current


def test_invoice_number_format():
    assert re.fullmatch(r"INV-202501-[0-9A-F]{6}", generate_invoice_number(NOW))


def test_invoice_totals():
    invoice = Invoice(tenant_id="acme", period_start=NOW, period_end=NOW)
    invoice.add_line_item(InvoiceLineItem.of(LineItemType.BASE_PLAN, "Pro", 1, Decimal("29.00")))
    invoice.add_line_item(InvoiceLineItem.of(LineItemType.USAGE_OVERAGE, "Overage", 30, Decimal("0.05")))
    assert invoice.recalculate_total() == Decimal("30.50")
    assert invoice.subtotal == Decimal("30.50")


def test_line_item_dict_roundtrip_keeps_metadata():
    item = InvoiceLineItem.of(LineItemType.AGENT_ADDON, "Agent add-on", 1, Decimal("9.99"), agent_id="a1")
    restored = InvoiceLineItem.from_dict(item.to_dict())
    assert restored == item


def test_retry_payment_moves_invoice_back_to_pending():
    invoice = Invoice(tenant_id="acme", period_start=NOW, period_end=NOW, status=InvoiceStatus.FAILED)
    assert invoice.retry_payment() == 1
    assert invoice.status == InvoiceStatus.PENDING


def test_agent_subscription_renewal():
    addon = AgentSubscription(tenant_id="acme", agent_id=_plan().id, next_billing_date=NOW)
    assert addon.is_due(NOW)
    assert addon.renew() == datetime(2025, 2, 28, 9, 0, tzinfo=timezone.utc)
    addon.cancel()
    assert addon.status == AgentSubscriptionStatus.CANCELLED
    assert not addon.auto_renew
