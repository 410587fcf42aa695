from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from src.billing.application.services.billing_service import PlanCatalogService, TenantBillingService
from src.billing.domain.entities.invoice import Invoice
from src.billing.domain.entities.payment_method import PaymentMethod
from src.billing.domain.entities.plan import PlanTier, PlanType, SubscriptionPlan
from src.billing.domain.entities.subscription import Subscription, SubscriptionStatus
from src.shared.exceptions import NotFoundError
from src.tenancy.application.services.tenant_context_service import TenantContext
from tests.fakes import (
    FakeInvoiceRepository,
    FakePaymentMethodRepository,
    FakePlanRepository,
    FakeSubscriptionRepository,
)

NOW = datetime(2025, 5, 1, tzinfo=timezone.utc)


@pytest.fixture
def ctx(world):
    return TenantContext(tenant=world.tenant, user_id="owner-1", all_permissions=True)


def _service(world, *, plans=None, subscriptions=None, invoices=None, methods=None):
    return TenantBillingService(
        plans or FakePlanRepository(),
        subscriptions or FakeSubscriptionRepository(),
        invoices or FakeInvoiceRepository(),
        methods or FakePaymentMethodRepository(),
        world.uow,
        world.activity,
    )


async def test_public_catalog_hides_archived_plans_and_filters_type():
    plans = FakePlanRepository(
        SubscriptionPlan(name="Solo", type=PlanType.PERSONAL, display_order=1),
        SubscriptionPlan(name="Team", tier=PlanTier.TEAM, price_monthly=Decimal("99"), display_order=2),
        SubscriptionPlan(name="Legacy", is_archived=True),
    )
    catalog = PlanCatalogService(plans)

    assert [p.name for p in await catalog.list_public()] == ["Solo", "Team"]
    assert [p.name for p in await catalog.list_public(PlanType.ORGANIZATION)] == ["Team"]


async def test_current_subscription_includes_plan(world, ctx):
    plan = SubscriptionPlan(name="Pro", tier=PlanTier.PRO)
    sub = Subscription(tenant_id="acme", plan_id=plan.id, status=SubscriptionStatus.TRIALING)
    service = _service(world, plans=FakePlanRepository(plan), subscriptions=FakeSubscriptionRepository(sub))

    dto = await service.current_subscription(ctx)

    assert dto.status == "trialing"
    assert dto.plan.name == "Pro"


async def test_no_current_subscription(world, ctx):
    with pytest.raises(NotFoundError) as exc:
        await _service(world).current_subscription(ctx)
    assert exc.value.code == "subscription_not_found"


async def test_invoices_are_tenant_scoped(world, ctx):
    mine = Invoice(tenant_id="acme", period_start=NOW, period_end=NOW)
    theirs = Invoice(tenant_id="globex", period_start=NOW, period_end=NOW)
    service = _service(world, invoices=FakeInvoiceRepository(mine, theirs))

    page = await service.list_invoices(ctx)
    assert page.total == 1
    assert page.items[0].id == mine.id

    with pytest.raises(NotFoundError):
        await service.get_invoice(ctx, theirs.id)


async def test_set_default_payment_method(world, ctx):
    first = PaymentMethod(tenant_id="acme", is_default=True)
    second = PaymentMethod(tenant_id="acme")
    methods = FakePaymentMethodRepository(first, second)
    service = _service(world, methods=methods)

    dto = await service.set_default_payment_method(ctx, second.id)

    assert dto.is_default
    assert not first.is_default
    assert world.activity_log.descriptions() == ["Default payment method changed"]

    with pytest.raises(NotFoundError):
        await service.set_default_payment_method(ctx, uuid4())
