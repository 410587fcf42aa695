from datetime import timedelta
from decimal import Decimal

import pytest

import src.dependencies as deps
from src.billing.application.services.billing_service import PlanCatalogService, TenantBillingService
from src.billing.domain.entities.invoice import Invoice, InvoiceLineItem, LineItemType
from src.billing.domain.entities.payment_method import PaymentMethod
from src.billing.domain.entities.plan import PlanTier, PlanType, SubscriptionPlan
from src.billing.domain.entities.subscription import Subscription
from src.shared.clock import utcnow
from tests.fakes import (
    FakeInvoiceRepository,
    FakePaymentMethodRepository,
    FakePlanRepository,
    FakeSubscriptionRepository,
)


class Ledger:
    def __init__(self, app, world):
        now = utcnow()
        self.pro = SubscriptionPlan(
            name="Pro",
            tier=PlanTier.PRO,
            price_monthly=Decimal("29.00"),
            price_annual=Decimal("290.00"),
            display_order=1,
        )
        self.personal = SubscriptionPlan(name="Solo", type=PlanType.PERSONAL, display_order=0)
        self.hidden = SubscriptionPlan(name="Legacy", is_published=False)
        self.plans = FakePlanRepository(self.pro, self.personal, self.hidden)
        self.subscriptions = FakeSubscriptionRepository()
        invoice = Invoice(tenant_id="acme", period_start=now - timedelta(days=30), period_end=now)
        invoice.add_line_item(InvoiceLineItem.of(LineItemType.BASE_PLAN, "Pro plan", 1, Decimal("29.00")))
        invoice.recalculate_total()
        self.invoice = invoice
        self.invoices = FakeInvoiceRepository(
            invoice,
            Invoice(tenant_id="globex", period_start=now - timedelta(days=30), period_end=now),
        )
        self.card = PaymentMethod(tenant_id="acme", last4="4242", brand="visa", is_default=True)
        self.backup = PaymentMethod(tenant_id="acme", last4="0005", brand="amex")
        self.methods = FakePaymentMethodRepository(self.card, self.backup)

        app.dependency_overrides[deps.get_plan_catalog_service] = lambda: PlanCatalogService(self.plans)
        app.dependency_overrides[deps.get_tenant_billing_service] = lambda: TenantBillingService(
            self.plans, self.subscriptions, self.invoices, self.methods, world.uow, world.activity
        )


@pytest.fixture
def ledger(app, world):
    return Ledger(app, world)


@pytest.fixture
def owner(bearer):
    return {**bearer("owner-1"), "X-Tenant-Id": "acme"}


def test_plans_are_public_and_published_only(client, ledger):
    r = client.get("/api/v1/billing/plans")

    assert r.status_code == 200
    assert [p["name"] for p in r.json()["data"]] == ["Solo", "Pro"]


def test_plans_filter_by_type(client, ledger):
    r = client.get("/api/v1/billing/plans", params={"type": "organization"})

    assert [p["name"] for p in r.json()["data"]] == ["Pro"]
    assert r.json()["data"][0]["annual_savings_percent"] == 17


def test_current_subscription_embeds_plan(client, ledger, owner):
    ledger.subscriptions.rows.append(Subscription(tenant_id="acme", plan_id=ledger.pro.id))

    r = client.get("/api/v1/billing/subscription", headers=owner)

    assert r.status_code == 200
    body = r.json()
    assert body["tenant_id"] == "acme"
    assert body["plan"]["name"] == "Pro"
    assert r.headers["X-Tenant-Id"] == "acme"


def test_missing_subscription_is_404(client, ledger, owner):
    r = client.get("/api/v1/billing/subscription", headers=owner)

    assert r.status_code == 404
    assert r.json()["code"] == "subscription_not_found"


def test_invoices_are_scoped_to_the_tenant(client, ledger, owner):
    r = client.get("/api/v1/billing/invoices", headers=owner)

    assert r.status_code == 200
    body = r.json()
    assert [i["id"] for i in body["data"]] == [str(ledger.invoice.id)]
    assert body["meta"]["total"] == 1
    assert body["data"][0]["line_items"][0]["type"] == "base_plan"


def test_other_tenants_invoice_is_404(client, ledger, owner):
    foreign = ledger.invoices.rows[1]

    r = client.get(f"/api/v1/billing/invoices/{foreign.id}", headers=owner)

    assert r.status_code == 404
    assert r.json()["code"] == "invoice_not_found"


def test_billing_needs_a_tenant_member(client, bearer, ledger):
    r = client.get("/api/v1/billing/invoices", headers={**bearer("stranger"), "X-Tenant-Id": "acme"})
    assert r.status_code == 403


def test_owner_switches_default_payment_method(client, ledger, owner, world):
    r = client.post(f"/api/v1/billing/payment-methods/{ledger.backup.id}/default", headers=owner)

    assert r.status_code == 200
    assert r.json()["is_default"] is True
    assert ledger.card.is_default is False
    assert world.activity_log.descriptions() == ["Default payment method changed"]

    listed = client.get("/api/v1/billing/payment-methods", headers=owner).json()["data"]
    assert {m["last4"]: m["is_default"] for m in listed} == {"4242": False, "0005": True}


def test_member_cannot_switch_payment_method(client, bearer, ledger):
    r = client.post(
        f"/api/v1/billing/payment-methods/{ledger.backup.id}/default",
        headers={**bearer("member-1"), "X-Tenant-Id": "acme"},
    )

    assert r.status_code == 403
    assert r.json()["details"] == {"required_permission": "tenant.billing.manage_payment_methods"}
    assert ledger.card.is_default is True
