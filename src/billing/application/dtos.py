from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from src.billing.domain.entities.invoice import Invoice
from src.billing.domain.entities.payment_method import PaymentMethod
from src.billing.domain.entities.plan import SubscriptionPlan
from src.billing.domain.entities.subscription import Subscription


@dataclass
class PlanDTO:
    id: UUID
    name: str
    display_name: str
    type: str
    tier: str
    price_monthly: Optional[Decimal]
    price_annual: Optional[Decimal]
    annual_savings_percent: int
    is_free: bool
    trial_days: int
    execution_quota: int
    max_users: Optional[int]
    max_agents: Optional[int]
    storage_gb: Optional[int]
    features: List[str] = field(default_factory=list)
    highlight_features: List[str] = field(default_factory=list)
    limits: Dict[str, Any] = field(default_factory=dict)
    description: Optional[str] = None
    display_order: int = 0

    @classmethod
    def from_entity(cls, plan: SubscriptionPlan) -> "PlanDTO":
        return cls(
            id=plan.id,
            name=plan.name,
            display_name=plan.display_name,
            type=plan.type.value,
            tier=plan.tier.value,
            price_monthly=plan.price_monthly,
            price_annual=plan.price_annual,
            annual_savings_percent=plan.annual_savings_percent,
            is_free=plan.is_free,
            trial_days=plan.trial_days,
            execution_quota=plan.execution_quota,
            max_users=plan.max_users,
            max_agents=plan.max_agents,
            storage_gb=plan.storage_gb,
            features=list(plan.features),
            highlight_features=list(plan.highlight_features),
            limits=dict(plan.limits),
            description=plan.description,
            display_order=plan.display_order,
        )


@dataclass
class SubscriptionDTO:
    id: UUID
    tenant_id: str
    plan_id: UUID
    status: str
    billing_cycle: str
    auto_renew: bool
    starts_at: Optional[datetime]
    ends_at: Optional[datetime]
    trial_ends_at: Optional[datetime]
    canceled_at: Optional[datetime]
    current_period_start: Optional[datetime]
    current_period_end: Optional[datetime]
    next_billing_date: Optional[datetime]
    executions_used: int
    execution_quota: int
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None
    plan: Optional[PlanDTO] = None

    @classmethod
    def from_entity(cls, sub: Subscription, plan: Optional[SubscriptionPlan] = None) -> "SubscriptionDTO":
        return cls(
            id=sub.id,
            tenant_id=sub.tenant_id,
            plan_id=sub.plan_id,
            status=sub.status.value,
            billing_cycle=sub.billing_cycle.value,
            auto_renew=sub.auto_renew,
            starts_at=sub.starts_at,
            ends_at=sub.ends_at,
            trial_ends_at=sub.trial_ends_at,
            canceled_at=sub.canceled_at,
            current_period_start=sub.current_period_start,
            current_period_end=sub.current_period_end,
            next_billing_date=sub.next_billing_date,
            executions_used=sub.executions_used,
            execution_quota=sub.execution_quota,
            metadata=dict(sub.metadata),
            created_at=sub.created_at,
            plan=PlanDTO.from_entity(plan) if plan else None,
        )


@dataclass
class InvoiceDTO:
    id: UUID
    invoice_number: str
    status: str
    period_start: datetime
    period_end: datetime
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    currency: str
    due_date: Optional[datetime]
    paid_at: Optional[datetime]
    retry_count: int
    line_items: List[Dict[str, Any]] = field(default_factory=list)
    subscription_id: Optional[UUID] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, invoice: Invoice) -> "InvoiceDTO":
        return cls(
            id=invoice.id,
            invoice_number=invoice.invoice_number,
            status=invoice.status.value,
            period_start=invoice.period_start,
            period_end=invoice.period_end,
            subtotal=invoice.subtotal,
            tax=invoice.tax,
            total=invoice.total,
            currency=invoice.currency,
            due_date=invoice.due_date,
            paid_at=invoice.paid_at,
            retry_count=invoice.retry_count,
            line_items=[i.to_dict() for i in invoice.line_items],
            subscription_id=invoice.subscription_id,
            created_at=invoice.created_at,
        )


@dataclass
class PaymentMethodDTO:
    id: UUID
    type: str
    is_default: bool
    last4: Optional[str]
    brand: Optional[str]
    exp_month: Optional[int]
    exp_year: Optional[int]
    country: Optional[str]

    @classmethod
    def from_entity(cls, method: PaymentMethod) -> "PaymentMethodDTO":
        return cls(
            id=method.id,
            type=method.type.value,
            is_default=method.is_default,
            last4=method.last4,
            brand=method.brand,
            exp_month=method.exp_month,
            exp_year=method.exp_year,
            country=method.country,
        )
