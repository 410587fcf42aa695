from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import JSON, Boolean, ForeignKey, Index, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from src.shared.infrastructure.database.base_model import Base, TimestampMixin, UTCDateTime, UUIDPrimaryKeyMixin


class SubscriptionPlanORM(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "subscription_plans"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[str] = mapped_column(String(32), nullable=False, default="organization")
    tier: Mapped[str] = mapped_column(String(32), nullable=False, default="free")
    price_monthly: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    price_annual: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    features: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    limits: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    highlight_features: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    max_users: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    max_agents: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    storage_gb: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    execution_quota: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    overage_price_per_execution: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 4), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    trial_days: Mapped[int] = mapped_column(Integer, nullable=False, default=7)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    meta: Mapped[Dict[str, Any]] = mapped_column("metadata", JSON, nullable=False, default=dict)

    __table_args__ = (Index("ix_subscription_plans__public", "is_active", "is_published", "display_order"),)


class SubscriptionORM(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "subscriptions"

    tenant_id: Mapped[str] = mapped_column(ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    plan_id: Mapped[UUID] = mapped_column(Uuid(as_uuid=True), ForeignKey("subscription_plans.id"), nullable=False)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="active")
    billing_cycle: Mapped[str] = mapped_column(String(16), nullable=False, default="monthly")
    auto_renew: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    starts_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
    ends_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
    trial_ends_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
    canceled_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
    current_period_start: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
    current_period_end: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
    next_billing_date: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
    executions_used: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    execution_quota: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    meta: Mapped[Dict[str, Any]] = mapped_column("metadata", JSON, nullable=False, default=dict)

    __table_args__ = (
        Index("ix_subscriptions__tenant_status", "tenant_id", "status"),
        Index("ix_subscriptions__next_billing", "status", "next_billing_date"),
    )


class InvoiceORM(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "invoices"

    tenant_id: Mapped[str] = mapped_column(ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    subscription_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("subscriptions.id", ondelete="SET NULL"), nullable=True
    )
    invoice_number: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    period_start: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    period_end: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    subtotal: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    tax: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    total: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="pending")
    due_date: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
    paid_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
    line_items: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    retry_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_reminder_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)

    __table_args__ = (
        Index("ix_invoices__tenant_created", "tenant_id", "created_at"),
        Index("ix_invoices__status", "status"),
    )


class PaymentMethodORM(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "payment_methods"

    tenant_id: Mapped[str] = mapped_column(ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    type: Mapped[str] = mapped_column(String(32), nullable=False, default="card")
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    last4: Mapped[Optional[str]] = mapped_column(String(4), nullable=True)
    brand: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    exp_month: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    exp_year: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    country: Mapped[Optional[str]] = mapped_column(String(2), nullable=True)

    __table_args__ = (Index("ix_payment_methods__tenant", "tenant_id"),)


class AgentSubscriptionORM(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "agent_subscriptions"

    tenant_id: Mapped[str] = mapped_column(ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    agent_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("agents.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="active")
    monthly_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    auto_renew: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    next_billing_date: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
    expires_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)

    __table_args__ = (Index("ix_agent_subscriptions__tenant_status", "tenant_id", "status"),)
