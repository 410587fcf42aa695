# src/billing/api/schemas.py
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from src.tenancy.api.schemas import PageMeta


class PlanResponse(BaseModel):
    id: UUID
    name: str
    display_name: str
    type: str
    tier: str
    price_monthly: Optional[Decimal] = None
    price_annual: Optional[Decimal] = None
    annual_savings_percent: int = 0
    is_free: bool
    trial_days: int
    execution_quota: int
    max_users: Optional[int] = None
    max_agents: Optional[int] = None
    storage_gb: Optional[int] = None
    features: List[str] = Field(default_factory=list)
    highlight_features: List[str] = Field(default_factory=list)
    limits: Dict[str, Any] = Field(default_factory=dict)
    description: Optional[str] = None
    display_order: int = 0


class PlanListResponse(BaseModel):
    data: List[PlanResponse]


class SubscriptionResponse(BaseModel):
    id: UUID
    tenant_id: str
    plan_id: UUID
    status: str
    billing_cycle: str
    auto_renew: bool
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    trial_ends_at: Optional[datetime] = None
    canceled_at: Optional[datetime] = None
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    next_billing_date: Optional[datetime] = None
    executions_used: int = 0
    execution_quota: int = 0
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    plan: Optional[PlanResponse] = None


class InvoiceLineItemResponse(BaseModel):
    type: str
    description: str
    quantity: int
    unit_price: Decimal
    amount: Decimal
    metadata: Dict[str, Any] = Field(default_factory=dict)


class InvoiceResponse(BaseModel):
    id: UUID
    invoice_number: str
    status: str
    period_start: datetime
    period_end: datetime
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    currency: str
    due_date: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    retry_count: int = 0
    line_items: List[InvoiceLineItemResponse] = Field(default_factory=list)
    subscription_id: Optional[UUID] = None
    created_at: Optional[datetime] = None


class InvoiceListResponse(BaseModel):
    data: List[InvoiceResponse]
    meta: PageMeta


class PaymentMethodResponse(BaseModel):
    id: UUID
    type: str
    is_default: bool
    last4: Optional[str] = None
    brand: Optional[str] = None
    exp_month: Optional[int] = None
    exp_year: Optional[int] = None
    country: Optional[str] = None


class PaymentMethodListResponse(BaseModel):
    data: List[PaymentMethodResponse]
