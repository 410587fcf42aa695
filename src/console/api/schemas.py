# src/console/api/schemas.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from src.billing.api.schemas import SubscriptionResponse
from src.billing.domain.entities.plan import BillingCycle
from src.tenancy.api.schemas import PageMeta
from src.tenancy.domain.entities.tenant import TenantStatus


# ---------- Tenant management ----------

class AdminTenantResponse(BaseModel):
    id: str
    name: str
    short_name: Optional[str] = None
    email: Optional[str] = None
    type: str
    status: str
    subdomain_preference: Optional[str] = None
    custom_domain: Optional[str] = None
    trial_ends_at: Optional[datetime] = None
    is_on_trial: bool
    trial_days_remaining: int
    billing_cycle: Optional[str] = None
    has_active_subscription: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    active_subscription: Optional[SubscriptionResponse] = None


class AdminTenantListResponse(BaseModel):
    data: List[AdminTenantResponse]
    meta: PageMeta


class UpdateTenantStatusRequest(BaseModel):
    status: TenantStatus
    reason: Optional[str] = Field(default=None, max_length=500)


class ChangeSubscriptionRequest(BaseModel):
    plan_id: UUID
    billing_cycle: BillingCycle
    starts_immediately: bool = False
    prorate: bool = False


class SubscriptionChangeResponse(BaseModel):
    tenant: AdminTenantResponse
    subscription: SubscriptionResponse


class SubscriptionHistoryResponse(BaseModel):
    tenant: AdminTenantResponse
    subscriptions: List[SubscriptionResponse]


class ExtendTrialRequest(BaseModel):
    days: int = Field(..., ge=1, le=365)
    reason: Optional[str] = Field(default=None, max_length=500)


class PlanSubscriptionCount(BaseModel):
    id: UUID
    name: str
    type: str
    tier: str
    active_subscriptions: int


class TenantStatisticsResponse(BaseModel):
    total_tenants: int
    by_type: Dict[str, int]
    by_status: Dict[str, int]
    with_active_subscription: int
    on_trial: int
    subscription_by_plan: List[PlanSubscriptionCount]
    recent_signups: int


# ---------- Impersonation ----------

class StartImpersonationRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=500)
    ttl_minutes: Optional[int] = Field(default=None, ge=5, le=480)


class TenantBrief(BaseModel):
    id: str
    name: str
    email: Optional[str] = None


class ImpersonationStartedResponse(BaseModel):
    impersonation_id: UUID
    token: str
    expires_at: Optional[datetime] = None
    tenant: TenantBrief


class ImpersonationEndedResponse(BaseModel):
    impersonation_id: UUID
    ended_at: Optional[datetime] = None
    duration_minutes: Optional[int] = None


class ImpersonationResponse(BaseModel):
    id: UUID
    admin_user_id: str
    tenant_id: str
    target_user_id: Optional[str] = None
    started_at: datetime
    ended_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    status: str
    is_active: bool
    is_expired: bool
    duration_minutes: Optional[int] = None
    reason: Optional[str] = None
    ip_address: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    tenant: Optional[TenantBrief] = None


class ImpersonationListMeta(BaseModel):
    current_page: int
    total: int
    per_page: int


class ImpersonationListResponse(BaseModel):
    data: List[ImpersonationResponse]
    meta: ImpersonationListMeta
