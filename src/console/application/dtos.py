from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from src.billing.application.dtos import SubscriptionDTO
from src.console.domain.entities.impersonation import ImpersonationSession
from src.console.domain.repositories.tenant_directory import TenantListing, TenantStatistics
from src.shared.clock import utcnow
from src.tenancy.domain.entities.tenant import Tenant


@dataclass
class AdminTenantDTO:
    id: str
    name: str
    short_name: Optional[str]
    email: Optional[str]
    type: str
    status: str
    subdomain_preference: Optional[str]
    custom_domain: Optional[str]
    trial_ends_at: Optional[datetime]
    is_on_trial: bool
    trial_days_remaining: int
    billing_cycle: Optional[str]
    has_active_subscription: bool
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
    active_subscription: Optional[SubscriptionDTO] = None

    @classmethod
    def from_tenant(cls, tenant: Tenant, subscription: Optional[SubscriptionDTO] = None) -> "AdminTenantDTO":
        now = utcnow()
        return cls(
            id=tenant.id,
            name=tenant.name,
            short_name=tenant.short_name,
            email=tenant.email,
            type=tenant.type.value,
            status=tenant.status.value,
            subdomain_preference=tenant.subdomain_preference,
            custom_domain=tenant.custom_domain,
            trial_ends_at=tenant.trial_ends_at,
            is_on_trial=tenant.is_on_trial(now),
            trial_days_remaining=tenant.trial_days_remaining(now),
            billing_cycle=subscription.billing_cycle if subscription else None,
            has_active_subscription=subscription is not None,
            created_at=tenant.created_at,
            updated_at=tenant.updated_at,
            active_subscription=subscription,
        )

    @classmethod
    def from_listing(cls, listing: TenantListing) -> "AdminTenantDTO":
        sub = SubscriptionDTO.from_entity(listing.subscription, listing.plan) if listing.subscription else None
        return cls.from_tenant(listing.tenant, sub)


@dataclass
class SubscriptionChangeDTO:
    tenant: AdminTenantDTO
    subscription: SubscriptionDTO


@dataclass
class SubscriptionHistoryDTO:
    tenant: AdminTenantDTO
    subscriptions: List[SubscriptionDTO] = field(default_factory=list)


@dataclass
class TenantStatisticsDTO:
    total_tenants: int
    by_type: Dict[str, int]
    by_status: Dict[str, int]
    with_active_subscription: int
    on_trial: int
    subscription_by_plan: List[Dict[str, Any]]
    recent_signups: int

    @classmethod
    def from_stats(cls, stats: TenantStatistics) -> "TenantStatisticsDTO":
        return cls(
            total_tenants=stats.total_tenants,
            by_type=dict(stats.by_type),
            by_status=dict(stats.by_status),
            with_active_subscription=stats.with_active_subscription,
            on_trial=stats.on_trial,
            subscription_by_plan=list(stats.subscription_by_plan),
            recent_signups=stats.recent_signups,
        )


@dataclass
class TenantBriefDTO:
    id: str
    name: str
    email: Optional[str]

    @classmethod
    def from_tenant(cls, tenant: Tenant) -> "TenantBriefDTO":
        return cls(id=tenant.id, name=tenant.name, email=tenant.email)


@dataclass
class ImpersonationStartedDTO:
    impersonation_id: UUID
    token: str
    expires_at: Optional[datetime]
    tenant: TenantBriefDTO


@dataclass
class ImpersonationEndedDTO:
    impersonation_id: UUID
    ended_at: Optional[datetime]
    duration_minutes: Optional[int]


@dataclass
class ImpersonationDTO:
    id: UUID
    admin_user_id: str
    tenant_id: str
    target_user_id: Optional[str]
    started_at: datetime
    ended_at: Optional[datetime]
    expires_at: Optional[datetime]
    status: str
    is_active: bool
    is_expired: bool
    duration_minutes: Optional[int]
    reason: Optional[str]
    ip_address: Optional[str]
    metadata: Dict[str, Any] = field(default_factory=dict)
    tenant: Optional[TenantBriefDTO] = None

    @classmethod
    def from_entity(
        cls, session: ImpersonationSession, tenant: Optional[Tenant] = None, now: Optional[datetime] = None
    ) -> "ImpersonationDTO":
        now = now or utcnow()
        return cls(
            id=session.id,
            admin_user_id=session.admin_user_id,
            tenant_id=session.tenant_id,
            target_user_id=session.target_user_id,
            started_at=session.started_at,
            ended_at=session.ended_at,
            expires_at=session.expires_at,
            status=session.status(now).value,
            is_active=session.is_active(now),
            is_expired=session.is_expired(now),
            duration_minutes=session.duration_minutes,
            reason=session.reason,
            ip_address=session.ip_address,
            metadata=dict(session.metadata),
            tenant=TenantBriefDTO.from_tenant(tenant) if tenant else None,
        )
