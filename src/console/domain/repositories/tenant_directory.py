from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from src.billing.domain.entities.plan import SubscriptionPlan
from src.billing.domain.entities.subscription import Subscription
from src.shared.pagination import Page
from src.tenancy.domain.entities.tenant import Tenant, TenantStatus, TenantType

SORTABLE_COLUMNS = ("created_at", "name", "email", "type", "status")


@dataclass(slots=True)
class TenantSearchCriteria:
    search: Optional[str] = None
    type: Optional[TenantType] = None
    status: Optional[TenantStatus] = None
    plan_id: Optional[UUID] = None
    has_subscription: Optional[bool] = None
    sort_by: str = "created_at"
    sort_order: str = "desc"
    page: int = 1
    per_page: int = 20

    def __post_init__(self) -> None:
        if self.sort_by not in SORTABLE_COLUMNS:
            self.sort_by = "created_at"
        self.sort_order = "asc" if str(self.sort_order).lower() == "asc" else "desc"


@dataclass(slots=True)
class TenantListing:
    """A tenant with its current (trialing/active) subscription and that subscription's plan."""
    tenant: Tenant
    subscription: Optional[Subscription] = None
    plan: Optional[SubscriptionPlan] = None


@dataclass(slots=True)
class TenantStatistics:
    total_tenants: int = 0
    by_type: Dict[str, int] = field(default_factory=dict)
    by_status: Dict[str, int] = field(default_factory=dict)
    with_active_subscription: int = 0
    on_trial: int = 0
    subscription_by_plan: List[Dict[str, Any]] = field(default_factory=list)
    recent_signups: int = 0


class TenantDirectory(ABC):
    """Cross-tenant read model used by platform staff."""

    @abstractmethod
    async def search(self, criteria: TenantSearchCriteria) -> Page[TenantListing]:
        raise NotImplementedError

    @abstractmethod
    async def get(self, tenant_id: str) -> Optional[TenantListing]:
        """Non-deleted tenant, regardless of status."""
        raise NotImplementedError

    @abstractmethod
    async def statistics(self, now: datetime) -> TenantStatistics:
        raise NotImplementedError
