from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4


class PlanType(str, Enum):
    PERSONAL = "personal"
    ORGANIZATION = "organization"


class PlanTier(str, Enum):
    FREE = "free"
    PRO = "pro"
    TEAM = "team"
    BUSINESS = "business"
    ENTERPRISE = "enterprise"


class BillingCycle(str, Enum):
    MONTHLY = "monthly"
    ANNUAL = "annual"

    @property
    def months(self) -> int:
        return 12 if self is BillingCycle.ANNUAL else 1


@dataclass(slots=True)
class SubscriptionPlan:
    name: str
    type: PlanType = PlanType.ORGANIZATION
    tier: PlanTier = PlanTier.FREE
    price_monthly: Optional[Decimal] = None
    price_annual: Optional[Decimal] = None
    id: UUID = field(default_factory=uuid4)
    features: List[str] = field(default_factory=list)
    limits: Dict[str, Any] = field(default_factory=dict)
    highlight_features: List[str] = field(default_factory=list)
    max_users: Optional[int] = None
    max_agents: Optional[int] = None
    storage_gb: Optional[int] = None
    execution_quota: int = 0
    overage_price_per_execution: Optional[Decimal] = None
    is_active: bool = True
    is_published: bool = True
    is_archived: bool = False
    trial_days: int = 7
    display_order: int = 0
    description: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_free(self) -> bool:
        return self.tier == PlanTier.FREE

    @property
    def is_available(self) -> bool:
        return self.is_active and not self.is_archived

    @property
    def is_public(self) -> bool:
        return self.is_available and self.is_published

    @property
    def display_name(self) -> str:
        return f"{self.name} ({self.tier.value})"

    @property
    def annual_savings_percent(self) -> int:
        """Discount of the annual price against twelve monthly payments, in whole percent."""
        if not self.price_monthly or not self.price_annual:
            return 0
        yearly = Decimal(self.price_monthly) * 12
        if yearly == 0:
            return 0
        pct = (yearly - Decimal(self.price_annual)) / yearly * 100
        return int(pct.quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    def monthly_equivalent_price(self, cycle: BillingCycle = BillingCycle.MONTHLY) -> Decimal:
        if cycle == BillingCycle.ANNUAL and self.price_annual is not None:
            return (Decimal(self.price_annual) / 12).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        return Decimal(self.price_monthly or 0)
