from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, Optional
from uuid import UUID, uuid4

from src.billing.domain.entities.plan import BillingCycle, SubscriptionPlan
from src.shared.clock import add_months, ensure_aware, utcnow


class SubscriptionStatus(str, Enum):
    TRIALING = "trialing"
    ACTIVE = "active"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    SUSPENDED = "suspended"


CURRENT_STATUSES = (SubscriptionStatus.TRIALING, SubscriptionStatus.ACTIVE)


@dataclass(slots=True)
class Subscription:
    tenant_id: str
    plan_id: UUID
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE
    billing_cycle: BillingCycle = BillingCycle.MONTHLY
    id: UUID = field(default_factory=uuid4)
    auto_renew: bool = True
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    trial_ends_at: Optional[datetime] = None
    canceled_at: Optional[datetime] = None
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    next_billing_date: Optional[datetime] = None
    executions_used: int = 0
    execution_quota: int = 0
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def for_plan(
        cls,
        tenant_id: str,
        plan: SubscriptionPlan,
        *,
        billing_cycle: BillingCycle,
        starts_at: datetime,
        now: Optional[datetime] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> "Subscription":
        """New subscription on ``plan``; trialing when the plan offers trial days."""
        now = now or utcnow()
        trialing = plan.trial_days > 0
        period_end = add_months(now, billing_cycle.months)
        return cls(
            tenant_id=tenant_id,
            plan_id=plan.id,
            status=SubscriptionStatus.TRIALING if trialing else SubscriptionStatus.ACTIVE,
            billing_cycle=billing_cycle,
            starts_at=starts_at,
            trial_ends_at=now + timedelta(days=plan.trial_days),
            current_period_start=now,
            current_period_end=period_end,
            next_billing_date=period_end,
            execution_quota=plan.execution_quota,
            metadata=metadata or {},
        )

    @property
    def is_current(self) -> bool:
        return self.status in CURRENT_STATUSES

    @property
    def overage_executions(self) -> int:
        return max(0, self.executions_used - self.execution_quota)

    def is_due_for_renewal(self, now: Optional[datetime] = None) -> bool:
        return self.next_billing_date is None or ensure_aware(self.next_billing_date) <= (now or utcnow())

    def cancel(self, *, now: Optional[datetime] = None, ends_at: Optional[datetime] = None) -> None:
        now = now or utcnow()
        self.status = SubscriptionStatus.CANCELED
        self.canceled_at = now
        if ends_at is not None:
            self.ends_at = ends_at

    def advance_period(self, period_start: datetime, period_end: datetime) -> None:
        next_end = add_months(period_end, self.billing_cycle.months)
        self.current_period_start = period_start
        self.current_period_end = next_end
        self.next_billing_date = next_end

    def extend_trial(self, days: int, now: Optional[datetime] = None) -> datetime:
        base = ensure_aware(self.trial_ends_at) or (now or utcnow())
        self.trial_ends_at = base + timedelta(days=days)
        self.status = SubscriptionStatus.TRIALING
        return self.trial_ends_at

    def reset_usage(self) -> int:
        previous = self.executions_used
        self.executions_used = 0
        return previous
