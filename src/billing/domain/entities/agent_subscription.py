from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from src.shared.clock import add_months, ensure_aware, utcnow


class AgentSubscriptionStatus(str, Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


@dataclass(slots=True)
class AgentSubscription:
    """Paid agent add-on billed alongside the tenant's plan."""
    tenant_id: str
    agent_id: UUID
    monthly_price: Decimal = Decimal("0.00")
    id: UUID = field(default_factory=uuid4)
    status: AgentSubscriptionStatus = AgentSubscriptionStatus.ACTIVE
    auto_renew: bool = True
    next_billing_date: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    agent_name: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status == AgentSubscriptionStatus.ACTIVE

    def is_due(self, now: Optional[datetime] = None) -> bool:
        return self.next_billing_date is not None and ensure_aware(self.next_billing_date) <= (now or utcnow())

    def cancel(self) -> None:
        self.status = AgentSubscriptionStatus.CANCELLED
        self.auto_renew = False

    def renew(self) -> datetime:
        self.next_billing_date = add_months(ensure_aware(self.next_billing_date) or utcnow(), 1)
        return self.next_billing_date
