from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List

from src.billing.domain.entities.agent_subscription import AgentSubscription


class AgentSubscriptionRepository(ABC):
    @abstractmethod
    async def active_for_tenant(self, tenant_id: str) -> List[AgentSubscription]:
        raise NotImplementedError

    @abstractmethod
    async def due_for_renewal(self, now: datetime) -> List[AgentSubscription]:
        """Active, auto-renewing and next_billing_date not after ``now``."""
        raise NotImplementedError

    @abstractmethod
    async def update(self, subscription: AgentSubscription) -> AgentSubscription:
        raise NotImplementedError
