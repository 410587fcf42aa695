from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from src.billing.domain.entities.subscription import Subscription


class SubscriptionRepository(ABC):
    @abstractmethod
    async def current_for_tenant(self, tenant_id: str) -> Optional[Subscription]:
        """Latest trialing or active subscription."""
        raise NotImplementedError

    @abstractmethod
    async def list_current_for_tenant(self, tenant_id: str) -> List[Subscription]:
        raise NotImplementedError

    @abstractmethod
    async def history_for_tenant(self, tenant_id: str) -> List[Subscription]:
        """Every subscription of the tenant, newest first."""
        raise NotImplementedError

    @abstractmethod
    async def add(self, subscription: Subscription) -> Subscription:
        raise NotImplementedError

    @abstractmethod
    async def update(self, subscription: Subscription) -> Subscription:
        raise NotImplementedError

    @abstractmethod
    async def due_for_billing(self, now: datetime) -> List[Subscription]:
        """Active subscriptions whose next_billing_date is unset or not after ``now``."""
        raise NotImplementedError

    @abstractmethod
    async def expired_without_renewal(self, now: datetime) -> List[Subscription]:
        """Active, auto_renew off, current period ended before ``now``."""
        raise NotImplementedError

    @abstractmethod
    async def with_usage(self) -> List[Subscription]:
        """Active subscriptions with executions_used above zero."""
        raise NotImplementedError
