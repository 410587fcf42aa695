from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional
from uuid import UUID

from src.billing.domain.entities.plan import PlanType, SubscriptionPlan


class PlanRepository(ABC):
    @abstractmethod
    async def list_public(self, *, plan_type: Optional[PlanType] = None) -> List[SubscriptionPlan]:
        """Active, unarchived and published plans ordered by display_order."""
        raise NotImplementedError

    @abstractmethod
    async def get(self, plan_id: UUID) -> Optional[SubscriptionPlan]:
        raise NotImplementedError

    @abstractmethod
    async def add(self, plan: SubscriptionPlan) -> SubscriptionPlan:
        raise NotImplementedError
