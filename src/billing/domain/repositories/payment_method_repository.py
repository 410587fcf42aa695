from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional
from uuid import UUID

from src.billing.domain.entities.payment_method import PaymentMethod


class PaymentMethodRepository(ABC):
    @abstractmethod
    async def list_for_tenant(self, tenant_id: str) -> List[PaymentMethod]:
        raise NotImplementedError

    @abstractmethod
    async def get(self, tenant_id: str, method_id: UUID) -> Optional[PaymentMethod]:
        raise NotImplementedError

    @abstractmethod
    async def set_default(self, tenant_id: str, method_id: UUID) -> None:
        """Flag one method as default and clear the flag on the tenant's others."""
        raise NotImplementedError
