from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from src.tenancy.domain.entities.membership import TenantMembership


class MembershipRepository(ABC):
    @abstractmethod
    async def get(self, tenant_id: str, user_id: str) -> Optional[TenantMembership]:
        raise NotImplementedError

    @abstractmethod
    async def count_active(self, tenant_id: str) -> int:
        raise NotImplementedError

    @abstractmethod
    async def add(self, membership: TenantMembership) -> TenantMembership:
        raise NotImplementedError

    @abstractmethod
    async def update(self, membership: TenantMembership) -> TenantMembership:
        raise NotImplementedError
