from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional, Set
from uuid import UUID

from src.tenancy.domain.entities.tenant_role import TenantRole


class TenantRoleRepository(ABC):
    @abstractmethod
    async def list_for_tenant(self, tenant_id: str) -> List[TenantRole]:
        raise NotImplementedError

    @abstractmethod
    async def get(self, tenant_id: str, role_id: UUID) -> Optional[TenantRole]:
        raise NotImplementedError

    @abstractmethod
    async def name_exists(self, tenant_id: str, name: str, *, exclude_id: Optional[UUID] = None) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def add(self, role: TenantRole) -> TenantRole:
        raise NotImplementedError

    @abstractmethod
    async def update(self, role: TenantRole) -> TenantRole:
        raise NotImplementedError

    @abstractmethod
    async def delete(self, role: TenantRole) -> None:
        raise NotImplementedError

    @abstractmethod
    async def count_assignments(self, role_id: UUID) -> int:
        """How many users hold the role."""
        raise NotImplementedError

    @abstractmethod
    async def assign(self, tenant_id: str, user_id: str, role_id: UUID) -> None:
        raise NotImplementedError

    @abstractmethod
    async def permissions_for_user(self, tenant_id: str, user_id: str) -> Set[str]:
        """Union of permission names across the user's roles in the tenant."""
        raise NotImplementedError
