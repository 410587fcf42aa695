from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from src.tenancy.domain.entities.tenant import Tenant


class TenantRepository(ABC):
    """Persistence contract for tenants. Soft-deleted rows are invisible unless asked for."""

    @abstractmethod
    async def get(self, tenant_id: str, *, include_deleted: bool = False) -> Optional[Tenant]:
        """Fetch a tenant by id regardless of status."""
        raise NotImplementedError

    @abstractmethod
    async def find_active(self, tenant_id: str) -> Optional[Tenant]:
        """Active, non-deleted tenant by id (also its subdomain)."""
        raise NotImplementedError

    @abstractmethod
    async def find_active_by_custom_domain(self, host: str) -> Optional[Tenant]:
        raise NotImplementedError

    @abstractmethod
    async def short_name_taken(self, short_name: str, *, exclude_id: Optional[str] = None) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def update(self, tenant: Tenant) -> Tenant:
        raise NotImplementedError
