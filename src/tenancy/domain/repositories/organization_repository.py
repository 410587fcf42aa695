from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from src.shared.pagination import Page
from src.tenancy.domain.entities.organization import Organization


class OrganizationRepository(ABC):
    """All reads are tenant scoped; a foreign tenant's organization is simply not found."""

    @abstractmethod
    async def list_for_tenant(self, tenant_id: str, *, page: int = 1, per_page: int = 15) -> Page[Organization]:
        raise NotImplementedError

    @abstractmethod
    async def get(self, tenant_id: str, organization_id: UUID) -> Optional[Organization]:
        raise NotImplementedError

    @abstractmethod
    async def first_for_tenant(self, tenant_id: str) -> Optional[Organization]:
        """Oldest organization of the tenant (the "current" organization)."""
        raise NotImplementedError

    @abstractmethod
    async def add(self, organization: Organization) -> Organization:
        raise NotImplementedError

    @abstractmethod
    async def update(self, organization: Organization) -> Organization:
        raise NotImplementedError

    @abstractmethod
    async def delete(self, organization: Organization) -> None:
        raise NotImplementedError
