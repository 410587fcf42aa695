from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional
from uuid import UUID

from src.marketplace.domain.entities.tenant_agent import TenantAgent


class TenantAgentRepository(ABC):
    @abstractmethod
    async def list_for_tenant(self, tenant_id: str) -> List[TenantAgent]:
        raise NotImplementedError

    @abstractmethod
    async def get(self, tenant_id: str, agent_id: UUID) -> Optional[TenantAgent]:
        raise NotImplementedError

    @abstractmethod
    async def add(self, installation: TenantAgent) -> TenantAgent:
        raise NotImplementedError

    @abstractmethod
    async def update(self, installation: TenantAgent) -> TenantAgent:
        raise NotImplementedError

    @abstractmethod
    async def delete(self, installation: TenantAgent) -> None:
        raise NotImplementedError
