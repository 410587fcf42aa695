from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from src.marketplace.domain.entities.agent_run import AgentRun


class AgentRunRepository(ABC):
    @abstractmethod
    async def add(self, run: AgentRun) -> AgentRun:
        raise NotImplementedError

    @abstractmethod
    async def get(self, run_id: UUID, *, tenant_id: Optional[str] = None) -> Optional[AgentRun]:
        """When ``tenant_id`` is given, runs of other tenants are not found."""
        raise NotImplementedError

    @abstractmethod
    async def update(self, run: AgentRun) -> AgentRun:
        raise NotImplementedError
