from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional
from uuid import UUID

from src.marketplace.domain.entities.agent import Agent, AgentCategory
from src.marketplace.domain.entities.agent_endpoint import AgentEndpoint, EndpointType
from src.shared.pagination import Page


class AgentRepository(ABC):
    @abstractmethod
    async def search_active(
        self,
        *,
        category: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        per_page: int = 12,
    ) -> Page[Agent]:
        """
        Active agents, featured first then by name.

        ``category`` matches a category slug or id; ``search`` is a
        case-insensitive substring of name or description.
        """
        raise NotImplementedError

    @abstractmethod
    async def get(self, agent_id: UUID) -> Optional[Agent]:
        raise NotImplementedError

    @abstractmethod
    async def add(self, agent: Agent) -> Agent:
        raise NotImplementedError

    @abstractmethod
    async def increment_installs(self, agent_id: UUID, delta: int = 1) -> None:
        raise NotImplementedError


class AgentCategoryRepository(ABC):
    @abstractmethod
    async def list_active(self) -> List[AgentCategory]:
        raise NotImplementedError

    @abstractmethod
    async def add(self, category: AgentCategory) -> AgentCategory:
        raise NotImplementedError


class AgentEndpointRepository(ABC):
    @abstractmethod
    async def active_endpoint(self, agent_id: UUID, endpoint_type: EndpointType) -> Optional[AgentEndpoint]:
        raise NotImplementedError

    @abstractmethod
    async def add(self, endpoint: AgentEndpoint) -> AgentEndpoint:
        raise NotImplementedError
