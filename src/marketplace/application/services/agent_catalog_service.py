from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from src.marketplace.application.dtos import AgentDTO, CategoryDTO
from src.marketplace.domain.entities.agent import Agent
from src.marketplace.domain.repositories.agent_repository import AgentCategoryRepository, AgentRepository
from src.shared.exceptions import NotFoundError
from src.shared.pagination import Page


class AgentCatalogService:
    """Public marketplace browsing."""

    def __init__(self, agents: AgentRepository, categories: AgentCategoryRepository) -> None:
        self._agents = agents
        self._categories = categories

    async def list_agents(
        self,
        *,
        category: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        per_page: int = 12,
    ) -> Page[AgentDTO]:
        search = search.strip() if search else None
        result = await self._agents.search_active(category=category, search=search or None, page=page, per_page=per_page)
        return result.map(AgentDTO.from_entity)

    async def get_active(self, agent_id: UUID) -> Agent:
        agent = await self._agents.get(agent_id)
        if agent is None or not agent.is_active:
            raise NotFoundError.from_code("agent_not_found")
        return agent

    async def get_agent(self, agent_id: UUID) -> AgentDTO:
        return AgentDTO.from_entity(await self.get_active(agent_id))

    async def list_categories(self) -> List[CategoryDTO]:
        return [CategoryDTO.from_entity(c) for c in await self._categories.list_active()]
