from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import UUID

from src.marketplace.application.dtos import TenantAgentDTO
from src.marketplace.domain.entities.tenant_agent import TenantAgent
from src.marketplace.domain.repositories.agent_repository import AgentRepository
from src.marketplace.domain.repositories.tenant_agent_repository import TenantAgentRepository
from src.shared.clock import utcnow
from src.shared.domain.activity import ActivityRecorder
from src.shared.exceptions import ConflictError, NotFoundError
from src.shared.infrastructure.database.unit_of_work import IUnitOfWork
from src.tenancy.application.services.tenant_context_service import TenantContext


class TenantAgentService:
    """Install and uninstall marketplace agents for the current tenant."""

    def __init__(
        self,
        agents: AgentRepository,
        installations: TenantAgentRepository,
        uow: IUnitOfWork,
        activity: ActivityRecorder,
    ) -> None:
        self._agents = agents
        self._installations = installations
        self._uow = uow
        self._activity = activity

    async def list(self, ctx: TenantContext) -> List[TenantAgentDTO]:
        return [TenantAgentDTO.from_entity(i) for i in await self._installations.list_for_tenant(ctx.tenant_id)]

    async def install(
        self,
        ctx: TenantContext,
        agent_id: UUID,
        configuration: Optional[Dict[str, Any]] = None,
    ) -> TenantAgentDTO:
        agent = await self._agents.get(agent_id)
        if agent is None or not agent.is_active:
            raise NotFoundError.from_code("agent_not_found")
        if await self._installations.get(ctx.tenant_id, agent.id) is not None:
            raise ConflictError.from_code("agent_already_installed")

        installation = TenantAgent(
            tenant_id=ctx.tenant_id,
            agent_id=agent.id,
            configuration=configuration or {},
            installed_at=utcnow(),
            agent_name=agent.name,
        )
        async with self._uow:
            installation = await self._installations.add(installation)
            await self._agents.increment_installs(agent.id)
            await self._activity.record(
                "Agent installed",
                subject_type="agent",
                subject_id=agent.id,
                causer_id=ctx.user_id,
                properties={"tenant_id": ctx.tenant_id, "agent_name": agent.name},
            )
            await self._uow.commit()
        installation.agent_name = agent.name
        return TenantAgentDTO.from_entity(installation)

    async def uninstall(self, ctx: TenantContext, agent_id: UUID) -> None:
        installation = await self._installations.get(ctx.tenant_id, agent_id)
        if installation is None:
            raise NotFoundError.from_code("agent_not_installed")
        async with self._uow:
            await self._installations.delete(installation)
            await self._agents.increment_installs(agent_id, -1)
            await self._activity.record(
                "Agent uninstalled",
                subject_type="agent",
                subject_id=agent_id,
                causer_id=ctx.user_id,
                properties={"tenant_id": ctx.tenant_id},
            )
            await self._uow.commit()
