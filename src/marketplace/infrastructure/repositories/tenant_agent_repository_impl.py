from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.marketplace.domain.entities.tenant_agent import TenantAgent, TenantAgentStatus
from src.marketplace.domain.repositories.tenant_agent_repository import TenantAgentRepository
from src.marketplace.infrastructure.models import AgentORM, TenantAgentORM


def _to_domain(row: TenantAgentORM, agent_name: Optional[str] = None) -> TenantAgent:
    return TenantAgent(
        id=row.id,
        tenant_id=row.tenant_id,
        agent_id=row.agent_id,
        status=TenantAgentStatus(row.status),
        usage_count=row.usage_count,
        last_used_at=row.last_used_at,
        configuration=dict(row.configuration or {}),
        installed_at=row.installed_at,
        agent_name=agent_name,
    )


class TenantAgentRepositoryImpl(TenantAgentRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_for_tenant(self, tenant_id: str) -> List[TenantAgent]:
        stmt = (
            select(TenantAgentORM, AgentORM.name)
            .join(AgentORM, AgentORM.id == TenantAgentORM.agent_id)
            .where(TenantAgentORM.tenant_id == tenant_id)
            .order_by(AgentORM.name.asc())
        )
        return [_to_domain(row, name) for row, name in (await self._session.execute(stmt)).all()]

    async def get(self, tenant_id: str, agent_id: UUID) -> Optional[TenantAgent]:
        stmt = select(TenantAgentORM).where(
            TenantAgentORM.tenant_id == tenant_id, TenantAgentORM.agent_id == agent_id
        )
        row = (await self._session.execute(stmt)).scalars().first()
        return _to_domain(row) if row else None

    async def add(self, installation: TenantAgent) -> TenantAgent:
        row = TenantAgentORM(
            id=installation.id,
            tenant_id=installation.tenant_id,
            agent_id=installation.agent_id,
            status=installation.status.value,
            usage_count=installation.usage_count,
            last_used_at=installation.last_used_at,
            configuration=dict(installation.configuration),
            installed_at=installation.installed_at,
        )
        self._session.add(row)
        await self._session.flush()
        return _to_domain(row, installation.agent_name)

    async def update(self, installation: TenantAgent) -> TenantAgent:
        row = await self._session.get(TenantAgentORM, installation.id)
        if row is None:
            raise LookupError(f"tenant agent {installation.id} vanished")
        row.status = installation.status.value
        row.usage_count = installation.usage_count
        row.last_used_at = installation.last_used_at
        row.configuration = dict(installation.configuration)
        await self._session.flush()
        return _to_domain(row, installation.agent_name)

    async def delete(self, installation: TenantAgent) -> None:
        await self._session.execute(delete(TenantAgentORM).where(TenantAgentORM.id == installation.id))
        await self._session.flush()
