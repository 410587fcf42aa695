from __future__ import annotations

from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.marketplace.domain.entities.agent_run import AgentRun, AgentRunStatus
from src.marketplace.domain.repositories.agent_run_repository import AgentRunRepository
from src.marketplace.infrastructure.models import AgentRunORM


def _to_domain(row: AgentRunORM) -> AgentRun:
    return AgentRun(
        id=row.id,
        agent_id=row.agent_id,
        tenant_id=row.tenant_id,
        status=AgentRunStatus(row.status),
        input=dict(row.input or {}),
        output=row.output,
        error=row.error,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class AgentRunRepositoryImpl(AgentRunRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, run: AgentRun) -> AgentRun:
        row = AgentRunORM(
            id=run.id,
            agent_id=run.agent_id,
            tenant_id=run.tenant_id,
            status=run.status.value,
            input=dict(run.input),
            output=run.output,
            error=run.error,
        )
        self._session.add(row)
        await self._session.flush()
        return _to_domain(row)

    async def get(self, run_id: UUID, *, tenant_id: Optional[str] = None) -> Optional[AgentRun]:
        stmt = select(AgentRunORM).where(AgentRunORM.id == run_id)
        if tenant_id is not None:
            stmt = stmt.where(AgentRunORM.tenant_id == tenant_id)
        row = (await self._session.execute(stmt)).scalars().first()
        return _to_domain(row) if row else None

    async def update(self, run: AgentRun) -> AgentRun:
        row = await self._session.get(AgentRunORM, run.id)
        if row is None:
            raise LookupError(f"agent run {run.id} vanished")
        row.status = run.status.value
        row.output = run.output
        row.error = run.error
        await self._session.flush()
        return _to_domain(row)
