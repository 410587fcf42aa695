from __future__ import annotations

from datetime import datetime
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.billing.domain.entities.agent_subscription import AgentSubscription, AgentSubscriptionStatus
from src.billing.domain.repositories.agent_subscription_repository import AgentSubscriptionRepository
from src.billing.infrastructure.models import AgentSubscriptionORM
from src.marketplace.infrastructure.models import AgentORM


def _to_domain(row: AgentSubscriptionORM, agent_name=None) -> AgentSubscription:
    return AgentSubscription(
        id=row.id,
        tenant_id=row.tenant_id,
        agent_id=row.agent_id,
        status=AgentSubscriptionStatus(row.status),
        monthly_price=row.monthly_price,
        auto_renew=row.auto_renew,
        next_billing_date=row.next_billing_date,
        expires_at=row.expires_at,
        agent_name=agent_name,
    )


class AgentSubscriptionRepositoryImpl(AgentSubscriptionRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def active_for_tenant(self, tenant_id: str) -> List[AgentSubscription]:
        stmt = (
            select(AgentSubscriptionORM, AgentORM.name)
            .join(AgentORM, AgentORM.id == AgentSubscriptionORM.agent_id)
            .where(
                AgentSubscriptionORM.tenant_id == tenant_id,
                AgentSubscriptionORM.status == AgentSubscriptionStatus.ACTIVE.value,
            )
            .order_by(AgentORM.name.asc())
        )
        return [_to_domain(row, name) for row, name in (await self._session.execute(stmt)).all()]

    async def due_for_renewal(self, now: datetime) -> List[AgentSubscription]:
        stmt = select(AgentSubscriptionORM).where(
            AgentSubscriptionORM.status == AgentSubscriptionStatus.ACTIVE.value,
            AgentSubscriptionORM.auto_renew.is_(True),
            AgentSubscriptionORM.next_billing_date <= now,
        )
        return [_to_domain(r) for r in (await self._session.execute(stmt)).scalars().all()]

    async def update(self, subscription: AgentSubscription) -> AgentSubscription:
        row = await self._session.get(AgentSubscriptionORM, subscription.id)
        if row is None:
            raise LookupError(f"agent subscription {subscription.id} vanished")
        row.status = subscription.status.value
        row.auto_renew = subscription.auto_renew
        row.monthly_price = subscription.monthly_price
        row.next_billing_date = subscription.next_billing_date
        row.expires_at = subscription.expires_at
        await self._session.flush()
        return _to_domain(row, subscription.agent_name)
