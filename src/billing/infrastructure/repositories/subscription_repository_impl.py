from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.billing.domain.entities.plan import BillingCycle
from src.billing.domain.entities.subscription import CURRENT_STATUSES, Subscription, SubscriptionStatus
from src.billing.domain.repositories.subscription_repository import SubscriptionRepository
from src.billing.infrastructure.models import SubscriptionORM

_CURRENT = [s.value for s in CURRENT_STATUSES]


def subscription_to_domain(row: SubscriptionORM) -> Subscription:
    return Subscription(
        id=row.id,
        tenant_id=row.tenant_id,
        plan_id=row.plan_id,
        status=SubscriptionStatus(row.status),
        billing_cycle=BillingCycle(row.billing_cycle),
        auto_renew=row.auto_renew,
        starts_at=row.starts_at,
        ends_at=row.ends_at,
        trial_ends_at=row.trial_ends_at,
        canceled_at=row.canceled_at,
        current_period_start=row.current_period_start,
        current_period_end=row.current_period_end,
        next_billing_date=row.next_billing_date,
        executions_used=row.executions_used,
        execution_quota=row.execution_quota,
        metadata=dict(row.meta or {}),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _apply(row: SubscriptionORM, sub: Subscription) -> None:
    row.plan_id = sub.plan_id
    row.status = sub.status.value
    row.billing_cycle = sub.billing_cycle.value
    row.auto_renew = sub.auto_renew
    row.starts_at = sub.starts_at
    row.ends_at = sub.ends_at
    row.trial_ends_at = sub.trial_ends_at
    row.canceled_at = sub.canceled_at
    row.current_period_start = sub.current_period_start
    row.current_period_end = sub.current_period_end
    row.next_billing_date = sub.next_billing_date
    row.executions_used = sub.executions_used
    row.execution_quota = sub.execution_quota
    row.meta = dict(sub.metadata)


class SubscriptionRepositoryImpl(SubscriptionRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _list(self, stmt) -> List[Subscription]:
        return [subscription_to_domain(r) for r in (await self._session.execute(stmt)).scalars().all()]

    async def current_for_tenant(self, tenant_id: str) -> Optional[Subscription]:
        stmt = (
            select(SubscriptionORM)
            .where(SubscriptionORM.tenant_id == tenant_id, SubscriptionORM.status.in_(_CURRENT))
            .order_by(SubscriptionORM.created_at.desc())
            .limit(1)
        )
        row = (await self._session.execute(stmt)).scalars().first()
        return subscription_to_domain(row) if row else None

    async def list_current_for_tenant(self, tenant_id: str) -> List[Subscription]:
        return await self._list(
            select(SubscriptionORM).where(
                SubscriptionORM.tenant_id == tenant_id, SubscriptionORM.status.in_(_CURRENT)
            )
        )

    async def history_for_tenant(self, tenant_id: str) -> List[Subscription]:
        return await self._list(
            select(SubscriptionORM)
            .where(SubscriptionORM.tenant_id == tenant_id)
            .order_by(SubscriptionORM.created_at.desc())
        )

    async def add(self, subscription: Subscription) -> Subscription:
        row = SubscriptionORM(id=subscription.id, tenant_id=subscription.tenant_id)
        _apply(row, subscription)
        self._session.add(row)
        await self._session.flush()
        return subscription_to_domain(row)

    async def update(self, subscription: Subscription) -> Subscription:
        row = await self._session.get(SubscriptionORM, subscription.id)
        if row is None:
            raise LookupError(f"subscription {subscription.id} vanished")
        _apply(row, subscription)
        await self._session.flush()
        return subscription_to_domain(row)

    async def due_for_billing(self, now: datetime) -> List[Subscription]:
        return await self._list(
            select(SubscriptionORM).where(
                SubscriptionORM.status == SubscriptionStatus.ACTIVE.value,
                or_(SubscriptionORM.next_billing_date.is_(None), SubscriptionORM.next_billing_date <= now),
            )
        )

    async def expired_without_renewal(self, now: datetime) -> List[Subscription]:
        return await self._list(
            select(SubscriptionORM).where(
                SubscriptionORM.status == SubscriptionStatus.ACTIVE.value,
                SubscriptionORM.auto_renew.is_(False),
                SubscriptionORM.current_period_end < now,
            )
        )

    async def with_usage(self) -> List[Subscription]:
        return await self._list(
            select(SubscriptionORM).where(
                SubscriptionORM.status == SubscriptionStatus.ACTIVE.value,
                SubscriptionORM.executions_used > 0,
            )
        )
