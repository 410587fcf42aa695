from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.billing.domain.entities.plan import PlanTier, PlanType, SubscriptionPlan
from src.billing.domain.repositories.plan_repository import PlanRepository
from src.billing.infrastructure.models import SubscriptionPlanORM


def plan_to_domain(row: SubscriptionPlanORM) -> SubscriptionPlan:
    return SubscriptionPlan(
        id=row.id,
        name=row.name,
        type=PlanType(row.type),
        tier=PlanTier(row.tier),
        price_monthly=row.price_monthly,
        price_annual=row.price_annual,
        features=list(row.features or []),
        limits=dict(row.limits or {}),
        highlight_features=list(row.highlight_features or []),
        max_users=row.max_users,
        max_agents=row.max_agents,
        storage_gb=row.storage_gb,
        execution_quota=row.execution_quota,
        overage_price_per_execution=row.overage_price_per_execution,
        is_active=row.is_active,
        is_published=row.is_published,
        is_archived=row.is_archived,
        trial_days=row.trial_days,
        display_order=row.display_order,
        description=row.description,
        metadata=dict(row.meta or {}),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class PlanRepositoryImpl(PlanRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_public(self, *, plan_type: Optional[PlanType] = None) -> List[SubscriptionPlan]:
        stmt = select(SubscriptionPlanORM).where(
            SubscriptionPlanORM.is_active.is_(True),
            SubscriptionPlanORM.is_archived.is_(False),
            SubscriptionPlanORM.is_published.is_(True),
        )
        if plan_type is not None:
            stmt = stmt.where(SubscriptionPlanORM.type == plan_type.value)
        stmt = stmt.order_by(SubscriptionPlanORM.display_order.asc(), SubscriptionPlanORM.name.asc())
        return [plan_to_domain(r) for r in (await self._session.execute(stmt)).scalars().all()]

    async def get(self, plan_id: UUID) -> Optional[SubscriptionPlan]:
        row = await self._session.get(SubscriptionPlanORM, plan_id)
        return plan_to_domain(row) if row else None

    async def add(self, plan: SubscriptionPlan) -> SubscriptionPlan:
        row = SubscriptionPlanORM(
            id=plan.id,
            name=plan.name,
            type=plan.type.value,
            tier=plan.tier.value,
            price_monthly=plan.price_monthly,
            price_annual=plan.price_annual,
            features=list(plan.features),
            limits=dict(plan.limits),
            highlight_features=list(plan.highlight_features),
            max_users=plan.max_users,
            max_agents=plan.max_agents,
            storage_gb=plan.storage_gb,
            execution_quota=plan.execution_quota,
            overage_price_per_execution=plan.overage_price_per_execution,
            is_active=plan.is_active,
            is_published=plan.is_published,
            is_archived=plan.is_archived,
            trial_days=plan.trial_days,
            display_order=plan.display_order,
            description=plan.description,
            meta=dict(plan.metadata),
        )
        self._session.add(row)
        await self._session.flush()
        return plan_to_domain(row)
