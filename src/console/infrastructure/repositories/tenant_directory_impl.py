from __future__ import annotations

from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import and_, exists, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.billing.domain.entities.plan import SubscriptionPlan
from src.billing.domain.entities.subscription import CURRENT_STATUSES, Subscription, SubscriptionStatus
from src.billing.infrastructure.models import SubscriptionORM, SubscriptionPlanORM
from src.billing.infrastructure.repositories.plan_repository_impl import plan_to_domain
from src.billing.infrastructure.repositories.subscription_repository_impl import subscription_to_domain
from src.console.domain.repositories.tenant_directory import (
    TenantDirectory,
    TenantListing,
    TenantSearchCriteria,
    TenantStatistics,
)
from src.shared.infrastructure.database.filters import LIKE_ESCAPE, contains_pattern
from src.shared.pagination import Page, page_offset
from src.tenancy.domain.entities.tenant import TenantType
from src.tenancy.infrastructure.models import TenantORM
from src.tenancy.infrastructure.repositories.tenant_repository_impl import tenant_to_domain

_CURRENT = [s.value for s in CURRENT_STATUSES]
RECENT_SIGNUP_DAYS = 30


def _current_subscription_exists(*extra):
    return exists().where(
        SubscriptionORM.tenant_id == TenantORM.id,
        SubscriptionORM.status.in_(_CURRENT),
        *extra,
    )


class TenantDirectoryImpl(TenantDirectory):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def search(self, criteria: TenantSearchCriteria) -> Page[TenantListing]:
        filters = [TenantORM.deleted_at.is_(None)]
        if criteria.search:
            needle = contains_pattern(criteria.search)
            filters.append(
                or_(
                    func.lower(TenantORM.name).like(needle, escape=LIKE_ESCAPE),
                    func.lower(TenantORM.email).like(needle, escape=LIKE_ESCAPE),
                    func.lower(TenantORM.subdomain_preference).like(needle, escape=LIKE_ESCAPE),
                )
            )
        if criteria.type is not None:
            filters.append(TenantORM.type == criteria.type.value)
        if criteria.status is not None:
            filters.append(TenantORM.status == criteria.status.value)
        if criteria.plan_id is not None:
            filters.append(_current_subscription_exists(SubscriptionORM.plan_id == criteria.plan_id))
        if criteria.has_subscription is True:
            filters.append(_current_subscription_exists())
        elif criteria.has_subscription is False:
            filters.append(~_current_subscription_exists())

        total = (
            await self._session.execute(select(func.count()).select_from(TenantORM).where(*filters))
        ).scalar_one()

        column = getattr(TenantORM, criteria.sort_by)
        order = column.asc() if criteria.sort_order == "asc" else column.desc()
        stmt = (
            select(TenantORM)
            .where(*filters)
            .order_by(order, TenantORM.id)
            .offset(page_offset(criteria.page, criteria.per_page))
            .limit(criteria.per_page)
        )
        rows = (await self._session.execute(stmt)).scalars().all()
        current = await self._current_subscriptions([r.id for r in rows])
        items = []
        for row in rows:
            sub, plan = current.get(row.id, (None, None))
            items.append(TenantListing(tenant=tenant_to_domain(row), subscription=sub, plan=plan))
        return Page(items=items, total=total, page=criteria.page, per_page=criteria.per_page)

    async def get(self, tenant_id: str) -> Optional[TenantListing]:
        stmt = select(TenantORM).where(TenantORM.id == tenant_id, TenantORM.deleted_at.is_(None))
        row = (await self._session.execute(stmt)).scalars().first()
        if row is None:
            return None
        sub, plan = (await self._current_subscriptions([row.id])).get(row.id, (None, None))
        return TenantListing(tenant=tenant_to_domain(row), subscription=sub, plan=plan)

    async def statistics(self, now: datetime) -> TenantStatistics:
        live = TenantORM.deleted_at.is_(None)
        total = (await self._session.execute(select(func.count()).select_from(TenantORM).where(live))).scalar_one()

        by_type: Dict[str, int] = {t.value: 0 for t in TenantType}
        type_rows = await self._session.execute(
            select(TenantORM.type, func.count()).where(live).group_by(TenantORM.type)
        )
        by_type.update({t: int(n) for t, n in type_rows.all()})

        status_rows = await self._session.execute(
            select(TenantORM.status, func.count()).where(live).group_by(TenantORM.status)
        )
        by_status = {s: int(n) for s, n in status_rows.all()}

        with_active = (
            await self._session.execute(
                select(func.count()).select_from(TenantORM).where(live, _current_subscription_exists())
            )
        ).scalar_one()

        on_trial = (
            await self._session.execute(
                select(func.count())
                .select_from(SubscriptionORM)
                .where(
                    SubscriptionORM.status == SubscriptionStatus.TRIALING.value,
                    SubscriptionORM.trial_ends_at > now,
                )
            )
        ).scalar_one()

        plan_rows = await self._session.execute(
            select(
                SubscriptionPlanORM.id,
                SubscriptionPlanORM.name,
                SubscriptionPlanORM.type,
                SubscriptionPlanORM.tier,
                func.count(SubscriptionORM.id),
            )
            .outerjoin(
                SubscriptionORM,
                and_(SubscriptionORM.plan_id == SubscriptionPlanORM.id, SubscriptionORM.status.in_(_CURRENT)),
            )
            .group_by(SubscriptionPlanORM.id, SubscriptionPlanORM.name, SubscriptionPlanORM.type, SubscriptionPlanORM.tier)
            .order_by(SubscriptionPlanORM.display_order, SubscriptionPlanORM.name)
        )
        by_plan = [
            {"id": pid, "name": name, "type": ptype, "tier": tier, "active_subscriptions": int(count)}
            for pid, name, ptype, tier, count in plan_rows.all()
        ]

        recent = (
            await self._session.execute(
                select(func.count())
                .select_from(TenantORM)
                .where(live, TenantORM.created_at >= now - timedelta(days=RECENT_SIGNUP_DAYS))
            )
        ).scalar_one()

        return TenantStatistics(
            total_tenants=total,
            by_type=by_type,
            by_status=by_status,
            with_active_subscription=with_active,
            on_trial=on_trial,
            subscription_by_plan=by_plan,
            recent_signups=recent,
        )

    async def _current_subscriptions(
        self, tenant_ids: Iterable[str]
    ) -> Dict[str, Tuple[Subscription, Optional[SubscriptionPlan]]]:
        ids: List[str] = list(tenant_ids)
        if not ids:
            return {}
        stmt = (
            select(SubscriptionORM, SubscriptionPlanORM)
            .outerjoin(SubscriptionPlanORM, SubscriptionPlanORM.id == SubscriptionORM.plan_id)
            .where(SubscriptionORM.tenant_id.in_(ids), SubscriptionORM.status.in_(_CURRENT))
            .order_by(SubscriptionORM.created_at.desc())
        )
        result: Dict[str, Tuple[Subscription, Optional[SubscriptionPlan]]] = {}
        for sub_row, plan_row in (await self._session.execute(stmt)).all():
            # newest wins
            if sub_row.tenant_id not in result:
                result[sub_row.tenant_id] = (
                    subscription_to_domain(sub_row),
                    plan_to_domain(plan_row) if plan_row is not None else None,
                )
        return result
