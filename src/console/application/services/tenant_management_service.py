from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from src.billing.application.dtos import SubscriptionDTO
from src.billing.domain.entities.plan import BillingCycle, SubscriptionPlan
from src.billing.domain.entities.subscription import Subscription
from src.billing.domain.repositories.plan_repository import PlanRepository
from src.billing.domain.repositories.subscription_repository import SubscriptionRepository
from src.console.application.dtos import (
    AdminTenantDTO,
    SubscriptionChangeDTO,
    SubscriptionHistoryDTO,
    TenantStatisticsDTO,
)
from src.console.domain.repositories.tenant_directory import TenantDirectory, TenantListing, TenantSearchCriteria
from src.shared.clock import utcnow
from src.shared.domain.activity import ActivityRecorder
from src.shared.exceptions import NotFoundError
from src.shared.infrastructure.database.unit_of_work import IUnitOfWork
from src.shared.logging import get_logger
from src.shared.pagination import Page
from src.tenancy.domain.entities.tenant import TenantStatus
from src.tenancy.domain.repositories.tenant_repository import TenantRepository

logger = get_logger(__name__)


class TenantManagementService:
    """
    Platform-staff operations across tenants.

    Every mutation runs in one unit of work together with its activity
    entry, so the audit trail never records a change that was rolled back.
    """

    def __init__(
        self,
        directory: TenantDirectory,
        tenants: TenantRepository,
        plans: PlanRepository,
        subscriptions: SubscriptionRepository,
        uow: IUnitOfWork,
        activity: ActivityRecorder,
    ) -> None:
        self._directory = directory
        self._tenants = tenants
        self._plans = plans
        self._subscriptions = subscriptions
        self._uow = uow
        self._activity = activity

    async def _listing(self, tenant_id: str) -> TenantListing:
        listing = await self._directory.get(tenant_id)
        if listing is None:
            raise NotFoundError.from_code("tenant_not_found")
        return listing

    async def index(self, criteria: TenantSearchCriteria) -> Page[AdminTenantDTO]:
        return (await self._directory.search(criteria)).map(AdminTenantDTO.from_listing)

    async def show(self, tenant_id: str) -> AdminTenantDTO:
        return AdminTenantDTO.from_listing(await self._listing(tenant_id))

    async def update_status(
        self, admin_id: str, tenant_id: str, status: TenantStatus, reason: Optional[str] = None
    ) -> AdminTenantDTO:
        listing = await self._listing(tenant_id)
        tenant = listing.tenant
        previous = tenant.change_status(status)
        async with self._uow:
            await self._tenants.update(tenant)
            await self._activity.record(
                "tenant_status_changed",
                subject_type="tenant",
                subject_id=tenant.id,
                causer_id=admin_id,
                properties={"old_status": previous.value, "new_status": status.value, "reason": reason},
            )
            await self._uow.commit()
        return await self.show(tenant_id)

    async def change_subscription(
        self,
        admin_id: str,
        tenant_id: str,
        *,
        plan_id: UUID,
        billing_cycle: BillingCycle,
        starts_immediately: bool = False,
        prorate: bool = False,
        now: Optional[datetime] = None,
    ) -> SubscriptionChangeDTO:
        now = now or utcnow()
        listing = await self._listing(tenant_id)
        plan = await self._plans.get(plan_id)
        if plan is None:
            raise NotFoundError.from_code("plan_not_found")

        current = listing.subscription
        async with self._uow:
            if current is not None:
                current.cancel(now=now, ends_at=now if starts_immediately else current.current_period_end)
                await self._subscriptions.update(current)

            starts_at = now if starts_immediately else ((current.ends_at if current else None) or now)
            subscription = Subscription.for_plan(
                tenant_id,
                plan,
                billing_cycle=billing_cycle,
                starts_at=starts_at,
                now=now,
                metadata={
                    "changed_by_admin": True,
                    "admin_id": admin_id,
                    "previous_plan_id": str(current.plan_id) if current else None,
                    "prorate": prorate,
                },
            )
            subscription = await self._subscriptions.add(subscription)
            await self._activity.record(
                "tenant_subscription_changed",
                subject_type="tenant",
                subject_id=tenant_id,
                causer_id=admin_id,
                properties={
                    "old_plan_id": str(current.plan_id) if current else None,
                    "new_plan_id": str(plan.id),
                    "billing_cycle": billing_cycle.value,
                },
            )
            await self._uow.commit()

        logger.info("Subscription changed by admin", tenant_id=tenant_id, plan_id=str(plan.id), admin_id=admin_id)
        sub_dto = SubscriptionDTO.from_entity(subscription, plan)
        return SubscriptionChangeDTO(tenant=AdminTenantDTO.from_tenant(listing.tenant, sub_dto), subscription=sub_dto)

    async def history(self, tenant_id: str) -> SubscriptionHistoryDTO:
        listing = await self._listing(tenant_id)
        plans: Dict[UUID, Optional[SubscriptionPlan]] = {}
        items: List[SubscriptionDTO] = []
        for sub in await self._subscriptions.history_for_tenant(tenant_id):
            if sub.plan_id not in plans:
                plans[sub.plan_id] = await self._plans.get(sub.plan_id)
            items.append(SubscriptionDTO.from_entity(sub, plans[sub.plan_id]))
        return SubscriptionHistoryDTO(tenant=AdminTenantDTO.from_listing(listing), subscriptions=items)

    async def extend_trial(
        self,
        admin_id: str,
        tenant_id: str,
        days: int,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> SubscriptionDTO:
        listing = await self._listing(tenant_id)
        subscription = listing.subscription
        if subscription is None:
            raise NotFoundError.from_code("subscription_not_found")

        old_trial_ends_at = subscription.trial_ends_at
        new_trial_ends_at = subscription.extend_trial(days, now or utcnow())
        async with self._uow:
            await self._subscriptions.update(subscription)
            await self._activity.record(
                "trial_extended_by_admin",
                subject_type="tenant",
                subject_id=tenant_id,
                causer_id=admin_id,
                properties={
                    "old_trial_ends_at": old_trial_ends_at.isoformat() if old_trial_ends_at else None,
                    "new_trial_ends_at": new_trial_ends_at.isoformat(),
                    "days_added": days,
                    "reason": reason,
                },
            )
            await self._uow.commit()
        return SubscriptionDTO.from_entity(subscription, listing.plan)

    async def statistics(self, now: Optional[datetime] = None) -> TenantStatisticsDTO:
        return TenantStatisticsDTO.from_stats(await self._directory.statistics(now or utcnow()))

    async def destroy(self, admin_id: str, tenant_id: str, now: Optional[datetime] = None) -> None:
        now = now or utcnow()
        listing = await self._listing(tenant_id)
        tenant = listing.tenant
        async with self._uow:
            canceled = 0
            for sub in await self._subscriptions.list_current_for_tenant(tenant_id):
                sub.cancel(now=now)
                await self._subscriptions.update(sub)
                canceled += 1
            tenant.soft_delete(now)
            await self._tenants.update(tenant)
            await self._activity.record(
                "tenant_deleted_by_admin",
                subject_type="tenant",
                subject_id=tenant_id,
                causer_id=admin_id,
                properties={"tenant_name": tenant.name, "canceled_subscriptions": canceled},
            )
            await self._uow.commit()
        logger.info("Tenant deleted by admin", tenant_id=tenant_id, admin_id=admin_id)
