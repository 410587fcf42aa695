from __future__ import annotations

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.tenancy.domain.entities.tenant import Tenant, TenantStatus, TenantType
from src.tenancy.domain.repositories.tenant_repository import TenantRepository
from src.tenancy.infrastructure.models import TenantORM


def tenant_to_domain(row: TenantORM) -> Tenant:
    return Tenant(
        id=row.id,
        name=row.name,
        short_name=row.short_name,
        email=row.email,
        type=TenantType(row.type),
        status=TenantStatus(row.status),
        subdomain_preference=row.subdomain_preference,
        custom_domain=row.custom_domain,
        trial_ends_at=row.trial_ends_at,
        start_date=row.start_date,
        end_date=row.end_date,
        created_at=row.created_at,
        updated_at=row.updated_at,
        deleted_at=row.deleted_at,
    )


def apply_to_row(row: TenantORM, tenant: Tenant) -> None:
    row.name = tenant.name
    row.short_name = tenant.short_name
    row.email = tenant.email
    row.type = tenant.type.value
    row.status = tenant.status.value
    row.subdomain_preference = tenant.subdomain_preference
    row.custom_domain = tenant.custom_domain
    row.trial_ends_at = tenant.trial_ends_at
    row.start_date = tenant.start_date
    row.end_date = tenant.end_date
    row.deleted_at = tenant.deleted_at


class TenantRepositoryImpl(TenantRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, tenant_id: str, *, include_deleted: bool = False) -> Optional[Tenant]:
        stmt = select(TenantORM).where(TenantORM.id == tenant_id)
        if not include_deleted:
            stmt = stmt.where(TenantORM.deleted_at.is_(None))
        row = (await self._session.execute(stmt)).scalars().first()
        return tenant_to_domain(row) if row else None

    async def find_active(self, tenant_id: str) -> Optional[Tenant]:
        stmt = select(TenantORM).where(
            TenantORM.id == tenant_id,
            TenantORM.status == TenantStatus.ACTIVE.value,
            TenantORM.deleted_at.is_(None),
        )
        row = (await self._session.execute(stmt)).scalars().first()
        return tenant_to_domain(row) if row else None

    async def find_active_by_custom_domain(self, host: str) -> Optional[Tenant]:
        stmt = select(TenantORM).where(
            func.lower(TenantORM.custom_domain) == host.lower(),
            TenantORM.status == TenantStatus.ACTIVE.value,
            TenantORM.deleted_at.is_(None),
        )
        row = (await self._session.execute(stmt)).scalars().first()
        return tenant_to_domain(row) if row else None

    async def short_name_taken(self, short_name: str, *, exclude_id: Optional[str] = None) -> bool:
        stmt = select(TenantORM.id).where(TenantORM.short_name == short_name)
        if exclude_id is not None:
            stmt = stmt.where(TenantORM.id != exclude_id)
        return (await self._session.execute(stmt.limit(1))).first() is not None

    async def update(self, tenant: Tenant) -> Tenant:
        row = await self._session.get(TenantORM, tenant.id)
        if row is None:
            raise LookupError(f"tenant {tenant.id} vanished")
        apply_to_row(row, tenant)
        await self._session.flush()
        return tenant_to_domain(row)
