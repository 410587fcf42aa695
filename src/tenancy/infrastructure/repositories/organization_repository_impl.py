from __future__ import annotations

from typing import Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.shared.pagination import Page, page_offset
from src.tenancy.domain.entities.organization import EDITABLE_FIELDS, Organization
from src.tenancy.domain.repositories.organization_repository import OrganizationRepository
from src.tenancy.infrastructure.models import OrganizationORM


def _to_domain(row: OrganizationORM) -> Organization:
    return Organization(
        id=row.id,
        tenant_id=row.tenant_id,
        name=row.name,
        short_name=row.short_name,
        industry=row.industry,
        company_size=row.company_size,
        country=row.country,
        phone=row.phone,
        timezone=row.timezone,
        logo_url=row.logo_url,
        description=row.description,
        settings=dict(row.settings or {}),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class OrganizationRepositoryImpl(OrganizationRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_for_tenant(self, tenant_id: str, *, page: int = 1, per_page: int = 15) -> Page[Organization]:
        base = select(OrganizationORM).where(OrganizationORM.tenant_id == tenant_id)
        total = (await self._session.execute(select(func.count()).select_from(base.subquery()))).scalar_one()
        rows = (
            await self._session.execute(
                base.order_by(OrganizationORM.created_at.asc()).offset(page_offset(page, per_page)).limit(per_page)
            )
        ).scalars().all()
        return Page(items=[_to_domain(r) for r in rows], total=int(total), page=page, per_page=per_page)

    async def get(self, tenant_id: str, organization_id: UUID) -> Optional[Organization]:
        stmt = select(OrganizationORM).where(
            OrganizationORM.id == organization_id,
            OrganizationORM.tenant_id == tenant_id,
        )
        row = (await self._session.execute(stmt)).scalars().first()
        return _to_domain(row) if row else None

    async def first_for_tenant(self, tenant_id: str) -> Optional[Organization]:
        stmt = (
            select(OrganizationORM)
            .where(OrganizationORM.tenant_id == tenant_id)
            .order_by(OrganizationORM.created_at.asc())
            .limit(1)
        )
        row = (await self._session.execute(stmt)).scalars().first()
        return _to_domain(row) if row else None

    async def add(self, organization: Organization) -> Organization:
        row = OrganizationORM(id=organization.id, tenant_id=organization.tenant_id)
        for name in EDITABLE_FIELDS:
            setattr(row, name, getattr(organization, name))
        self._session.add(row)
        await self._session.flush()
        return _to_domain(row)

    async def update(self, organization: Organization) -> Organization:
        row = await self._session.get(OrganizationORM, organization.id)
        if row is None or row.tenant_id != organization.tenant_id:
            raise LookupError(f"organization {organization.id} vanished")
        for name in EDITABLE_FIELDS:
            setattr(row, name, getattr(organization, name))
        await self._session.flush()
        return _to_domain(row)

    async def delete(self, organization: Organization) -> None:
        row = await self._session.get(OrganizationORM, organization.id)
        if row is not None:
            await self._session.delete(row)
            await self._session.flush()
