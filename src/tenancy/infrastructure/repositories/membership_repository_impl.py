from __future__ import annotations

from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.shared.roles import MembershipRole
from src.tenancy.domain.entities.membership import MembershipStatus, TenantMembership
from src.tenancy.domain.repositories.membership_repository import MembershipRepository
from src.tenancy.infrastructure.models import TenantMembershipORM


def _to_domain(row: TenantMembershipORM) -> TenantMembership:
    return TenantMembership(
        tenant_id=row.tenant_id,
        user_id=row.user_id,
        status=MembershipStatus(row.status),
        role=MembershipRole(row.role),
        current_organization_id=row.current_organization_id,
        invited_at=row.invited_at,
        joined_at=row.joined_at,
        left_at=row.left_at,
        metadata=dict(row.meta or {}),
    )


def _apply(row: TenantMembershipORM, m: TenantMembership) -> None:
    row.status = m.status.value
    row.role = m.role.value
    row.current_organization_id = m.current_organization_id
    row.invited_at = m.invited_at
    row.joined_at = m.joined_at
    row.left_at = m.left_at
    row.meta = dict(m.metadata)


class MembershipRepositoryImpl(MembershipRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, tenant_id: str, user_id: str) -> Optional[TenantMembership]:
        row = await self._session.get(TenantMembershipORM, (tenant_id, user_id))
        return _to_domain(row) if row else None

    async def count_active(self, tenant_id: str) -> int:
        stmt = select(func.count()).where(
            TenantMembershipORM.tenant_id == tenant_id,
            TenantMembershipORM.status == MembershipStatus.ACTIVE.value,
        )
        return int((await self._session.execute(stmt)).scalar_one())

    async def add(self, membership: TenantMembership) -> TenantMembership:
        row = TenantMembershipORM(tenant_id=membership.tenant_id, user_id=membership.user_id)
        _apply(row, membership)
        self._session.add(row)
        await self._session.flush()
        return _to_domain(row)

    async def update(self, membership: TenantMembership) -> TenantMembership:
        row = await self._session.get(TenantMembershipORM, (membership.tenant_id, membership.user_id))
        if row is None:
            raise LookupError(f"membership {membership.tenant_id}/{membership.user_id} vanished")
        _apply(row, membership)
        await self._session.flush()
        return _to_domain(row)
