from __future__ import annotations

from typing import List, Optional, Set
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.tenancy.domain.entities.tenant_role import TenantRole
from src.tenancy.domain.repositories.role_repository import TenantRoleRepository
from src.tenancy.infrastructure.models import TenantRoleORM, UserTenantRoleORM


def _to_domain(row: TenantRoleORM) -> TenantRole:
    return TenantRole(
        id=row.id,
        tenant_id=row.tenant_id,
        name=row.name,
        guard=row.guard,
        permissions=list(row.permissions or []),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class TenantRoleRepositoryImpl(TenantRoleRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_for_tenant(self, tenant_id: str) -> List[TenantRole]:
        stmt = select(TenantRoleORM).where(TenantRoleORM.tenant_id == tenant_id).order_by(TenantRoleORM.name.asc())
        return [_to_domain(r) for r in (await self._session.execute(stmt)).scalars().all()]

    async def get(self, tenant_id: str, role_id: UUID) -> Optional[TenantRole]:
        stmt = select(TenantRoleORM).where(TenantRoleORM.id == role_id, TenantRoleORM.tenant_id == tenant_id)
        row = (await self._session.execute(stmt)).scalars().first()
        return _to_domain(row) if row else None

    async def name_exists(self, tenant_id: str, name: str, *, exclude_id: Optional[UUID] = None) -> bool:
        stmt = select(TenantRoleORM.id).where(TenantRoleORM.tenant_id == tenant_id, TenantRoleORM.name == name)
        if exclude_id is not None:
            stmt = stmt.where(TenantRoleORM.id != exclude_id)
        return (await self._session.execute(stmt.limit(1))).first() is not None

    async def add(self, role: TenantRole) -> TenantRole:
        row = TenantRoleORM(
            id=role.id,
            tenant_id=role.tenant_id,
            name=role.name,
            guard=role.guard,
            permissions=list(role.permissions),
        )
        self._session.add(row)
        await self._session.flush()
        return _to_domain(row)

    async def update(self, role: TenantRole) -> TenantRole:
        row = await self._session.get(TenantRoleORM, role.id)
        if row is None:
            raise LookupError(f"role {role.id} vanished")
        row.name = role.name
        row.permissions = list(role.permissions)
        await self._session.flush()
        return _to_domain(row)

    async def delete(self, role: TenantRole) -> None:
        row = await self._session.get(TenantRoleORM, role.id)
        if row is not None:
            await self._session.delete(row)
            await self._session.flush()

    async def count_assignments(self, role_id: UUID) -> int:
        stmt = select(func.count()).where(UserTenantRoleORM.role_id == role_id)
        return int((await self._session.execute(stmt)).scalar_one())

    async def assign(self, tenant_id: str, user_id: str, role_id: UUID) -> None:
        existing = await self._session.get(UserTenantRoleORM, (tenant_id, user_id, role_id))
        if existing is None:
            self._session.add(UserTenantRoleORM(tenant_id=tenant_id, user_id=user_id, role_id=role_id))
            await self._session.flush()

    async def permissions_for_user(self, tenant_id: str, user_id: str) -> Set[str]:
        stmt = (
            select(TenantRoleORM.permissions)
            .join(UserTenantRoleORM, UserTenantRoleORM.role_id == TenantRoleORM.id)
            .where(UserTenantRoleORM.tenant_id == tenant_id, UserTenantRoleORM.user_id == user_id)
        )
        names: Set[str] = set()
        for perms in (await self._session.execute(stmt)).scalars().all():
            names.update(perms or [])
        return names
