from __future__ import annotations

from typing import Dict, List, Optional
from uuid import UUID

from src.shared.domain.activity import ActivityRecorder
from src.shared.exceptions import BusinessRuleError, NotFoundError
from src.shared.infrastructure.database.unit_of_work import IUnitOfWork
from src.shared.permissions import TENANT_PERMISSIONS, group_permissions, invalid_tenant_permissions
from src.tenancy.application.dtos import TenantRoleDTO
from src.tenancy.application.services.tenant_context_service import TenantContext
from src.tenancy.domain.entities.tenant_role import TenantRole
from src.tenancy.domain.repositories.role_repository import TenantRoleRepository


class TenantRoleService:
    """Custom roles a tenant defines over the tenant permission catalog."""

    def __init__(self, roles: TenantRoleRepository, uow: IUnitOfWork, activity: ActivityRecorder) -> None:
        self._roles = roles
        self._uow = uow
        self._activity = activity

    # ---------- helpers ----------

    async def _get_or_404(self, ctx: TenantContext, role_id: UUID) -> TenantRole:
        role = await self._roles.get(ctx.tenant_id, role_id)
        if role is None:
            raise NotFoundError.from_code("role_not_found")
        return role

    async def _ensure_unique(self, ctx: TenantContext, name: str, exclude_id: Optional[UUID] = None) -> None:
        if await self._roles.name_exists(ctx.tenant_id, name, exclude_id=exclude_id):
            raise BusinessRuleError.from_code("role_exists")

    @staticmethod
    def _ensure_tenant_scoped(permissions: List[str]) -> None:
        invalid = invalid_tenant_permissions(permissions)
        if invalid:
            raise BusinessRuleError.from_code("invalid_permissions", details={"invalid": invalid})

    # ---------- operations ----------

    async def list(self, ctx: TenantContext) -> List[TenantRoleDTO]:
        return [TenantRoleDTO.from_entity(r) for r in await self._roles.list_for_tenant(ctx.tenant_id)]

    async def get(self, ctx: TenantContext, role_id: UUID) -> TenantRoleDTO:
        return TenantRoleDTO.from_entity(await self._get_or_404(ctx, role_id))

    async def create(self, ctx: TenantContext, name: str, permissions: List[str]) -> TenantRoleDTO:
        await self._ensure_unique(ctx, name)
        self._ensure_tenant_scoped(permissions)

        role = TenantRole(tenant_id=ctx.tenant_id, name=name)
        role.sync_permissions(permissions)
        async with self._uow:
            role = await self._roles.add(role)
            await self._activity.record(
                "Tenant role created",
                subject_type="tenant_role",
                subject_id=role.id,
                causer_id=ctx.user_id,
                properties={"tenant_id": ctx.tenant_id, "name": name, "permissions": role.permissions},
            )
            await self._uow.commit()
        return TenantRoleDTO.from_entity(role)

    async def update(
        self,
        ctx: TenantContext,
        role_id: UUID,
        *,
        name: Optional[str] = None,
        permissions: Optional[List[str]] = None,
    ) -> TenantRoleDTO:
        role = await self._get_or_404(ctx, role_id)
        if name is not None and name != role.name:
            await self._ensure_unique(ctx, name, exclude_id=role.id)
            role.name = name
        if permissions is not None:
            self._ensure_tenant_scoped(permissions)
            role.sync_permissions(permissions)

        async with self._uow:
            role = await self._roles.update(role)
            await self._activity.record(
                "Tenant role updated",
                subject_type="tenant_role",
                subject_id=role.id,
                causer_id=ctx.user_id,
                properties={"tenant_id": ctx.tenant_id, "name": role.name, "permissions": role.permissions},
            )
            await self._uow.commit()
        return TenantRoleDTO.from_entity(role)

    async def delete(self, ctx: TenantContext, role_id: UUID) -> None:
        role = await self._get_or_404(ctx, role_id)
        assigned = await self._roles.count_assignments(role.id)
        if assigned > 0:
            raise BusinessRuleError(
                f"Cannot delete role. It is assigned to {assigned} user(s)",
                code="role_in_use",
                details={"assigned_users": assigned},
            )
        async with self._uow:
            await self._roles.delete(role)
            await self._activity.record(
                "Tenant role deleted",
                subject_type="tenant_role",
                subject_id=role.id,
                causer_id=ctx.user_id,
                properties={"tenant_id": ctx.tenant_id, "name": role.name},
            )
            await self._uow.commit()

    @staticmethod
    def list_permissions() -> Dict[str, object]:
        names = list(TENANT_PERMISSIONS)
        return {"all": names, "grouped": group_permissions(names)}
