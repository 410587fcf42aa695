from __future__ import annotations

from typing import Optional

from src.shared.domain.activity import ActivityRecorder
from src.shared.exceptions import ValidationError
from src.shared.infrastructure.database.unit_of_work import IUnitOfWork
from src.tenancy.application.dtos import TenantProfileDTO
from src.tenancy.application.services.tenant_context_service import TenantContext
from src.tenancy.domain.repositories.membership_repository import MembershipRepository
from src.tenancy.domain.repositories.organization_repository import OrganizationRepository
from src.tenancy.domain.repositories.tenant_repository import TenantRepository


class TenantProfileService:
    """Read and edit the tenant the caller is currently scoped to."""

    def __init__(
        self,
        tenants: TenantRepository,
        organizations: OrganizationRepository,
        memberships: MembershipRepository,
        uow: IUnitOfWork,
        activity: ActivityRecorder,
    ) -> None:
        self._tenants = tenants
        self._organizations = organizations
        self._memberships = memberships
        self._uow = uow
        self._activity = activity

    async def get_profile(self, ctx: TenantContext) -> TenantProfileDTO:
        tenant = ctx.tenant
        org = await self._organizations.first_for_tenant(tenant.id)
        total_users = await self._memberships.count_active(tenant.id)
        return TenantProfileDTO.build(tenant, logo_url=org.logo_url if org else None, total_users=total_users)

    async def update_profile(
        self,
        ctx: TenantContext,
        *,
        name: Optional[str] = None,
        short_name: Optional[str] = None,
    ) -> TenantProfileDTO:
        tenant = ctx.tenant
        if short_name is not None and await self._tenants.short_name_taken(short_name, exclude_id=tenant.id):
            raise ValidationError(
                "The short name has already been taken.",
                details={"errors": {"short_name": ["The short name has already been taken."]}},
            )

        changes = {}
        if name is not None and name != tenant.name:
            changes["name"] = {"old": tenant.name, "new": name}
            tenant.name = name
        if short_name is not None and short_name != tenant.short_name:
            changes["short_name"] = {"old": tenant.short_name, "new": short_name}
            tenant.short_name = short_name

        if changes:
            async with self._uow:
                await self._tenants.update(tenant)
                await self._activity.record(
                    "Tenant profile updated",
                    subject_type="tenant",
                    subject_id=tenant.id,
                    causer_id=ctx.user_id,
                    properties={"changes": changes},
                )
                await self._uow.commit()
        return await self.get_profile(ctx)
