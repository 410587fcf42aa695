from __future__ import annotations

from typing import Any, Dict
from uuid import UUID

from src.shared.domain.activity import ActivityRecorder
from src.shared.exceptions import BusinessRuleError, ConflictError, NotFoundError
from src.shared.infrastructure.database.unit_of_work import IUnitOfWork
from src.shared.logging import get_logger
from src.shared.pagination import Page
from src.tenancy.application.dtos import OrganizationDTO
from src.tenancy.application.services.tenant_context_service import TenantContext
from src.tenancy.domain.entities.organization import EDITABLE_FIELDS, Organization
from src.tenancy.domain.repositories.membership_repository import MembershipRepository
from src.tenancy.domain.repositories.organization_repository import OrganizationRepository

logger = get_logger(__name__)


class OrganizationService:
    def __init__(
        self,
        organizations: OrganizationRepository,
        memberships: MembershipRepository,
        uow: IUnitOfWork,
        activity: ActivityRecorder,
    ) -> None:
        self._orgs = organizations
        self._memberships = memberships
        self._uow = uow
        self._activity = activity

    # ---------- helpers ----------

    async def _get_or_404(self, ctx: TenantContext, organization_id: UUID) -> Organization:
        org = await self._orgs.get(ctx.tenant_id, organization_id)
        if org is None:
            raise NotFoundError("Organization not found", code="organization_not_found")
        return org

    async def _current_or_404(self, ctx: TenantContext) -> Organization:
        org = await self._orgs.first_for_tenant(ctx.tenant_id)
        if org is None:
            raise NotFoundError.from_code("organization_not_found")
        return org

    async def _record(self, description: str, ctx: TenantContext, org: Organization, **properties: Any) -> None:
        await self._activity.record(
            description,
            subject_type="organization",
            subject_id=org.id,
            causer_id=ctx.user_id,
            properties={"tenant_id": ctx.tenant_id, **properties},
        )

    @staticmethod
    def _editable(data: Dict[str, Any]) -> Dict[str, Any]:
        return {k: v for k, v in data.items() if k in EDITABLE_FIELDS}

    # ---------- reads ----------

    async def list(self, ctx: TenantContext, *, page: int = 1, per_page: int = 15) -> Page[OrganizationDTO]:
        result = await self._orgs.list_for_tenant(ctx.tenant_id, page=page, per_page=per_page)
        return result.map(OrganizationDTO.from_entity)

    async def get(self, ctx: TenantContext, organization_id: UUID) -> OrganizationDTO:
        org = await self._get_or_404(ctx, organization_id)
        users_count = await self._memberships.count_active(ctx.tenant_id)
        return OrganizationDTO.from_entity(org, users_count=users_count)

    async def get_current(self, ctx: TenantContext) -> OrganizationDTO:
        org = await self._current_or_404(ctx)
        users_count = await self._memberships.count_active(ctx.tenant_id)
        return OrganizationDTO.from_entity(org, users_count=users_count)

    # ---------- writes ----------

    async def create(self, ctx: TenantContext, data: Dict[str, Any]) -> OrganizationDTO:
        fields = self._editable(data)
        org = Organization(tenant_id=ctx.tenant_id, **fields)
        async with self._uow:
            org = await self._orgs.add(org)
            await self._record("Organization created", ctx, org, name=org.name)
            await self._uow.commit()
        logger.info("Organization created", tenant_id=ctx.tenant_id, organization_id=str(org.id))
        return OrganizationDTO.from_entity(org)

    async def create_current(self, ctx: TenantContext, data: Dict[str, Any]) -> OrganizationDTO:
        if await self._orgs.first_for_tenant(ctx.tenant_id) is not None:
            raise ConflictError.from_code("organization_exists")
        return await self.create(ctx, data)

    async def update(self, ctx: TenantContext, organization_id: UUID, data: Dict[str, Any]) -> OrganizationDTO:
        org = await self._get_or_404(ctx, organization_id)
        return await self._apply_update(ctx, org, data)

    async def update_current(self, ctx: TenantContext, data: Dict[str, Any]) -> OrganizationDTO:
        org = await self._current_or_404(ctx)
        return await self._apply_update(ctx, org, data)

    async def _apply_update(self, ctx: TenantContext, org: Organization, data: Dict[str, Any]) -> OrganizationDTO:
        changed = org.apply(self._editable(data))
        if changed:
            async with self._uow:
                org = await self._orgs.update(org)
                await self._record("Organization updated", ctx, org, changes=sorted(changed))
                await self._uow.commit()
        return OrganizationDTO.from_entity(org)

    async def delete(self, ctx: TenantContext, organization_id: UUID) -> None:
        org = await self._get_or_404(ctx, organization_id)
        async with self._uow:
            await self._orgs.delete(org)
            await self._record("Organization deleted", ctx, org, name=org.name)
            await self._uow.commit()

    async def switch(self, ctx: TenantContext, organization_id: UUID) -> OrganizationDTO:
        org = await self._get_or_404(ctx, organization_id)
        if ctx.membership is None:
            raise BusinessRuleError("Switching organizations requires a tenant membership")
        membership = ctx.membership
        membership.current_organization_id = org.id
        async with self._uow:
            await self._memberships.update(membership)
            await self._record("Organization switched", ctx, org)
            await self._uow.commit()
        return OrganizationDTO.from_entity(org)
