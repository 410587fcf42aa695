from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from src.console.application.dtos import (
    ImpersonationDTO,
    ImpersonationEndedDTO,
    ImpersonationStartedDTO,
    TenantBriefDTO,
)
from src.console.domain.entities.impersonation import ImpersonationSession, ImpersonationStatus
from src.console.domain.repositories.impersonation_repository import ImpersonationRepository
from src.shared.auth import CurrentUser
from src.shared.clock import utcnow
from src.shared.domain.activity import ActivityRecorder
from src.shared.exceptions import BusinessRuleError, ForbiddenError, NotFoundError
from src.shared.infrastructure.database.unit_of_work import IUnitOfWork
from src.shared.logging import get_logger, log_security_event
from src.shared.pagination import Page
from src.tenancy.domain.repositories.tenant_repository import TenantRepository

logger = get_logger(__name__)

LOGS_VIEW_PERMISSION = "console.logs.view"
DEFAULT_REASON = "Support impersonation"


class ImpersonationService:
    """Start, end and audit support impersonation sessions."""

    def __init__(
        self,
        impersonations: ImpersonationRepository,
        tenants: TenantRepository,
        uow: IUnitOfWork,
        activity: ActivityRecorder,
        *,
        default_ttl_minutes: int = 30,
    ) -> None:
        self._impersonations = impersonations
        self._tenants = tenants
        self._uow = uow
        self._activity = activity
        self._default_ttl = default_ttl_minutes

    async def start(
        self,
        admin: CurrentUser,
        tenant_id: str,
        *,
        reason: Optional[str] = None,
        ttl_minutes: Optional[int] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ImpersonationStartedDTO:
        tenant = await self._tenants.find_active(tenant_id)
        if tenant is None:
            raise NotFoundError.from_code("tenant_unavailable")

        ttl = ttl_minutes or self._default_ttl
        reason = reason or DEFAULT_REASON
        session, token = ImpersonationSession.start(
            admin_user_id=admin.user_id,
            tenant_id=tenant.id,
            ttl_minutes=ttl,
            reason=reason,
            ip_address=ip_address,
            metadata={"ip_address": ip_address, "user_agent": user_agent},
            now=now,
        )
        async with self._uow:
            session = await self._impersonations.add(session)
            await self._activity.record(
                "started_impersonation",
                subject_type="tenant",
                subject_id=tenant.id,
                causer_id=admin.user_id,
                properties={
                    "impersonation_id": str(session.id),
                    "tenant_id": tenant.id,
                    "reason": reason,
                    "ttl_minutes": ttl,
                },
            )
            await self._uow.commit()

        log_security_event(
            "impersonation_started",
            user_id=admin.user_id,
            tenant_id=tenant.id,
            details={"impersonation_id": str(session.id), "ttl_minutes": ttl},
        )
        return ImpersonationStartedDTO(
            impersonation_id=session.id,
            token=token,
            expires_at=session.expires_at,
            tenant=TenantBriefDTO.from_tenant(tenant),
        )

    async def _get(self, session_id: UUID) -> ImpersonationSession:
        session = await self._impersonations.get(session_id)
        if session is None:
            raise NotFoundError.from_code("impersonation_not_found")
        return session

    async def end(self, admin: CurrentUser, session_id: UUID, now: Optional[datetime] = None) -> ImpersonationEndedDTO:
        now = now or utcnow()
        session = await self._get(session_id)
        if session.admin_user_id != admin.user_id:
            raise ForbiddenError.from_code("impersonation_not_owner")
        if not session.is_active(now):
            raise BusinessRuleError.from_code("impersonation_inactive")

        session.end(now)
        async with self._uow:
            await self._impersonations.update(session)
            await self._activity.record(
                "ended_impersonation",
                subject_type="tenant",
                subject_id=session.tenant_id,
                causer_id=admin.user_id,
                properties={
                    "impersonation_id": str(session.id),
                    "tenant_id": session.tenant_id,
                    "duration_minutes": session.duration_minutes,
                },
            )
            await self._uow.commit()
        logger.info("Impersonation ended", impersonation_id=str(session.id), tenant_id=session.tenant_id)
        return ImpersonationEndedDTO(
            impersonation_id=session.id,
            ended_at=session.ended_at,
            duration_minutes=session.duration_minutes,
        )

    async def index(
        self,
        admin: CurrentUser,
        *,
        status: Optional[ImpersonationStatus] = None,
        tenant_id: Optional[str] = None,
        page: int = 1,
        per_page: int = 20,
        now: Optional[datetime] = None,
    ) -> Page[ImpersonationDTO]:
        now = now or utcnow()
        owner = None if admin.has_console_permission(LOGS_VIEW_PERMISSION) else admin.user_id
        result = await self._impersonations.search(
            now=now,
            admin_user_id=owner,
            tenant_id=tenant_id,
            status=status,
            page=page,
            per_page=per_page,
        )
        return result.map(lambda s: ImpersonationDTO.from_entity(s, now=now))

    async def show(self, admin: CurrentUser, session_id: UUID) -> ImpersonationDTO:
        session = await self._get(session_id)
        if session.admin_user_id != admin.user_id and not admin.has_console_permission(LOGS_VIEW_PERMISSION):
            raise ForbiddenError.from_code("impersonation_access_denied")
        tenant = await self._tenants.get(session.tenant_id, include_deleted=True)
        return ImpersonationDTO.from_entity(session, tenant)
