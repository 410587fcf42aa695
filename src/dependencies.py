# src/dependencies.py
"""
FastAPI providers.

API modules import their services from here, so the infrastructure layer is
only ever wired in this file.
"""
from __future__ import annotations

from typing import AsyncGenerator, Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.billing.application.services.billing_service import PlanCatalogService, TenantBillingService
from src.billing.infrastructure.repositories import (
    InvoiceRepositoryImpl,
    PaymentMethodRepositoryImpl,
    PlanRepositoryImpl,
    SubscriptionRepositoryImpl,
)
from src.config import get_settings
from src.console.application.services.impersonation_service import ImpersonationService
from src.console.application.services.tenant_management_service import TenantManagementService
from src.console.infrastructure.repositories import ImpersonationRepositoryImpl, TenantDirectoryImpl
from src.marketplace.application.services.agent_catalog_service import AgentCatalogService
from src.marketplace.application.services.agent_run_service import AgentRunService
from src.marketplace.application.services.tenant_agent_service import TenantAgentService
from src.marketplace.infrastructure.http import HttpAgentTrigger
from src.marketplace.infrastructure.repositories import (
    AgentCategoryRepositoryImpl,
    AgentEndpointRepositoryImpl,
    AgentRepositoryImpl,
    AgentRunRepositoryImpl,
    TenantAgentRepositoryImpl,
)
from src.monitoring.application.services.health_service import HealthService
from src.monitoring.application.tracing_service import TracingService
from src.monitoring.infrastructure.trace_store import RedisTraceStore
from src.shared.domain.activity import ActivityRecorder
from src.shared.infrastructure.activity_log import ActivityLogRepositoryImpl
from src.shared.infrastructure.cache.redis_client import RedisClient
from src.shared.infrastructure.database.session import DatabaseSessionFactory
from src.shared.infrastructure.database.sqlalchemy_unit_of_work import SQLAlchemyUnitOfWork
from src.shared.security import SecretBox
from src.tenancy.application.services.organization_service import OrganizationService
from src.tenancy.application.services.tenant_context_service import TenantContextResolver
from src.tenancy.application.services.tenant_role_service import TenantRoleService
from src.tenancy.application.services.tenant_service import TenantProfileService
from src.tenancy.infrastructure.repositories import (
    MembershipRepositoryImpl,
    OrganizationRepositoryImpl,
    TenantRepositoryImpl,
    TenantRoleRepositoryImpl,
)

settings = get_settings()

# ---------------------------------------------------------------------------
# Infrastructure singletons
# ---------------------------------------------------------------------------

_session_factory: Optional[DatabaseSessionFactory] = None
_redis_client: Optional[RedisClient] = None
_tracing_service: Optional[TracingService] = None


def get_session_factory() -> DatabaseSessionFactory:
    """Global DatabaseSessionFactory, created on first use."""
    global _session_factory
    if _session_factory is None:
        _session_factory = DatabaseSessionFactory.from_settings(settings)
    return _session_factory


def get_redis_client() -> RedisClient:
    """Process-wide Redis adapter; connected in the app lifespan."""
    global _redis_client
    if _redis_client is None:
        _redis_client = RedisClient(settings.REDIS_URL)
    return _redis_client


def get_tracing_service() -> TracingService:
    global _tracing_service
    if _tracing_service is None:
        _tracing_service = TracingService(
            RedisTraceStore(get_redis_client(), ttl_seconds=settings.TRACE_TTL_SECONDS),
            enabled=settings.TRACING_ENABLED,
        )
    return _tracing_service


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session, always closed."""
    async for session in get_session_factory().get_session():
        yield session


def get_uow(session: AsyncSession = Depends(get_db_session)) -> SQLAlchemyUnitOfWork:
    return SQLAlchemyUnitOfWork(session)


def get_activity_recorder(session: AsyncSession = Depends(get_db_session)) -> ActivityRecorder:
    return ActivityRecorder(ActivityLogRepositoryImpl(session))


def get_secret_box() -> SecretBox:
    return SecretBox(settings.APP_ENCRYPTION_KEY)


# ---------------------------------------------------------------------------
# Tenancy
# ---------------------------------------------------------------------------

def get_tenant_resolver(session: AsyncSession = Depends(get_db_session)) -> TenantContextResolver:
    return TenantContextResolver(
        TenantRepositoryImpl(session),
        MembershipRepositoryImpl(session),
        TenantRoleRepositoryImpl(session),
        ImpersonationRepositoryImpl(session),
        base_domain=settings.TENANCY_BASE_DOMAIN,
    )


def get_tenant_profile_service(
    session: AsyncSession = Depends(get_db_session),
    uow: SQLAlchemyUnitOfWork = Depends(get_uow),
    activity: ActivityRecorder = Depends(get_activity_recorder),
) -> TenantProfileService:
    return TenantProfileService(
        TenantRepositoryImpl(session),
        OrganizationRepositoryImpl(session),
        MembershipRepositoryImpl(session),
        uow,
        activity,
    )


def get_organization_service(
    session: AsyncSession = Depends(get_db_session),
    uow: SQLAlchemyUnitOfWork = Depends(get_uow),
    activity: ActivityRecorder = Depends(get_activity_recorder),
) -> OrganizationService:
    return OrganizationService(OrganizationRepositoryImpl(session), MembershipRepositoryImpl(session), uow, activity)


def get_tenant_role_service(
    session: AsyncSession = Depends(get_db_session),
    uow: SQLAlchemyUnitOfWork = Depends(get_uow),
    activity: ActivityRecorder = Depends(get_activity_recorder),
) -> TenantRoleService:
    return TenantRoleService(TenantRoleRepositoryImpl(session), uow, activity)


# ---------------------------------------------------------------------------
# Billing
# ---------------------------------------------------------------------------

def get_plan_catalog_service(session: AsyncSession = Depends(get_db_session)) -> PlanCatalogService:
    return PlanCatalogService(PlanRepositoryImpl(session))


def get_tenant_billing_service(
    session: AsyncSession = Depends(get_db_session),
    uow: SQLAlchemyUnitOfWork = Depends(get_uow),
    activity: ActivityRecorder = Depends(get_activity_recorder),
) -> TenantBillingService:
    return TenantBillingService(
        PlanRepositoryImpl(session),
        SubscriptionRepositoryImpl(session),
        InvoiceRepositoryImpl(session),
        PaymentMethodRepositoryImpl(session),
        uow,
        activity,
    )


# ---------------------------------------------------------------------------
# Marketplace
# ---------------------------------------------------------------------------

def get_agent_catalog_service(session: AsyncSession = Depends(get_db_session)) -> AgentCatalogService:
    return AgentCatalogService(AgentRepositoryImpl(session), AgentCategoryRepositoryImpl(session))


def get_agent_run_service(
    session: AsyncSession = Depends(get_db_session),
    uow: SQLAlchemyUnitOfWork = Depends(get_uow),
    secret_box: SecretBox = Depends(get_secret_box),
) -> AgentRunService:
    return AgentRunService(
        AgentRepositoryImpl(session),
        AgentEndpointRepositoryImpl(session, secret_box),
        AgentRunRepositoryImpl(session),
        TenantAgentRepositoryImpl(session),
        HttpAgentTrigger(),
        uow,
    )


def get_tenant_agent_service(
    session: AsyncSession = Depends(get_db_session),
    uow: SQLAlchemyUnitOfWork = Depends(get_uow),
    activity: ActivityRecorder = Depends(get_activity_recorder),
) -> TenantAgentService:
    return TenantAgentService(AgentRepositoryImpl(session), TenantAgentRepositoryImpl(session), uow, activity)


# ---------------------------------------------------------------------------
# Console
# ---------------------------------------------------------------------------

def get_tenant_management_service(
    session: AsyncSession = Depends(get_db_session),
    uow: SQLAlchemyUnitOfWork = Depends(get_uow),
    activity: ActivityRecorder = Depends(get_activity_recorder),
) -> TenantManagementService:
    return TenantManagementService(
        TenantDirectoryImpl(session),
        TenantRepositoryImpl(session),
        PlanRepositoryImpl(session),
        SubscriptionRepositoryImpl(session),
        uow,
        activity,
    )


def get_impersonation_service(
    session: AsyncSession = Depends(get_db_session),
    uow: SQLAlchemyUnitOfWork = Depends(get_uow),
    activity: ActivityRecorder = Depends(get_activity_recorder),
) -> ImpersonationService:
    return ImpersonationService(
        ImpersonationRepositoryImpl(session),
        TenantRepositoryImpl(session),
        uow,
        activity,
        default_ttl_minutes=settings.IMPERSONATION_DEFAULT_TTL_MINUTES,
    )


# ---------------------------------------------------------------------------
# Monitoring
# ---------------------------------------------------------------------------

def get_health_service(session: AsyncSession = Depends(get_db_session)) -> HealthService:
    return HealthService(session, get_redis_client(), service_name=settings.PROJECT_NAME)


# ---------------------------------------------------------------------------
# JWT parsing helper (used by JwtContextMiddleware)
# ---------------------------------------------------------------------------

def extract_bearer_token(request: Request) -> Optional[str]:
    auth = request.headers.get("Authorization", "")
    if not auth.lower().startswith("bearer "):
        return None
    return auth.split(" ", 1)[1].strip() or None
