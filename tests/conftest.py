import os

os.environ.setdefault("ENV", "test")
os.environ.setdefault("TESTING", "true")

from datetime import timedelta
from typing import Optional

import pytest
from fastapi.testclient import TestClient

import src.dependencies as deps
from src.shared.infrastructure.cache.redis_client import InMemoryAsyncRedis, RedisClient

# Must be in place before the app builds its tracing middleware.
deps._redis_client = RedisClient("redis://test", client=InMemoryAsyncRedis())
deps._tracing_service = None

from src.main import create_app  # noqa: E402
from src.monitoring.application.services.health_service import HealthService  # noqa: E402
from src.shared.domain.activity import ActivityRecorder  # noqa: E402
from src.shared.security import create_access_token  # noqa: E402
from src.tenancy.application.services.tenant_context_service import TenantContextResolver  # noqa: E402
from src.tenancy.application.services.tenant_role_service import TenantRoleService  # noqa: E402
from src.tenancy.domain.entities import Tenant, TenantMembership  # noqa: E402
from src.shared.roles import MembershipRole  # noqa: E402
from tests.fakes import (  # noqa: E402
    FakeImpersonationRepository,
    FakeMembershipRepository,
    FakeSession,
    FakeTenantRepository,
    FakeTenantRoleRepository,
    FakeUnitOfWork,
    InMemoryActivityLog,
)


async def _fake_db_session():
    yield FakeSession()


class TenantWorld:
    """One tenant (``acme``) with an owner and a plain member."""

    def __init__(self) -> None:
        self.tenant = Tenant(id="acme", name="Acme Corp")
        self.tenants = FakeTenantRepository(self.tenant)
        self.memberships = FakeMembershipRepository(
            TenantMembership(tenant_id="acme", user_id="owner-1", role=MembershipRole.OWNER),
            TenantMembership(tenant_id="acme", user_id="member-1"),
        )
        self.roles = FakeTenantRoleRepository()
        self.impersonations = FakeImpersonationRepository()
        self.uow = FakeUnitOfWork()
        self.activity_log = InMemoryActivityLog()
        self.activity = ActivityRecorder(self.activity_log)

    def resolver(self) -> TenantContextResolver:
        return TenantContextResolver(
            self.tenants,
            self.memberships,
            self.roles,
            self.impersonations,
            base_domain="example.test",
        )


@pytest.fixture
def world() -> TenantWorld:
    return TenantWorld()


@pytest.fixture(scope="session")
def app():
    return create_app()


@pytest.fixture
def client(app, world):
    app.dependency_overrides[deps.get_db_session] = _fake_db_session
    app.dependency_overrides[deps.get_health_service] = lambda: HealthService(
        FakeSession(), deps.get_redis_client(), service_name="test"
    )
    app.dependency_overrides[deps.get_tenant_resolver] = world.resolver
    app.dependency_overrides[deps.get_tenant_role_service] = lambda: TenantRoleService(
        world.roles, world.uow, world.activity
    )
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def bearer():
    def _headers(sub: str, *, tenant_id: Optional[str] = None, role: Optional[str] = None, **claims) -> dict:
        token = create_access_token(sub, tenant_id=tenant_id, role=role, expires_delta=timedelta(minutes=5), **claims)
        return {"Authorization": f"Bearer {token}"}

    return _headers
