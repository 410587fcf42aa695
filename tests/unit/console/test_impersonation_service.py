from datetime import datetime, timedelta, timezone

import pytest

from src.console.application.services.impersonation_service import ImpersonationService
from src.console.domain.entities import ImpersonationStatus
from src.shared.auth import CurrentUser
from src.shared.exceptions import BusinessRuleError, ForbiddenError, NotFoundError
from src.shared.roles import ConsoleRole
from src.shared.security import hash_token
from src.tenancy.domain.entities import TenantStatus

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)

SUPPORT = CurrentUser(user_id="support-1", console_role=ConsoleRole.SUPPORT)
OTHER_SUPPORT = CurrentUser(user_id="support-2", console_role=ConsoleRole.SUPPORT)
ANALYST = CurrentUser(user_id="analyst-1", console_role=ConsoleRole.ANALYST)


@pytest.fixture
def service(world):
    return ImpersonationService(world.impersonations, world.tenants, world.uow, world.activity, default_ttl_minutes=30)


async def test_start_issues_token_and_stores_only_its_hash(world, service):
    started = await service.start(SUPPORT, "acme", ip_address="10.0.0.1", user_agent="pytest", now=NOW)

    session = world.impersonations.rows[started.impersonation_id]
    assert session.token_hash == hash_token(started.token)
    assert started.token not in session.token_hash
    assert started.expires_at == NOW + timedelta(minutes=30)
    assert started.tenant.name == "Acme Corp"
    assert session.reason == "Support impersonation"
    assert session.metadata == {"ip_address": "10.0.0.1", "user_agent": "pytest"}
    assert world.activity_log.descriptions() == ["started_impersonation"]
    assert world.uow.commits == 1


async def test_start_uses_requested_ttl(service):
    started = await service.start(SUPPORT, "acme", ttl_minutes=5, reason="Ticket 42", now=NOW)
    assert started.expires_at == NOW + timedelta(minutes=5)


async def test_start_on_suspended_tenant(world, service):
    world.tenant.status = TenantStatus.SUSPENDED
    with pytest.raises(NotFoundError) as exc:
        await service.start(SUPPORT, "acme", now=NOW)
    assert exc.value.code == "tenant_unavailable"


async def test_end_reports_duration(world, service):
    started = await service.start(SUPPORT, "acme", now=NOW)

    ended = await service.end(SUPPORT, started.impersonation_id, now=NOW + timedelta(minutes=12))

    assert ended.duration_minutes == 12
    assert ended.ended_at == NOW + timedelta(minutes=12)
    assert world.activity_log.descriptions() == ["started_impersonation", "ended_impersonation"]


async def test_only_the_owner_can_end(service):
    started = await service.start(SUPPORT, "acme", now=NOW)
    with pytest.raises(ForbiddenError) as exc:
        await service.end(OTHER_SUPPORT, started.impersonation_id, now=NOW)
    assert exc.value.code == "impersonation_not_owner"


async def test_cannot_end_twice_or_after_expiry(service):
    first = await service.start(SUPPORT, "acme", now=NOW)
    await service.end(SUPPORT, first.impersonation_id, now=NOW + timedelta(minutes=1))
    with pytest.raises(BusinessRuleError) as exc:
        await service.end(SUPPORT, first.impersonation_id, now=NOW + timedelta(minutes=2))
    assert exc.value.code == "impersonation_inactive"

    second = await service.start(SUPPORT, "acme", now=NOW)
    with pytest.raises(BusinessRuleError):
        await service.end(SUPPORT, second.impersonation_id, now=NOW + timedelta(hours=1))


async def test_index_is_limited_to_own_sessions_without_log_access(service):
    mine = await service.start(SUPPORT, "acme", now=NOW)
    await service.start(OTHER_SUPPORT, "acme", now=NOW + timedelta(minutes=1))

    own = await service.index(SUPPORT, now=NOW + timedelta(minutes=2))
    assert [s.id for s in own.items] == [mine.impersonation_id]

    everything = await service.index(ANALYST, now=NOW + timedelta(minutes=2))
    assert everything.total == 2


async def test_index_filters_by_status(service):
    ended = await service.start(SUPPORT, "acme", now=NOW)
    await service.end(SUPPORT, ended.impersonation_id, now=NOW + timedelta(minutes=1))
    active = await service.start(SUPPORT, "acme", now=NOW + timedelta(minutes=2))

    page = await service.index(SUPPORT, status=ImpersonationStatus.ACTIVE, now=NOW + timedelta(minutes=3))

    assert [s.id for s in page.items] == [active.impersonation_id]
    assert page.items[0].is_active


async def test_show_requires_ownership_or_log_access(service):
    started = await service.start(SUPPORT, "acme", now=NOW)

    with pytest.raises(ForbiddenError) as exc:
        await service.show(OTHER_SUPPORT, started.impersonation_id)
    assert exc.value.code == "impersonation_access_denied"

    dto = await service.show(ANALYST, started.impersonation_id)
    assert dto.tenant.name == "Acme Corp"


def test_console_roles():
    assert CurrentUser(user_id="root", is_system_admin=True).is_admin
    assert CurrentUser(user_id="boss", console_role=ConsoleRole.SUPER_ADMIN).has_console_permission("anything")
    assert SUPPORT.has_console_permission("support.impersonate")
    assert not SUPPORT.has_console_permission("console.logs.view")
    assert ANALYST.has_console_permission("console.logs.view")
    assert not ANALYST.is_admin
