from datetime import timedelta

import pytest

from src.console.domain.entities.impersonation import ImpersonationSession
from src.shared.auth import CurrentUser
from src.shared.clock import utcnow
from src.shared.exceptions import ForbiddenError, NotFoundError, UnauthorizedError
from src.tenancy.domain.entities import Tenant, TenantMembership, TenantRole, TenantStatus
from src.tenancy.domain.entities.membership import MembershipStatus


def _user(user_id="member-1", tenant_id=None):
    return CurrentUser(user_id=user_id, tenant_id=tenant_id)


async def test_anonymous_caller_is_rejected(world):
    with pytest.raises(UnauthorizedError):
        await world.resolver().resolve(None, host=None, explicit_tenant_id="acme")


async def test_subdomain_wins_over_explicit_tenant(world):
    await world.tenants.update(Tenant(id="globex", name="Globex"))
    await world.memberships.add(TenantMembership(tenant_id="globex", user_id="member-1"))

    ctx = await world.resolver().resolve(_user(), host="globex.example.test:8000", explicit_tenant_id="acme")

    assert ctx.tenant_id == "globex"


async def test_custom_domain_lookup(world):
    world.tenant.custom_domain = "portal.acme.com"
    ctx = await world.resolver().resolve(_user(), host="Portal.Acme.com", explicit_tenant_id=None)
    assert ctx.tenant_id == "acme"


async def test_falls_back_to_jwt_tenant(world):
    ctx = await world.resolver().resolve(_user(tenant_id="acme"), host="api.other.io", explicit_tenant_id=None)
    assert ctx.tenant_id == "acme"


async def test_inactive_tenant_is_not_found(world):
    world.tenant.status = TenantStatus.SUSPENDED
    with pytest.raises(NotFoundError) as exc:
        await world.resolver().resolve(_user(), host=None, explicit_tenant_id="acme")
    assert exc.value.code == "tenant_not_found"


async def test_non_member_is_denied(world):
    with pytest.raises(ForbiddenError) as exc:
        await world.resolver().resolve(_user("stranger"), host=None, explicit_tenant_id="acme")
    assert exc.value.code == "tenant_access_denied"


async def test_suspended_membership_is_denied(world):
    membership = await world.memberships.get("acme", "member-1")
    membership.status = MembershipStatus.SUSPENDED
    with pytest.raises(ForbiddenError):
        await world.resolver().resolve(_user(), host=None, explicit_tenant_id="acme")


async def test_owner_holds_every_permission(world):
    ctx = await world.resolver().resolve(_user("owner-1"), host=None, explicit_tenant_id="acme")
    assert ctx.all_permissions
    assert ctx.has_permission("tenant.roles.delete")


async def test_member_permissions_come_from_roles(world):
    role = await world.roles.add(TenantRole(tenant_id="acme", name="Viewer", permissions=["tenant.roles.view"]))
    await world.roles.assign("acme", "member-1", role.id)

    ctx = await world.resolver().resolve(_user(), host=None, explicit_tenant_id="acme")

    assert ctx.has_permission("tenant.roles.view")
    assert not ctx.has_permission("tenant.roles.create")
    assert ctx.has_any(["tenant.roles.create", "tenant.roles.view"])
    assert not ctx.has_all(["tenant.roles.create", "tenant.roles.view"])


async def test_impersonation_token_grants_full_access(world):
    session, token = ImpersonationSession.start(admin_user_id="admin-1", tenant_id="acme", ttl_minutes=30)
    await world.impersonations.add(session)

    ctx = await world.resolver().resolve(
        _user("admin-1"), host=None, explicit_tenant_id="acme", impersonation_token=token
    )

    assert ctx.impersonation_mode
    assert ctx.impersonation_log_id == session.id
    assert ctx.admin_user_id == "admin-1"
    assert ctx.has_permission("tenant.billing.view")


async def test_impersonation_token_of_another_admin_is_rejected(world):
    session, token = ImpersonationSession.start(admin_user_id="admin-1", tenant_id="acme", ttl_minutes=30)
    await world.impersonations.add(session)

    with pytest.raises(ForbiddenError) as exc:
        await world.resolver().resolve(
            _user("admin-2"), host=None, explicit_tenant_id="acme", impersonation_token=token
        )
    assert exc.value.code == "invalid_impersonation_token"


async def test_expired_impersonation_token_is_rejected(world):
    session, token = ImpersonationSession.start(
        admin_user_id="admin-1", tenant_id="acme", ttl_minutes=5, now=utcnow() - timedelta(minutes=10)
    )
    await world.impersonations.add(session)

    with pytest.raises(ForbiddenError):
        await world.resolver().resolve(
            _user("admin-1"), host=None, explicit_tenant_id="acme", impersonation_token=token
        )


def test_subdomain_of(world):
    resolver = world.resolver()
    assert resolver.subdomain_of("acme.example.test") == "acme"
    assert resolver.subdomain_of("eu.acme.example.test") == "eu"
    assert resolver.subdomain_of("example.test") is None
    assert resolver.subdomain_of("acme.other.test") is None
    assert resolver.subdomain_of(None) is None
