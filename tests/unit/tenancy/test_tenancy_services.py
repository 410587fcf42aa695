from uuid import uuid4

import pytest

from src.shared.auth import CurrentUser
from src.shared.exceptions import BusinessRuleError, ConflictError, NotFoundError, ValidationError
from src.tenancy.application.services.organization_service import OrganizationService
from src.tenancy.application.services.tenant_context_service import TenantContext
from src.tenancy.application.services.tenant_role_service import TenantRoleService
from src.tenancy.application.services.tenant_service import TenantProfileService
from src.tenancy.domain.entities import Organization, Tenant
from tests.fakes import FakeOrganizationRepository


@pytest.fixture
async def owner_ctx(world):
    return await world.resolver().resolve(
        CurrentUser(user_id="owner-1"),
        host=None,
        explicit_tenant_id="acme",
    )


@pytest.fixture
def roles(world):
    return TenantRoleService(world.roles, world.uow, world.activity)


# ---------- roles ----------

async def test_create_role_dedupes_permissions_and_records_activity(world, roles, owner_ctx):
    dto = await roles.create(owner_ctx, "Support", ["tenant.users.view", "tenant.users.view", "tenant.roles.view"])

    assert dto.permissions == ["tenant.users.view", "tenant.roles.view"]
    assert dto.permissions_count == 2
    assert world.uow.commits == 1
    assert world.activity_log.descriptions() == ["Tenant role created"]


async def test_create_role_rejects_duplicate_name(roles, owner_ctx):
    await roles.create(owner_ctx, "Support", [])
    with pytest.raises(BusinessRuleError) as exc:
        await roles.create(owner_ctx, "Support", [])
    assert exc.value.code == "role_exists"


async def test_create_role_rejects_console_permissions(roles, owner_ctx):
    with pytest.raises(BusinessRuleError) as exc:
        await roles.create(owner_ctx, "Sneaky", ["tenant.users.view", "console.tenants.delete"])
    assert exc.value.code == "invalid_permissions"
    assert exc.value.details == {"invalid": ["console.tenants.delete"]}


async def test_update_role_renames_and_replaces_permissions(roles, owner_ctx):
    created = await roles.create(owner_ctx, "Support", ["tenant.users.view"])
    updated = await roles.update(owner_ctx, created.id, name="Helpdesk", permissions=["tenant.roles.view"])
    assert updated.name == "Helpdesk"
    assert updated.permissions == ["tenant.roles.view"]


async def test_delete_assigned_role_is_refused(world, roles, owner_ctx):
    created = await roles.create(owner_ctx, "Support", [])
    await world.roles.assign("acme", "member-1", created.id)

    with pytest.raises(BusinessRuleError) as exc:
        await roles.delete(owner_ctx, created.id)

    assert exc.value.code == "role_in_use"
    assert exc.value.details == {"assigned_users": 1}


async def test_delete_unknown_role(roles, owner_ctx):
    with pytest.raises(NotFoundError):
        await roles.delete(owner_ctx, uuid4())


def test_permission_catalog_is_grouped():
    catalog = TenantRoleService.list_permissions()
    assert "tenant.roles.create" in catalog["all"]
    assert "tenant.roles.create" in catalog["grouped"]["roles"]
    assert not any(p.startswith("console.") for p in catalog["all"])


# ---------- organizations ----------

async def test_create_current_organization_only_once(world, owner_ctx):
    service = OrganizationService(FakeOrganizationRepository(), world.memberships, world.uow, world.activity)

    created = await service.create_current(owner_ctx, {"name": "Acme HQ", "country": "DE", "tenant_id": "evil"})
    assert created.tenant_id == "acme"
    assert created.country == "DE"

    with pytest.raises(ConflictError):
        await service.create_current(owner_ctx, {"name": "Second"})


async def test_update_current_only_touches_editable_fields(world, owner_ctx):
    orgs = FakeOrganizationRepository(Organization(tenant_id="acme", name="Acme HQ"))
    service = OrganizationService(orgs, world.memberships, world.uow, world.activity)

    dto = await service.update_current(owner_ctx, {"name": "Acme GmbH", "id": "ignored"})

    assert dto.name == "Acme GmbH"
    assert world.activity_log.entries[-1].properties["changes"] == ["name"]


async def test_organizations_of_other_tenants_are_invisible(world, owner_ctx):
    foreign = Organization(tenant_id="globex", name="Globex")
    service = OrganizationService(FakeOrganizationRepository(foreign), world.memberships, world.uow, world.activity)
    with pytest.raises(NotFoundError):
        await service.get(owner_ctx, foreign.id)


async def test_switch_requires_membership(world):
    org = Organization(tenant_id="acme", name="Acme HQ")
    service = OrganizationService(FakeOrganizationRepository(org), world.memberships, world.uow, world.activity)
    ctx = TenantContext(tenant=world.tenant, user_id="admin-1", impersonation_mode=True, all_permissions=True)
    with pytest.raises(BusinessRuleError):
        await service.switch(ctx, org.id)


async def test_switch_updates_current_organization(world, owner_ctx):
    org = Organization(tenant_id="acme", name="Acme HQ")
    service = OrganizationService(FakeOrganizationRepository(org), world.memberships, world.uow, world.activity)

    await service.switch(owner_ctx, org.id)

    membership = await world.memberships.get("acme", "owner-1")
    assert membership.current_organization_id == org.id


# ---------- profile ----------

async def test_profile_counts_active_members(world, owner_ctx):
    service = TenantProfileService(
        world.tenants, FakeOrganizationRepository(), world.memberships, world.uow, world.activity
    )
    profile = await service.get_profile(owner_ctx)
    assert profile.id == "acme"
    assert profile.subdomain == "acme"
    assert profile.total_users == 2


async def test_profile_short_name_must_be_unique(world, owner_ctx):
    await world.tenants.update(Tenant(id="globex", name="Globex", short_name="gx"))
    service = TenantProfileService(
        world.tenants, FakeOrganizationRepository(), world.memberships, world.uow, world.activity
    )
    with pytest.raises(ValidationError):
        await service.update_profile(owner_ctx, short_name="gx")


async def test_profile_update_without_changes_skips_commit(world, owner_ctx):
    service = TenantProfileService(
        world.tenants, FakeOrganizationRepository(), world.memberships, world.uow, world.activity
    )
    await service.update_profile(owner_ctx, name="Acme Corp")
    assert world.uow.commits == 0
