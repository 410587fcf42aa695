from datetime import datetime, timedelta, timezone

from src.shared.roles import MembershipRole
from src.tenancy.domain.entities import Organization, Tenant, TenantMembership, TenantRole, TenantStatus
from src.tenancy.domain.entities.membership import MembershipStatus

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


def test_tenant_trial_window():
    tenant = Tenant(id="acme", name="Acme", trial_ends_at=NOW + timedelta(days=5, hours=3))
    assert tenant.is_on_trial(NOW)
    assert not tenant.has_expired_trial(NOW)
    assert tenant.trial_days_remaining(NOW) == 5


def test_tenant_trial_naive_timestamp_is_utc():
    tenant = Tenant(id="acme", name="Acme", trial_ends_at=datetime(2025, 3, 1))
    assert tenant.has_expired_trial(NOW)
    assert tenant.trial_days_remaining(NOW) == 0


def test_tenant_status_change_returns_previous():
    tenant = Tenant(id="acme", name="Acme")
    assert tenant.change_status(TenantStatus.SUSPENDED) == TenantStatus.ACTIVE
    assert not tenant.is_active


def test_soft_deleted_tenant_is_inactive():
    tenant = Tenant(id="acme", name="Acme")
    tenant.soft_delete(NOW)
    assert tenant.deleted_at == NOW
    assert not tenant.is_active


def test_membership_flags():
    owner = TenantMembership(tenant_id="acme", user_id="u1", role=MembershipRole.OWNER)
    invited = TenantMembership(tenant_id="acme", user_id="u2", status=MembershipStatus.INVITED)
    assert owner.is_active and owner.is_owner
    assert not invited.is_active and not invited.is_owner


def test_role_sync_keeps_first_seen_order():
    role = TenantRole(tenant_id="acme", name="Ops")
    role.sync_permissions(["b", "a", "b", "c", "a"])
    assert role.permissions == ["b", "a", "c"]
    assert role.permissions_count == 3


def test_organization_apply_reports_changes_only():
    org = Organization(tenant_id="acme", name="Acme HQ", country="DE")
    changed = org.apply({"name": "Acme HQ", "country": "FR", "tenant_id": "other"})
    assert changed == {"country": "FR"}
    assert org.tenant_id == "acme"
