from src.tenancy.domain.entities import Tenant, TenantStatus

ROLES = "/api/v1/tenant/roles"


def test_resolved_tenant_is_echoed_in_header(client, bearer):
    r = client.get(ROLES, headers={**bearer("member-1"), "X-Tenant-Id": "acme"})
    assert r.status_code == 200
    assert r.headers["X-Tenant-Id"] == "acme"


def test_token_tenant_claim_is_the_fallback(client, bearer):
    r = client.get(ROLES, headers=bearer("member-1", tenant_id="acme"))
    assert r.status_code == 200
    assert r.headers["X-Tenant-Id"] == "acme"


def test_subdomain_wins_over_explicit_header(client, bearer, world):
    world.tenants.rows["globex"] = Tenant(id="globex", name="Globex")
    r = client.get(ROLES, headers={**bearer("member-1"), "Host": "acme.example.test", "X-Tenant-Id": "globex"})
    assert r.status_code == 200
    assert r.headers["X-Tenant-Id"] == "acme"


def test_anonymous_caller_is_401(client):
    r = client.get(ROLES, headers={"X-Tenant-Id": "acme"})
    assert r.status_code == 401
    assert r.json()["code"] == "unauthorized"
    assert "X-Tenant-Id" not in r.headers


def test_stranger_is_403(client, bearer):
    r = client.get(ROLES, headers={**bearer("stranger"), "X-Tenant-Id": "acme"})
    assert r.status_code == 403
    assert r.json() == {
        "code": "tenant_access_denied",
        "message": "You do not have access to this tenant",
        "correlation_id": r.headers["X-Correlation-ID"],
    }


def test_unknown_tenant_is_404(client, bearer):
    r = client.get(ROLES, headers={**bearer("member-1"), "X-Tenant-Id": "nowhere"})
    assert r.status_code == 404
    assert r.json()["code"] == "tenant_not_found"


def test_suspended_tenant_is_404(client, bearer, world):
    world.tenant.status = TenantStatus.SUSPENDED
    r = client.get(ROLES, headers={**bearer("owner-1"), "X-Tenant-Id": "acme"})
    assert r.status_code == 404


def test_no_tenant_anywhere_is_404(client, bearer):
    r = client.get(ROLES, headers=bearer("member-1"))
    assert r.status_code == 404
    assert r.json()["message"] == "Tenant not found"
