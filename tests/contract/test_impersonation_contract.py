import pytest

import src.dependencies as deps
from src.console.application.services.impersonation_service import ImpersonationService


@pytest.fixture
def impersonation(app, world):
    app.dependency_overrides[deps.get_impersonation_service] = lambda: ImpersonationService(
        world.impersonations, world.tenants, world.uow, world.activity, default_ttl_minutes=30
    )
    return world.impersonations


def _start(client, headers, tenant_id="acme", **body):
    return client.post(f"/api/v1/admin/tenants/{tenant_id}/impersonations/start", json=body or None, headers=headers)


def test_support_starts_session_with_201(client, bearer, impersonation, world):
    r = _start(client, bearer("agent-7", role="support"), reason="Ticket 42", ttl_minutes=15)

    assert r.status_code == 201
    body = r.json()
    assert body["tenant"]["id"] == "acme"
    assert len(body["token"]) == 64
    session = impersonation.rows[next(iter(impersonation.rows))]
    assert str(session.id) == body["impersonation_id"]
    assert session.token_hash != body["token"]
    assert session.reason == "Ticket 42"
    assert world.activity_log.descriptions() == ["started_impersonation"]


def test_start_without_body_uses_defaults(client, bearer, impersonation):
    r = _start(client, bearer("agent-7", role="support"))

    assert r.status_code == 201
    session = next(iter(impersonation.rows.values()))
    assert session.reason
    assert (session.expires_at - session.started_at).total_seconds() == 30 * 60


def test_start_requires_impersonate_permission(client, bearer, impersonation):
    r = _start(client, bearer("analyst-1", role="analyst"))

    assert r.status_code == 403
    assert r.json()["details"] == {"required_permission": "support.impersonate"}
    assert impersonation.rows == {}


def test_start_on_unknown_tenant_is_404(client, bearer, impersonation):
    r = _start(client, bearer("agent-7", role="support"), tenant_id="nowhere")
    assert r.status_code == 404


def test_token_opens_tenant_until_session_ends(client, bearer, impersonation):
    admin = bearer("agent-7", role="support")
    started = _start(client, admin).json()
    tenant_headers = {**admin, "X-Tenant-Id": "acme", "X-Impersonation-Token": started["token"]}

    inside = client.get("/api/v1/tenant/roles", headers=tenant_headers)
    assert inside.status_code == 200
    assert inside.headers["X-Tenant-Id"] == "acme"

    ended = client.post(f"/api/v1/admin/impersonations/{started['impersonation_id']}/end", headers=admin)
    assert ended.status_code == 200
    assert ended.json()["impersonation_id"] == started["impersonation_id"]
    assert ended.json()["ended_at"] is not None

    after = client.get("/api/v1/tenant/roles", headers=tenant_headers)
    assert after.status_code == 403
    assert after.json()["code"] == "invalid_impersonation_token"


def test_token_is_bound_to_the_admin_who_started_it(client, bearer, impersonation):
    started = _start(client, bearer("agent-7", role="support")).json()

    r = client.get(
        "/api/v1/tenant/roles",
        headers={**bearer("agent-8", role="support"), "X-Tenant-Id": "acme", "X-Impersonation-Token": started["token"]},
    )

    assert r.status_code == 403


def test_only_the_starting_admin_can_end(client, bearer, impersonation):
    started = _start(client, bearer("agent-7", role="support")).json()

    r = client.post(
        f"/api/v1/admin/impersonations/{started['impersonation_id']}/end",
        headers=bearer("agent-8", role="support"),
    )

    assert r.status_code == 403
    assert r.json()["code"] == "impersonation_not_owner"


def test_ending_twice_is_400(client, bearer, impersonation):
    admin = bearer("agent-7", role="support")
    started = _start(client, admin).json()
    url = f"/api/v1/admin/impersonations/{started['impersonation_id']}/end"

    client.post(url, headers=admin)
    r = client.post(url, headers=admin)

    assert r.status_code == 400
    assert r.json()["code"] == "impersonation_inactive"
