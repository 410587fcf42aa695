def test_owner_creates_role(client, bearer, world):
    r = client.post(
        "/api/v1/tenant/roles",
        json={"name": "Support desk", "permissions": ["tenant.users.view", "tenant.agents.run"]},
        headers={**bearer("owner-1"), "X-Tenant-Id": "acme"},
    )

    assert r.status_code == 201
    body = r.json()
    assert body["name"] == "Support desk"
    assert body["permissions_count"] == 2
    assert r.headers["X-Tenant-Id"] == "acme"
    assert world.activity_log.descriptions() == ["Tenant role created"]


def test_member_without_permission_is_403(client, bearer):
    r = client.post(
        "/api/v1/tenant/roles",
        json={"name": "Nope", "permissions": ["tenant.users.view"]},
        headers=bearer("member-1", tenant_id="acme"),
    )
    assert r.status_code == 403
    assert r.json()["details"] == {"required_permission": "tenant.roles.create"}


def test_unknown_permissions_are_rejected(client, bearer):
    r = client.post(
        "/api/v1/tenant/roles",
        json={"name": "Bad", "permissions": ["console.logs.view"]},
        headers=bearer("owner-1", tenant_id="acme"),
    )
    assert r.status_code == 400
    body = r.json()
    assert body["code"] == "invalid_permissions"
    assert body["details"] == {"invalid": ["console.logs.view"]}


def test_members_can_list_roles(client, bearer):
    client.post(
        "/api/v1/tenant/roles",
        json={"name": "Viewer", "permissions": ["tenant.dashboard.view"]},
        headers=bearer("owner-1", tenant_id="acme"),
    )
    r = client.get("/api/v1/tenant/roles", headers=bearer("member-1", tenant_id="acme"))
    assert r.status_code == 200
    assert [role["name"] for role in r.json()["data"]] == ["Viewer"]


def test_non_member_is_denied(client, bearer):
    r = client.get("/api/v1/tenant/roles", headers=bearer("stranger", tenant_id="acme"))
    assert r.status_code == 403
    assert r.json()["code"] == "tenant_access_denied"


def test_anonymous_is_401(client):
    r = client.get("/api/v1/tenant/roles", headers={"X-Tenant-Id": "acme"})
    assert r.status_code == 401
