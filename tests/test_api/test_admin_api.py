"""Catalog, role and sidebar administration over HTTP."""
from __future__ import annotations

from sqlalchemy import select

from propauth.models import SidebarPage


def test_permission_catalog_crud_is_admin_only(client, auth, admin, owner_a):
    assert client.get("/permissions", headers=auth(owner_a)).status_code == 403

    res = client.post("/permissions", json={"resource": "vendors", "action": "view"}, headers=auth(admin))
    assert res.status_code == 201
    perm = res.json()
    assert perm["name"] == "vendors.view"

    res = client.post("/permissions", json={"resource": "vendors", "action": "teleport"}, headers=auth(admin))
    assert res.status_code == 422
    assert res.json()["error"] == "InvalidPermissionName"

    listed = {p["name"]: p for p in client.get("/permissions", headers=auth(admin)).json()}
    assert listed["vendors.view"]["role_count"] == 0
    assert listed["tenants.view_own"]["role_count"] >= 1

    grouped = client.get("/permissions/grouped", headers=auth(admin)).json()
    assert [p["action"] for p in grouped["vendors"]] == ["view"]

    assert client.delete(f"/permissions/{perm['id']}", headers=auth(admin)).status_code == 204


def test_roles_with_permissions_listing(client, auth, admin, owner_a):
    assert client.get("/permissions/roles", headers=auth(owner_a)).status_code == 403

    listing = {r["name"]: r for r in client.get("/permissions/roles", headers=auth(admin)).json()}
    assert {"admin", "owner", "manager", "staff"} <= set(listing)
    owner_grants = {p["name"] for p in listing["owner"]["permissions"]}
    assert "tenants.view_own" in owner_grants
    assert "tenants.view" not in owner_grants


def test_owner_custom_role_lifecycle(client, auth, owner_a, owner_b):
    res = client.post("/roles", json={"name": "Night Guards"}, headers=auth(owner_a))
    assert res.status_code == 201
    role = res.json()
    assert role["name"] == f"owner_{owner_a.id}_night_guards"
    assert role["rank"] == 1
    assert role["is_system"] is False

    # Another owner does not even see it.
    assert client.get(f"/roles/{role['id']}", headers=auth(owner_b)).status_code == 404

    names_b = {r["name"] for r in client.get("/roles", headers=auth(owner_b)).json()}
    assert role["name"] not in names_b
    assert "owner" in names_b

    # Nor can they put their own users into it.
    res = client.post(
        "/users",
        json={"username": "intruder", "email": "intruder@example.com", "role_id": role["id"]},
        headers=auth(owner_b),
    )
    assert res.status_code == 403
    assert res.json()["error"] == "InvalidRoleEscalation"

    res = client.post(
        "/users",
        json={"username": "guard_a", "email": "guard_a@example.com", "role_id": role["id"]},
        headers=auth(owner_a),
    )
    assert res.status_code == 201


def test_system_roles_cannot_be_deleted(client, auth, admin, roles):
    res = client.delete(f"/roles/{roles['staff'].id}", headers=auth(admin))
    assert res.status_code == 403


def test_role_in_use_cannot_be_deleted(client, auth, admin, make_user):
    role = client.post("/roles", json={"name": "temps", "rank": 1}, headers=auth(admin)).json()
    res = client.post(
        "/users", json={"username": "temp1", "email": "temp1@example.com", "role_id": role["id"]}, headers=auth(admin)
    )
    assert res.status_code == 201

    assert client.delete(f"/roles/{role['id']}", headers=auth(admin)).status_code == 409


def test_sidebar_admin_replace_grants(client, auth, admin, owner_a, roles, provisioned):
    dashboard = provisioned.scalars(select(SidebarPage).where(SidebarPage.url == "/dashboard")).one()

    res = client.put(
        f"/sidebar/admin/roles/{roles['owner'].id}",
        json=[{"page_id": dashboard.id, "permission_type": "view", "is_granted": True}],
        headers=auth(admin),
    )
    assert res.status_code == 200
    assert [g["page_id"] for g in res.json()] == [dashboard.id]

    menu = client.get("/sidebar/pages", headers=auth(owner_a)).json()
    assert [i["url"] for i in menu] == ["/dashboard"]


def test_sidebar_admin_rejects_unsupported_permission_type(client, auth, admin, roles, provisioned):
    dashboard = provisioned.scalars(select(SidebarPage).where(SidebarPage.url == "/dashboard")).one()
    before = client.get(f"/sidebar/admin/roles/{roles['owner'].id}", headers=auth(admin)).json()

    res = client.put(
        f"/sidebar/admin/roles/{roles['owner'].id}",
        json=[{"page_id": dashboard.id, "permission_type": "export", "is_granted": True}],
        headers=auth(admin),
    )
    assert res.status_code == 403
    assert res.json()["error"] == "ConfigurationError"
    assert client.get(f"/sidebar/admin/roles/{roles['owner'].id}", headers=auth(admin)).json() == before


def test_sidebar_page_create_and_deactivate(client, auth, admin):
    res = client.post(
        "/sidebar/admin/pages",
        json={"name": "Reports", "url": "/reports", "icon": "chart", "display_order": 10},
        headers=auth(admin),
    )
    assert res.status_code == 201
    page = res.json()
    assert [p["permission_type"] for p in page["permissions"]] == ["view"]

    assert client.post(
        "/sidebar/admin/pages", json={"name": "Dup", "url": "/reports", "icon": "x"}, headers=auth(admin)
    ).status_code == 409

    res = client.delete(f"/sidebar/admin/pages/{page['id']}", headers=auth(admin))
    assert res.json()["is_active"] is False
    assert "/reports" not in [i["url"] for i in client.get("/sidebar/pages", headers=auth(admin)).json()]


def test_adopt_orphan_over_http(client, auth, admin, owner_a, make_user):
    legacy = make_user("legacy", "staff")
    res = client.put(f"/users/{legacy.id}/creator", json={"created_by": owner_a.id}, headers=auth(admin))
    assert res.status_code == 200
    assert res.json()["created_by"] == owner_a.id

    res = client.put(f"/users/{legacy.id}/creator", json={"created_by": admin.id}, headers=auth(admin))
    assert res.status_code == 409


def test_deactivated_user_cannot_authenticate(client, auth, roles, admin, owner_a):
    manager = client.post(
        "/users",
        json={"username": "mgr", "email": "mgr@example.com", "role_id": roles["manager"].id},
        headers=auth(owner_a),
    ).json()
    manager_headers = {"Authorization": f"Bearer {manager['id']}"}
    assert client.get("/permissions/mine", headers=manager_headers).status_code == 200

    # Owners hold no users.delete grant.
    assert client.delete(f"/users/{manager['id']}", headers=auth(owner_a)).status_code == 403

    res = client.delete(f"/users/{manager['id']}", headers=auth(admin))
    assert res.status_code == 200
    assert res.json()["is_active"] is False
    assert client.get("/permissions/mine", headers=manager_headers).status_code == 401
