"""Permission catalog: resolution, naming rules, administration."""
from __future__ import annotations

import pytest
from sqlalchemy import select

from propauth.errors import Conflict, Forbidden, InvalidPermissionName
from propauth.models import Permission
from propauth.security.catalog import PermissionCatalog, accepted_names, permission_name


def test_admin_has_every_permission_even_unknown(provisioned, admin):
    catalog = PermissionCatalog(provisioned)
    assert catalog.has_permission(admin, "buildings.view") is True
    assert catalog.has_permission(admin, "nothing.view") is True
    assert catalog.resolved_for(admin) == catalog.all_permission_names()


def test_owner_resolution_is_exact_lookup(provisioned, owner_a):
    catalog = PermissionCatalog(provisioned)
    assert catalog.has_permission(owner_a, "tenants.view_own") is True
    # view_own does not imply view, and nothing implies an unknown name.
    assert catalog.has_permission(owner_a, "tenants.view") is False
    assert catalog.has_permission(owner_a, "tenants.frobnicate") is False


def test_has_any_and_has_all(provisioned, owner_a):
    catalog = PermissionCatalog(provisioned)
    assert catalog.has_any(owner_a, ["tenants.view", "tenants.view_own"]) is True
    assert catalog.has_all(owner_a, ["tenants.view", "tenants.view_own"]) is False
    assert catalog.missing(owner_a, ["tenants.view", "tenants.view_own"]) == ["tenants.view"]


def test_list_permissions_for_role_is_deterministic(provisioned, roles):
    catalog = PermissionCatalog(provisioned)
    first = [p.name for p in catalog.list_permissions_for_role(roles["staff"].id)]
    second = [p.name for p in catalog.list_permissions_for_role(roles["staff"].id)]
    assert first == second == ["dashboard.view", "tenants.view_own"]


def test_permission_name_rules():
    assert permission_name("Buildings", "VIEW_OWN") == "buildings.view_own"
    with pytest.raises(InvalidPermissionName):
        permission_name("buildings", "explode")
    with pytest.raises(InvalidPermissionName):
        permission_name("9lives", "view")


def test_accepted_names_adds_scoped_variant_only_for_view_and_update():
    assert accepted_names("tenants.view") == ("tenants.view", "tenants.view_own")
    assert accepted_names("tenants.update") == ("tenants.update", "tenants.update_own")
    assert accepted_names("tenants.delete") == ("tenants.delete",)


def test_create_permission_rejects_duplicates(provisioned):
    catalog = PermissionCatalog(provisioned)
    perm = catalog.create_permission("vendors", "view", "See vendors")
    assert perm.name == "vendors.view"
    with pytest.raises(Conflict):
        catalog.create_permission("vendors", "view")


def test_delete_permission_removes_grants(provisioned, roles, owner_a):
    catalog = PermissionCatalog(provisioned)
    perm = provisioned.scalars(select(Permission).where(Permission.name == "dashboard.view")).one()
    assert catalog.has_permission(owner_a, "dashboard.view")

    catalog.delete_permission(perm.id)

    assert PermissionCatalog(provisioned).has_permission(owner_a, "dashboard.view") is False


def test_owner_may_only_grant_held_permissions_to_own_custom_role(provisioned, owner_a, roles):
    from propauth.services.roles import RoleService

    custom = RoleService(provisioned).create_role(owner_a, "Cleaners")
    assert custom.name == f"owner_{owner_a.id}_cleaners"
    assert custom.rank == 1

    held = provisioned.scalars(select(Permission).where(Permission.name == "tenants.view_own")).one()
    not_held = provisioned.scalars(select(Permission).where(Permission.name == "tenants.view")).one()

    catalog = PermissionCatalog(provisioned)
    role = catalog.replace_role_permissions(owner_a, custom.id, [held.id])
    assert [p.name for p in role.permissions] == ["tenants.view_own"]

    with pytest.raises(Forbidden) as exc_info:
        catalog.replace_role_permissions(owner_a, custom.id, [not_held.id])
    assert exc_info.value.missing == ("tenants.view",)

    with pytest.raises(Forbidden):
        catalog.replace_role_permissions(owner_a, roles["manager"].id, [held.id])
