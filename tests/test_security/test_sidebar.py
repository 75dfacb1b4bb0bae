"""Sidebar projection: both checks, ordering, labels."""
from __future__ import annotations

from sqlalchemy import delete, select

from propauth.models import Role, RolePagePermission, SidebarPage
from propauth.security.catalog import PermissionCatalog
from propauth.security.sidebar import SidebarProjector, own_label, page_slug


def test_owner_menu_is_strict_subset_of_admin_menu(provisioned, admin, owner_a):
    projector = SidebarProjector(provisioned)
    admin_urls = [item.url for item in projector.project_menu(admin)]
    owner_urls = [item.url for item in projector.project_menu(owner_a)]

    assert owner_urls
    assert set(owner_urls) < set(admin_urls)
    assert owner_urls == ["/dashboard", "/buildings", "/villas", "/tenants", "/transactions", "/users", "/roles"]


def test_labels_get_possessive_prefix_for_non_admin_only(provisioned, admin, owner_a):
    projector = SidebarProjector(provisioned)
    assert projector.project_menu(admin)[0].label == "Dashboard"
    assert projector.project_menu(owner_a)[0].label == "My Dashboard"


def test_own_label_is_not_duplicated():
    assert own_label("My Tenants") == "My Tenants"
    assert own_label("Tenants") == "My Tenants"


def test_page_grant_without_abstract_permission_is_inert(provisioned, roles, make_user, admin):
    staff = make_user("stf", "staff", created_by=admin.id)
    users_page = provisioned.scalars(select(SidebarPage).where(SidebarPage.url == "/users")).one()
    provisioned.add(
        RolePagePermission(role_id=roles["staff"].id, page_id=users_page.id, permission_type="view", is_granted=True)
    )
    provisioned.commit()

    urls = [item.url for item in SidebarProjector(provisioned).project_menu(staff)]
    assert "/users" not in urls
    assert urls == ["/dashboard", "/tenants"]


def test_abstract_permission_without_page_grant_hides_page(provisioned, roles, owner_a):
    provisioned.execute(
        delete(RolePagePermission).where(RolePagePermission.role_id == roles["owner"].id)
    )
    provisioned.commit()

    assert PermissionCatalog(provisioned).has_permission(owner_a, "dashboard.view")
    assert SidebarProjector(provisioned).project_menu(owner_a) == []


def test_menu_for_role_without_anything_is_empty(provisioned, admin, make_user):
    bare = Role(name="bare", rank=1)
    provisioned.add(bare)
    provisioned.commit()
    user = make_user("nobody", "staff", created_by=admin.id)
    user.role_id = bare.id
    provisioned.commit()
    provisioned.refresh(user)

    assert SidebarProjector(provisioned).project_menu(user) == []


def test_menu_is_ordered_and_skips_inactive(provisioned, admin):
    villas = provisioned.scalars(select(SidebarPage).where(SidebarPage.url == "/villas")).one()
    villas.is_active = False
    provisioned.commit()

    items = SidebarProjector(provisioned).project_menu(admin)
    assert "/villas" not in [i.url for i in items]
    assert [i.display_order for i in items] == sorted(i.display_order for i in items)


def test_check_page(provisioned, owner_a, admin):
    projector = SidebarProjector(provisioned)
    assert projector.check_page(owner_a, "/tenants") is True
    assert projector.check_page(owner_a, "/permissions") is False
    assert projector.check_page(owner_a, "/does-not-exist") is False
    assert projector.check_page(admin, "/permissions") is True


def test_required_permission_falls_back_to_page_slug(provisioned):
    dashboard = provisioned.scalars(select(SidebarPage).where(SidebarPage.url == "/dashboard")).one()
    assert SidebarProjector(provisioned).required_permission(dashboard) == "dashboard.view"
    assert page_slug("Sidebar settings") == "sidebar_settings"
