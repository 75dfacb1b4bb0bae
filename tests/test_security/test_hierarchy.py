"""Rank-based user creation and the creator tree."""
from __future__ import annotations

import pytest
from sqlalchemy import func, select

from propauth.errors import Conflict, CreatorCycleError, Forbidden, InvalidRoleEscalation
from propauth.models import User
from propauth.security.hierarchy import UserHierarchy
from propauth.services.roles import RoleService


def test_escalation_block(provisioned, roles, owner_a):
    hierarchy = UserHierarchy(provisioned)
    assert hierarchy.can_create(owner_a, roles["admin"].id) is False
    assert hierarchy.can_create(owner_a, roles["owner"].id) is False
    assert hierarchy.can_create(owner_a, roles["manager"].id) is True
    assert hierarchy.can_create(owner_a, roles["staff"].id) is True


def test_admin_creates_anything_and_staff_creates_nothing(provisioned, roles, admin, make_user):
    staff = make_user("stf", "staff", created_by=admin.id)
    hierarchy = UserHierarchy(provisioned)
    assert all(hierarchy.can_create(admin, role.id) for role in roles.values())
    assert not any(hierarchy.can_create(staff, role.id) for role in roles.values())


def test_unknown_role_cannot_be_created(provisioned, owner_a):
    assert UserHierarchy(provisioned).can_create(owner_a, 424242) is False


def test_create_user_sets_created_by(provisioned, roles, owner_a):
    user = UserHierarchy(provisioned).create_user(
        owner_a, username="mgr", email="mgr@example.com", role_id=roles["manager"].id
    )
    assert user.created_by == owner_a.id
    assert user.id in UserHierarchy(provisioned).visible_users(owner_a)


def test_create_user_escalation_inserts_nothing(provisioned, roles, owner_b):
    before = provisioned.scalar(select(func.count(User.id)))
    with pytest.raises(InvalidRoleEscalation):
        UserHierarchy(provisioned).create_user(
            owner_b, username="evil", email="evil@example.com", role_id=roles["admin"].id
        )
    assert provisioned.scalar(select(func.count(User.id))) == before


def test_create_user_requires_creator(provisioned, roles):
    with pytest.raises(TypeError):
        UserHierarchy(provisioned).create_user(None, username="x", email="x@example.com", role_id=roles["staff"].id)


def test_duplicate_username_conflicts(provisioned, roles, owner_a):
    hierarchy = UserHierarchy(provisioned)
    hierarchy.create_user(owner_a, username="dup", email="dup1@example.com", role_id=roles["staff"].id)
    with pytest.raises(Conflict):
        hierarchy.create_user(owner_a, username="dup", email="dup2@example.com", role_id=roles["staff"].id)


def test_update_cannot_raise_role_to_own_rank(provisioned, roles, owner_a, make_user):
    manager = make_user("mgr", "manager", created_by=owner_a.id)
    with pytest.raises(InvalidRoleEscalation):
        UserHierarchy(provisioned).update_user(owner_a, manager, {"role_id": roles["owner"].id})


def test_update_refuses_created_by(provisioned, owner_a, make_user):
    manager = make_user("mgr", "manager", created_by=owner_a.id)
    with pytest.raises(Forbidden):
        UserHierarchy(provisioned).update_user(owner_a, manager, {"created_by": None})


def test_created_by_is_immutable_on_the_model(provisioned, owner_a, owner_b, make_user):
    manager = make_user("mgr", "manager", created_by=owner_a.id)
    with pytest.raises(ValueError, match="immutable"):
        manager.created_by = owner_b.id


def test_adopt_orphan_backfills_once(provisioned, admin, owner_a, make_user):
    legacy = make_user("legacy", "staff")
    hierarchy = UserHierarchy(provisioned)

    adopted = hierarchy.adopt_orphan(admin, legacy.id, owner_a.id)
    assert adopted.created_by == owner_a.id
    assert hierarchy.ancestors(legacy.id) == [owner_a.id, admin.id]

    with pytest.raises(Conflict):
        hierarchy.adopt_orphan(admin, legacy.id, admin.id)


def test_adopt_orphan_rejects_cycles(provisioned, admin, make_user):
    root = make_user("legacy_root", "owner")
    child = make_user("legacy_child", "manager", created_by=root.id)
    hierarchy = UserHierarchy(provisioned)

    with pytest.raises(CreatorCycleError):
        hierarchy.adopt_orphan(admin, root.id, child.id)
    with pytest.raises(CreatorCycleError):
        hierarchy.adopt_orphan(admin, root.id, root.id)


def test_adopt_orphan_is_admin_only(provisioned, owner_a, make_user):
    legacy = make_user("legacy", "staff")
    with pytest.raises(Forbidden):
        UserHierarchy(provisioned).adopt_orphan(owner_a, legacy.id, owner_a.id)


def test_custom_role_stays_with_its_owner(provisioned, owner_a, owner_b, make_user):
    night = RoleService(provisioned).create_role(owner_a, "Night Guards")
    manager_a = make_user("mgr_a", "manager", created_by=owner_a.id)
    hierarchy = UserHierarchy(provisioned)

    assert hierarchy.can_create(owner_a, night.id) is True
    assert hierarchy.can_create(manager_a, night.id) is True
    assert hierarchy.can_create(owner_b, night.id) is False

    with pytest.raises(InvalidRoleEscalation):
        hierarchy.create_user(owner_b, username="intruder", email="intruder@example.com", role_id=night.id)


def test_update_cannot_move_user_into_foreign_custom_role(provisioned, roles, owner_a, owner_b, make_user):
    night = RoleService(provisioned).create_role(owner_a, "Night Guards")
    staff_b = make_user("stf_b", "staff", created_by=owner_b.id)

    with pytest.raises(InvalidRoleEscalation):
        UserHierarchy(provisioned).update_user(owner_b, staff_b, {"role_id": night.id})
    assert staff_b.role_id == roles["staff"].id
