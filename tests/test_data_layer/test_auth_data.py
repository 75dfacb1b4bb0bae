"""
Tests for principal loading (ORM).

Uses the db_session fixture: fresh in-memory SQLite per test.
"""
from __future__ import annotations

import pytest

from propauth.errors import Unauthenticated
from propauth.models import Role, User
from propauth.security.auth import load_user


def test_load_user_returns_user_with_role(db_session):
    # Arrange: a role and a principal, like provisioning does
    role = Role(name="owner", description="Owner role", rank=3, is_system=True)
    db_session.add(role)
    db_session.flush()

    user = User(username="testuser", email="test@example.com", role_id=role.id, is_active=True)
    db_session.add(user)
    db_session.commit()

    # Act
    loaded = load_user(db_session, user.id)

    # Assert
    assert loaded.id == user.id
    assert loaded.username == "testuser"
    assert loaded.role is not None
    assert loaded.role.name == "owner"
    assert loaded.is_admin is False


def test_load_user_raises_when_not_found(db_session):
    with pytest.raises(Unauthenticated) as exc_info:
        load_user(db_session, 99999)
    assert exc_info.value.status_code == 401


def test_load_user_raises_when_inactive(db_session):
    role = Role(name="staff", rank=1)
    db_session.add(role)
    db_session.flush()
    user = User(username="inactive", email="inactive@example.com", role_id=role.id, is_active=False)
    db_session.add(user)
    db_session.commit()

    with pytest.raises(Unauthenticated) as exc_info:
        load_user(db_session, user.id)
    assert exc_info.value.status_code == 401


def test_load_user_ignores_a_scope_filter_on_the_session(provisioned, owner_a):
    from propauth.security.context import ScopeFilter

    user_id = owner_a.id
    provisioned.info["scope"] = ScopeFilter(is_admin=False)
    provisioned.expunge_all()

    assert load_user(provisioned, user_id).username == "owner_a"
