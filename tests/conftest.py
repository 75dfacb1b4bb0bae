"""
Pytest fixtures for the test suite.

Every test gets a fresh in-memory SQLite database. `StaticPool` keeps one
connection, so the fixture session and the sessions opened by API requests
see the same data. Fixtures commit what they create.
"""
from __future__ import annotations

from pathlib import Path

import pytest
from fastapi import Request
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from propauth.db import filters as _filters  # noqa: F401  (register the scope filter listener)
from propauth.db.base import Base
from propauth.db.init_db import provision
from propauth.db.session import attach_authz, get_db
from propauth.models import Role, User
from propauth.security.config import load_security_config
from propauth.security.defaults import load_defaults

CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"


@pytest.fixture
def engine():
    """Create a fresh in-memory SQLite engine (with tables) for each test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, class_=Session)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def defaults():
    return load_defaults(CONFIG_DIR / "defaults.yaml")


@pytest.fixture
def security_config():
    return load_security_config(CONFIG_DIR / "security_config.yaml")


@pytest.fixture
def provisioned(db_session, defaults):
    """Default roles, permissions, pages and grants."""
    provision(db_session, defaults)
    return db_session


@pytest.fixture
def roles(provisioned) -> dict[str, Role]:
    return {r.name: r for r in provisioned.scalars(select(Role)).all()}


@pytest.fixture
def make_user(provisioned, roles):
    """
    Factory: make_user("alice", "owner", created_by=admin.id, id=9001).

    Commits, so API requests see the row.
    """

    def _make(username: str, role: str, created_by: int | None = None, **extra) -> User:
        user = User(
            username=username,
            email=f"{username}@example.com",
            role_id=roles[role].id,
            is_active=True,
            created_by=created_by,
            **extra,
        )
        provisioned.add(user)
        provisioned.commit()
        return user

    return _make


@pytest.fixture
def admin(make_user) -> User:
    return make_user("root", "admin")


@pytest.fixture
def owner_a(make_user, admin) -> User:
    return make_user("owner_a", "owner", created_by=admin.id, id=9001)


@pytest.fixture
def owner_b(make_user, admin) -> User:
    return make_user("owner_b", "owner", created_by=admin.id, id=9002)


@pytest.fixture
def app(session_factory, security_config, defaults):
    from propauth.main import create_app

    app = create_app(provision=False)
    app.state.security_config = security_config
    app.state.defaults = defaults

    def _get_db(request: Request):
        db = session_factory()
        try:
            yield attach_authz(db, request)
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    return app


@pytest.fixture
def client(app, provisioned) -> TestClient:
    # Without a `with` block the lifespan (and its provisioning) does not run.
    return TestClient(app)


@pytest.fixture
def auth():
    """auth(user) -> headers for the dummy provider (token = user id)."""

    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {user.id}"}

    return _headers
