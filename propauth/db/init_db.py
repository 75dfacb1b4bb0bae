from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from propauth.db.base import Base
from propauth.db.session import SessionLocal, engine
from propauth.models.security import ADMIN_ROLE, Permission, Role, User
from propauth.models.sidebar import PagePermission, RolePagePermission, SidebarPage
from propauth.security.defaults import DefaultConfiguration

logger = logging.getLogger(__name__)


def init_db(defaults: DefaultConfiguration) -> None:
    """
    Create tables, provision the default catalog and bootstrap an admin.

    Safe to run on every startup: existing rows are left alone, so grants
    changed through the admin endpoints are not reverted.
    """

    Base.metadata.create_all(bind=engine)

    with SessionLocal() as db:
        provision(db, defaults)
        if not _has_users(db):
            _bootstrap_admin(db)


def provision(db: Session, defaults: DefaultConfiguration) -> None:
    roles, new_roles = _ensure_roles(db, defaults)
    permissions = _ensure_permissions(db, defaults)

    # Grants are written only for roles that did not exist before.
    for role_name in new_roles:
        roles[role_name].permissions = [permissions[name] for name in defaults.permissions_for(role_name)]

    pages, new_pages = _ensure_pages(db, defaults)
    for role_name, role in roles.items():
        for url in defaults.pages_for(role_name):
            if role_name in new_roles or url in new_pages:
                db.add(RolePagePermission(role_id=role.id, page_id=pages[url].id, permission_type="view", is_granted=True))

    db.commit()
    logger.info(
        "Defaults v%s provisioned new_roles=%s new_pages=%s",
        defaults.version,
        sorted(new_roles),
        sorted(new_pages),
    )


def _ensure_roles(db: Session, defaults: DefaultConfiguration) -> tuple[dict[str, Role], set[str]]:
    existing = {r.name: r for r in db.scalars(select(Role)).all()}
    created: set[str] = set()
    for spec in defaults.roles:
        if spec.name in existing:
            continue
        role = Role(name=spec.name, rank=spec.rank, description=spec.description, is_system=True)
        db.add(role)
        existing[spec.name] = role
        created.add(spec.name)
    db.flush()
    return existing, created


def _ensure_permissions(db: Session, defaults: DefaultConfiguration) -> dict[str, Permission]:
    existing = {p.name: p for p in db.scalars(select(Permission)).all()}
    for spec in defaults.permissions:
        if spec.name in existing:
            continue
        perm = Permission(name=spec.name, resource=spec.resource, action=spec.action, description=spec.description)
        db.add(perm)
        existing[spec.name] = perm
    db.flush()
    return existing


def _ensure_pages(db: Session, defaults: DefaultConfiguration) -> tuple[dict[str, SidebarPage], set[str]]:
    existing = {p.url: p for p in db.scalars(select(SidebarPage)).all()}
    created: set[str] = set()
    for spec in defaults.pages:
        if spec.url in existing:
            continue
        page = SidebarPage(
            name=spec.name,
            url=spec.url,
            icon=spec.icon,
            display_order=spec.display_order,
            description=spec.description,
            is_active=True,
        )
        page.permissions = [
            PagePermission(permission_type=p.type, permission_name=p.permission, description=p.description)
            for p in spec.permissions
        ]
        db.add(page)
        existing[spec.url] = page
        created.add(spec.url)
    db.flush()
    return existing, created


def _has_users(db: Session) -> bool:
    return db.execute(select(User.id).limit(1)).first() is not None


def _bootstrap_admin(db: Session) -> None:
    admin_role = db.scalars(select(Role).where(Role.name == ADMIN_ROLE)).one()
    # The root of the creator tree has no creator.
    db.add(User(username="admin", email="admin@example.com", role_id=admin_role.id, is_active=True))
    db.commit()
    logger.info("Bootstrap admin created")
