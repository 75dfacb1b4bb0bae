"""
Permission catalog: the `(resource, action)` table and role grants.

Names are always "<resource>.<action>". The scoped actions `view_own` and
`update_own` are independent grants: holding `tenants.view_own` says nothing
about `tenants.view` and the reverse holds too. No hierarchy is inferred
between any two actions.

Resolution is pure lookup. Unknown names are "not granted" so every check
fails closed.
"""

from __future__ import annotations

import logging
import re
from collections import defaultdict
from collections.abc import Iterable, Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from propauth.errors import ConfigurationError, Conflict, Forbidden, InvalidPermissionName, NotFound
from propauth.models.security import Permission, Role, User, role_permissions

logger = logging.getLogger(__name__)

ACTIONS = frozenset({"view", "create", "update", "delete", "assign", "manage", "view_own", "update_own"})

# Scoped action -> the unscoped action it restricts. Used for routing only.
SCOPED_VARIANTS = {"view": "view_own", "update": "update_own"}

_RESOURCE_RE = re.compile(r"^[a-z][a-z0-9_]*$")


def permission_name(resource: str, action: str) -> str:
    resource = resource.strip().lower()
    action = action.strip().lower()
    if not _RESOURCE_RE.match(resource):
        raise InvalidPermissionName(f"Invalid resource {resource!r}")
    if action not in ACTIONS:
        raise InvalidPermissionName(f"Invalid action {action!r}; expected one of {sorted(ACTIONS)}")
    return f"{resource}.{action}"


def accepted_names(name: str) -> tuple[str, ...]:
    """
    `name` plus its `_own` counterpart, for routes that take either grant.

    `buildings.view` -> ("buildings.view", "buildings.view_own").
    """

    resource, _, action = name.partition(".")
    scoped = SCOPED_VARIANTS.get(action)
    if scoped is None:
        return (name,)
    return (name, f"{resource}.{scoped}")


class PermissionCatalog:
    """
    DB-backed permission catalog.

    One instance per request; role lookups are memoized on the instance.
    """

    def __init__(self, db: Session) -> None:
        self.db = db
        self._by_role: dict[int, frozenset[str]] = {}
        self._all: frozenset[str] | None = None

    # ---- Resolution ------------------------------------------------------------------

    def list_permissions_for_role(self, role_id: int) -> list[Permission]:
        stmt = (
            select(Permission)
            .join(role_permissions, role_permissions.c.permission_id == Permission.id)
            .where(role_permissions.c.role_id == role_id)
            .order_by(Permission.resource, Permission.action)
        )
        return list(self.db.scalars(stmt).all())

    def permissions_for_role(self, role_id: int) -> frozenset[str]:
        cached = self._by_role.get(role_id)
        if cached is None:
            cached = frozenset(p.name for p in self.list_permissions_for_role(role_id))
            self._by_role[role_id] = cached
        return cached

    def all_permission_names(self) -> frozenset[str]:
        if self._all is None:
            self._all = frozenset(self.db.scalars(select(Permission.name)).all())
        return self._all

    def resolved_for(self, principal: User) -> frozenset[str]:
        """Resolved permission set; admin resolves to the whole catalog."""
        if principal.is_admin:
            return self.all_permission_names()
        return self.permissions_for_role(principal.role_id)

    def has_permission(self, principal: User, name: str) -> bool:
        if principal.is_admin:
            return True
        return name in self.permissions_for_role(principal.role_id)

    def has_any(self, principal: User, names: Iterable[str]) -> bool:
        return any(self.has_permission(principal, n) for n in names)

    def has_all(self, principal: User, names: Iterable[str]) -> bool:
        return all(self.has_permission(principal, n) for n in names)

    def missing(self, principal: User, names: Iterable[str]) -> list[str]:
        return sorted(n for n in set(names) if not self.has_permission(principal, n))

    # ---- Administration --------------------------------------------------------------

    def list_permissions(self) -> list[tuple[Permission, int]]:
        """All permissions with the number of roles holding each."""
        stmt = (
            select(Permission, func.count(role_permissions.c.role_id))
            .outerjoin(role_permissions, role_permissions.c.permission_id == Permission.id)
            .group_by(Permission.id)
            .order_by(Permission.resource, Permission.action)
        )
        return [(perm, count) for perm, count in self.db.execute(stmt).all()]

    def grouped_by_resource(self) -> dict[str, list[Permission]]:
        grouped: dict[str, list[Permission]] = defaultdict(list)
        for perm in self.db.scalars(select(Permission).order_by(Permission.resource, Permission.action)):
            grouped[perm.resource].append(perm)
        return dict(grouped)

    def get_permission(self, permission_id: int) -> Permission:
        perm = self.db.get(Permission, permission_id)
        if perm is None:
            raise NotFound("Permission not found")
        return perm

    def create_permission(self, resource: str, action: str, description: str | None = None) -> Permission:
        name = permission_name(resource, action)
        if self.db.scalars(select(Permission.id).where(Permission.name == name)).first() is not None:
            raise Conflict(f"Permission {name!r} already exists")
        perm = Permission(name=name, resource=resource.strip().lower(), action=action.strip().lower(), description=description)
        self.db.add(perm)
        self.db.commit()
        self._all = None
        logger.info("Permission created name=%s", name)
        return perm

    def update_permission(
        self, permission_id: int, resource: str, action: str, description: str | None = None
    ) -> Permission:
        perm = self.get_permission(permission_id)
        name = permission_name(resource, action)
        clash = self.db.scalars(select(Permission.id).where(Permission.name == name, Permission.id != perm.id)).first()
        if clash is not None:
            raise Conflict(f"Permission {name!r} already exists")
        perm.name = name
        perm.resource = resource.strip().lower()
        perm.action = action.strip().lower()
        perm.description = description
        self.db.commit()
        self._reset()
        return perm

    def delete_permission(self, permission_id: int) -> None:
        perm = self.get_permission(permission_id)
        perm.roles.clear()
        self.db.delete(perm)
        self.db.commit()
        self._reset()
        logger.info("Permission deleted id=%s", permission_id)

    def roles_with_permissions(self) -> list[Role]:
        stmt = select(Role).options(selectinload(Role.permissions)).order_by(Role.name)
        return list(self.db.scalars(stmt).all())

    def replace_role_permissions(self, actor: User, role_id: int, permission_ids: Sequence[int]) -> Role:
        """
        Replace every grant of `role_id` with `permission_ids`.

        Admin may edit any role. Anyone else may only edit a custom role they
        created, and only with permissions they hold themselves.
        """

        role = self.db.get(Role, role_id)
        if role is None:
            raise NotFound("Role not found")

        wanted = set(permission_ids)
        perms = list(self.db.scalars(select(Permission).where(Permission.id.in_(wanted))).all())
        if len(perms) != len(wanted):
            raise ConfigurationError("Unknown permission id in grant list")

        if not actor.is_admin:
            if role.is_system or role.created_by != actor.id:
                raise Forbidden(detail="Only the creator of a custom role may change its permissions")
            not_held = self.missing(actor, (p.name for p in perms))
            if not_held:
                raise Forbidden(missing=not_held, detail="Cannot grant permissions you do not hold")

        role.permissions = perms
        self.db.commit()
        self._reset()
        logger.info("Role permissions replaced role=%s count=%s actor=%s", role.name, len(perms), actor.id)
        return role

    def _reset(self) -> None:
        self._by_role.clear()
        self._all = None
