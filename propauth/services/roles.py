from __future__ import annotations

import logging
import re

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from propauth.errors import Conflict, Forbidden, NotFound
from propauth.models.security import Role, User

logger = logging.getLogger(__name__)

CUSTOM_RANK = 1

_NAME_RE = re.compile(r"[^a-z0-9]+")


def custom_role_name(owner_id: int, name: str) -> str:
    """Owner-defined roles live in the owner's namespace: `owner_<id>_<name>`."""
    suffix = _NAME_RE.sub("_", name.strip().lower()).strip("_")
    return f"owner_{owner_id}_{suffix}"


class RoleService:
    def __init__(self, db: Session) -> None:
        self.db = db

    def list_roles(self, actor: User) -> list[Role]:
        stmt = select(Role).options(selectinload(Role.permissions)).order_by(Role.rank.desc(), Role.name)
        if not actor.is_admin:
            # System roles plus the custom roles this principal defined.
            stmt = stmt.where((Role.is_system.is_(True)) | (Role.created_by == actor.id))
        return list(self.db.scalars(stmt).all())

    def get_role(self, actor: User, role_id: int) -> Role:
        role = self.db.scalars(select(Role).where(Role.id == role_id).options(selectinload(Role.permissions))).first()
        if role is None or not (actor.is_admin or role.is_system or role.created_by == actor.id):
            raise NotFound("Role not found")
        return role

    def create_role(self, actor: User, name: str, description: str | None = None, rank: int = CUSTOM_RANK) -> Role:
        """
        Admin names roles freely and picks a rank below its own.
        Everyone else gets a staff-tier role in their own namespace.
        """

        if actor.is_admin:
            if rank >= actor.role.rank:
                raise Forbidden(detail="Role rank must be below admin")
            role_name = name.strip().lower()
        else:
            role_name = custom_role_name(actor.id, name)
            rank = CUSTOM_RANK

        if self.db.scalars(select(Role.id).where(Role.name == role_name)).first() is not None:
            raise Conflict(f"Role {role_name!r} already exists")

        role = Role(name=role_name, description=description, rank=rank, is_system=False, created_by=actor.id)
        self.db.add(role)
        self.db.commit()
        logger.info("Role created name=%s rank=%s actor=%s", role_name, rank, actor.id)
        return role

    def delete_role(self, actor: User, role_id: int) -> None:
        role = self.get_role(actor, role_id)
        if role.is_system:
            raise Forbidden(detail="System roles cannot be deleted")
        if not actor.is_admin and role.created_by != actor.id:
            raise Forbidden(detail="Only the creator of a custom role may delete it")

        in_use = self.db.scalar(
            select(func.count(User.id)).where(User.role_id == role.id).execution_options(skip_scope_filter=True)
        )
        if in_use:
            raise Conflict(f"Role is assigned to {in_use} user(s)")

        role_name = role.name
        self.db.delete(role)
        self.db.commit()
        logger.info("Role deleted name=%s actor=%s", role_name, actor.id)
