"""
Hierarchical user management.

Who may create whom is a rank comparison:

    can_create(creator, role) = creator is admin  or  rank(role) < rank(creator.role)

Owners (3) create managers (2) and staff-tier roles (1); managers create staff
tier; staff tier creates nobody. Nobody but admin creates admin or owner.
A custom role is only usable by its creator and by the users its creator made.

`created_by` on users is a lookup edge forming a tree. It is written once,
by the creator, and the only later write allowed is an admin backfill of a
NULL value that is checked for cycles first.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from propauth.errors import (
    ConfigurationError,
    Conflict,
    CreatorCycleError,
    Forbidden,
    InvalidRoleEscalation,
    NotFound,
)
from propauth.models.security import Role, User
from propauth.security.resources import ResourceType
from propauth.security.scope import ScopeResolver

logger = logging.getLogger(__name__)

_UNFILTERED = {"skip_scope_filter": True}

# Fields a PATCH may touch. created_by and id are never among them.
UPDATABLE_FIELDS = frozenset({"email", "first_name", "last_name", "role_id", "is_active"})


class UserHierarchy:
    def __init__(self, db: Session, resolver: ScopeResolver | None = None) -> None:
        self.db = db
        self.resolver = resolver or ScopeResolver(db)

    # ---- Rank policy ----------------------------------------------------------------

    def role(self, role_id: int) -> Role:
        role = self.db.get(Role, role_id)
        if role is None:
            raise ConfigurationError(f"Unknown role id {role_id}")
        return role

    def can_create(self, creator: User, target_role_id: int) -> bool:
        if creator.is_admin:
            return True
        target = self.db.get(Role, target_role_id)
        if target is None:
            return False
        if not target.is_system:
            owners = {creator.id, creator.created_by} - {None}
            if target.created_by not in owners:
                return False
        return target.rank < creator.role.rank

    def assert_can_create(self, creator: User, target_role_id: int) -> Role:
        role = self.role(target_role_id)
        if not self.can_create(creator, target_role_id):
            logger.info(
                "Role escalation blocked actor=%s actor_role=%s target_role=%s",
                creator.id,
                creator.role.name,
                role.name,
            )
            raise InvalidRoleEscalation()
        return role

    # ---- Users ----------------------------------------------------------------------

    def visible_users(self, principal: User) -> frozenset[int]:
        return self.resolver.resolve(principal, ResourceType.USER)

    def create_user(
        self,
        creator: User,
        *,
        username: str,
        email: str,
        role_id: int,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> User:
        if creator is None:
            raise TypeError("create_user requires the authenticated creator")

        self.assert_can_create(creator, role_id)
        self._ensure_unique(username=username, email=email)

        user = User(
            username=username,
            email=email,
            first_name=first_name,
            last_name=last_name,
            role_id=role_id,
            is_active=True,
            created_by=creator.id,
        )
        self.db.add(user)
        self.db.commit()
        logger.info("User created id=%s role_id=%s created_by=%s", user.id, role_id, creator.id)
        return user

    def update_user(self, actor: User, user: User, changes: dict[str, Any]) -> User:
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise Forbidden(detail=f"Fields cannot be changed: {', '.join(sorted(unknown))}")

        new_role_id = changes.get("role_id")
        if new_role_id is not None and new_role_id != user.role_id:
            if user.id == actor.id and not actor.is_admin:
                raise InvalidRoleEscalation("Cannot change your own role")
            self.assert_can_create(actor, new_role_id)

        if "email" in changes and changes["email"] != user.email:
            self._ensure_unique(email=changes["email"], exclude_id=user.id)

        for field, value in changes.items():
            setattr(user, field, value)
        self.db.commit()
        logger.info("User updated id=%s fields=%s actor=%s", user.id, sorted(changes), actor.id)
        return user

    def deactivate_user(self, actor: User, user: User) -> User:
        if user.id == actor.id:
            raise Forbidden(detail="Cannot deactivate yourself")
        user.is_active = False
        self.db.commit()
        logger.info("User deactivated id=%s actor=%s", user.id, actor.id)
        return user

    # ---- Creator tree ---------------------------------------------------------------

    def ancestors(self, user_id: int) -> list[int]:
        """Creator chain of `user_id`, nearest first."""
        chain: list[int] = []
        seen = {user_id}
        current = self._creator_of(user_id)
        while current is not None:
            if current in seen:
                # Only reachable with corrupted data; stop instead of looping.
                raise CreatorCycleError(f"Creator chain of user {user_id} loops at {current}")
            chain.append(current)
            seen.add(current)
            current = self._creator_of(current)
        return chain

    def adopt_orphan(self, actor: User, user_id: int, new_creator_id: int) -> User:
        """
        Backfill `created_by` on a legacy principal.

        Rejected when the value is already set or when `new_creator_id` is
        `user_id` itself or one of its descendants.
        """

        if not actor.is_admin:
            raise Forbidden(detail="Only admin may assign a creator")

        user = self._get_unfiltered(user_id)
        creator = self._get_unfiltered(new_creator_id)
        if user.created_by is not None:
            raise Conflict("User already has a creator")
        if creator.id == user.id or user.id in self.ancestors(creator.id):
            raise CreatorCycleError()

        user.created_by = creator.id
        self.db.commit()
        logger.info("Creator assigned user=%s created_by=%s actor=%s", user.id, creator.id, actor.id)
        return user

    # ---- Internals ------------------------------------------------------------------

    def _creator_of(self, user_id: int) -> int | None:
        return self.db.scalars(
            select(User.created_by).where(User.id == user_id), execution_options=_UNFILTERED
        ).first()

    def _get_unfiltered(self, user_id: int) -> User:
        user = self.db.scalars(select(User).where(User.id == user_id), execution_options=_UNFILTERED).first()
        if user is None:
            raise NotFound("User not found")
        return user

    def _ensure_unique(self, *, username: str | None = None, email: str | None = None, exclude_id: int | None = None) -> None:
        clauses = []
        if username is not None:
            clauses.append(User.username == username)
        if email is not None:
            clauses.append(User.email == email)
        stmt = select(User.id).where(or_(*clauses))
        if exclude_id is not None:
            stmt = stmt.where(User.id != exclude_id)
        if self.db.scalars(stmt, execution_options=_UNFILTERED).first() is not None:
            raise Conflict("Username or email already in use")
