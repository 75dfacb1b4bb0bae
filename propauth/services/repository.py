"""
Generic store for scoped resource types.

Every read goes through the session's scope filter (see `db/filters.py`),
so `list` and `get` apply the same predicate. The repository itself only
insists that a filter is attached at all: a session without one is a wiring
bug, not an "everything is visible" session.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.orm import Session

from propauth.errors import NotFound, ScopeFilterMissing
from propauth.models.security import User
from propauth.security.context import ScopeFilter
from propauth.security.resources import ResourceType, default_registry

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")

# Never writable through a generic update.
PROTECTED_FIELDS = frozenset({"id", "created_by", "created_at"})


class ScopedRepository(Generic[ModelT]):
    def __init__(self, db: Session, resource_type: ResourceType) -> None:
        self.db = db
        self.resource_type = resource_type
        self.spec = default_registry()[resource_type]
        self.model: type[ModelT] = self.spec.model

    def _require_scope(self) -> ScopeFilter:
        scope = self.db.info.get("scope")
        if scope is None:
            raise ScopeFilterMissing(f"No scope filter attached for {self.resource_type.value}")
        return scope

    def list(self, *criteria, order_by=None) -> list[ModelT]:
        self._require_scope()
        stmt = select(self.model).where(*criteria).order_by(order_by if order_by is not None else self.model.id)
        return list(self.db.scalars(stmt).all())

    def get(self, resource_id: int) -> ModelT:
        scope = self._require_scope()
        obj = self.db.scalars(select(self.model).where(self.model.id == resource_id)).first()
        if obj is None or not scope.allows(self.resource_type, obj.id):
            raise NotFound(f"{self.resource_type.value.rstrip('s').capitalize()} not found")
        return obj

    def create(self, creator: User, values: Mapping[str, Any]) -> ModelT:
        self._require_scope()
        data = {k: v for k, v in values.items() if k not in PROTECTED_FIELDS}
        if self.spec.authored:
            data["created_by"] = creator.id
        obj = self.model(**data)
        self.db.add(obj)
        self.db.commit()
        logger.info("%s created id=%s created_by=%s", self.resource_type.value, obj.id, creator.id)
        return obj

    def update(self, obj: ModelT, changes: Mapping[str, Any]) -> ModelT:
        self._require_scope()
        for field, value in changes.items():
            if field in PROTECTED_FIELDS:
                continue
            setattr(obj, field, value)
        self.db.commit()
        return obj

    def delete(self, obj: ModelT) -> None:
        self._require_scope()
        resource_id = obj.id
        self.db.delete(obj)
        self.db.commit()
        logger.info("%s deleted id=%s", self.resource_type.value, resource_id)
