"""
Admin-managed building and villa assignments.

An assignment grants visibility of one instance to one principal. It never
touches `created_by`, and revoking it leaves authorship intact.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from propauth.errors import Conflict, NotFound
from propauth.models.property import Building, BuildingAssignment, Villa, VillaAssignment
from propauth.models.security import User

logger = logging.getLogger(__name__)

_UNFILTERED = {"skip_scope_filter": True}


class AssignmentService:
    """
    One service per assignment table.

    `AssignmentService.buildings(db)` / `AssignmentService.villas(db)`.
    """

    def __init__(self, db: Session, model: type, target_model: type, target_column: str) -> None:
        self.db = db
        self.model = model
        self.target_model = target_model
        self.target_column = target_column

    @classmethod
    def buildings(cls, db: Session) -> AssignmentService:
        return cls(db, BuildingAssignment, Building, "building_id")

    @classmethod
    def villas(cls, db: Session) -> AssignmentService:
        return cls(db, VillaAssignment, Villa, "villa_id")

    def list(self, user_id: int | None = None) -> list:
        stmt = select(self.model).order_by(self.model.id)
        if user_id is not None:
            stmt = stmt.where(self.model.user_id == user_id)
        return list(self.db.scalars(stmt).all())

    def grant(self, user_id: int, target_id: int):
        if self.db.scalars(select(User.id).where(User.id == user_id), execution_options=_UNFILTERED).first() is None:
            raise NotFound("User not found")
        target = self.db.scalars(
            select(self.target_model.id).where(self.target_model.id == target_id), execution_options=_UNFILTERED
        ).first()
        if target is None:
            raise NotFound(f"{self.target_model.__name__} not found")

        column = getattr(self.model, self.target_column)
        exists = self.db.scalars(
            select(self.model.id).where(self.model.user_id == user_id, column == target_id)
        ).first()
        if exists is not None:
            raise Conflict("Already assigned")

        assignment = self.model(user_id=user_id, **{self.target_column: target_id})
        self.db.add(assignment)
        self.db.commit()
        logger.info("%s granted user=%s target=%s", self.model.__name__, user_id, target_id)
        return assignment

    def revoke(self, assignment_id: int) -> None:
        assignment = self.db.get(self.model, assignment_id)
        if assignment is None:
            raise NotFound("Assignment not found")
        self.db.delete(assignment)
        self.db.commit()
        logger.info("%s revoked id=%s", self.model.__name__, assignment_id)
