from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from propauth.db.session import get_db
from propauth.schemas.property import (
    BuildingAssignmentIn,
    BuildingAssignmentOut,
    VillaAssignmentIn,
    VillaAssignmentOut,
)
from propauth.services.assignments import AssignmentService

router = APIRouter(prefix="/assignments", tags=["assignments"])


@router.get("/buildings", response_model=list[BuildingAssignmentOut])
def list_building_assignments(user_id: int | None = None, db: Session = Depends(get_db)):
    return AssignmentService.buildings(db).list(user_id)


@router.post("/buildings", response_model=BuildingAssignmentOut, status_code=status.HTTP_201_CREATED)
def assign_building(body: BuildingAssignmentIn, db: Session = Depends(get_db)):
    return AssignmentService.buildings(db).grant(body.user_id, body.building_id)


@router.delete("/buildings/{id}", status_code=status.HTTP_204_NO_CONTENT)
def revoke_building(id: int, db: Session = Depends(get_db)) -> None:
    AssignmentService.buildings(db).revoke(id)


@router.get("/villas", response_model=list[VillaAssignmentOut])
def list_villa_assignments(user_id: int | None = None, db: Session = Depends(get_db)):
    return AssignmentService.villas(db).list(user_id)


@router.post("/villas", response_model=VillaAssignmentOut, status_code=status.HTTP_201_CREATED)
def assign_villa(body: VillaAssignmentIn, db: Session = Depends(get_db)):
    return AssignmentService.villas(db).grant(body.user_id, body.villa_id)


@router.delete("/villas/{id}", status_code=status.HTTP_204_NO_CONTENT)
def revoke_villa(id: int, db: Session = Depends(get_db)) -> None:
    AssignmentService.villas(db).revoke(id)
