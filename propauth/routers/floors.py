from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from propauth.db.session import get_db
from propauth.models.property import Apartment
from propauth.models.security import User
from propauth.schemas.property import ApartmentIn, ApartmentOut
from propauth.security.dependencies import get_current_user
from propauth.security.resources import ResourceType
from propauth.services.repository import ScopedRepository

router = APIRouter(prefix="/floors", tags=["floors"])


@router.get("/{id}/apartments", response_model=list[ApartmentOut])
def list_apartments(id: int, db: Session = Depends(get_db)) -> list[Apartment]:
    floor = ScopedRepository(db, ResourceType.FLOOR).get(id)
    return ScopedRepository(db, ResourceType.APARTMENT).list(Apartment.floor_id == floor.id)


@router.post("/{id}/apartments", response_model=ApartmentOut, status_code=status.HTTP_201_CREATED)
def create_apartment(
    id: int,
    body: ApartmentIn,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> Apartment:
    floor = ScopedRepository(db, ResourceType.FLOOR).get(id)
    return ScopedRepository(db, ResourceType.APARTMENT).create(user, {"floor_id": floor.id, **body.model_dump()})
