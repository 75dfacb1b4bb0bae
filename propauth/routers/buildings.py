from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from propauth.db.session import get_db
from propauth.models.property import Building, Floor
from propauth.models.security import User
from propauth.schemas.property import BuildingIn, BuildingOut, BuildingUpdate, FloorIn, FloorOut
from propauth.security.dependencies import get_current_user
from propauth.security.resources import ResourceType
from propauth.services.repository import ScopedRepository

router = APIRouter(prefix="/buildings", tags=["buildings"])


def _buildings(db: Session) -> ScopedRepository[Building]:
    return ScopedRepository(db, ResourceType.BUILDING)


@router.get("", response_model=list[BuildingOut])
def list_buildings(db: Session = Depends(get_db)) -> list[Building]:
    # Scoping is applied transparently by db/filters.py.
    return _buildings(db).list()


@router.post("", response_model=BuildingOut, status_code=status.HTTP_201_CREATED)
def create_building(body: BuildingIn, db: Session = Depends(get_db), user: User = Depends(get_current_user)) -> Building:
    return _buildings(db).create(user, body.model_dump())


@router.get("/{id}", response_model=BuildingOut)
def get_building(id: int, db: Session = Depends(get_db)) -> Building:
    # Outside the caller's scope looks exactly like absent.
    return _buildings(db).get(id)


@router.put("/{id}", response_model=BuildingOut)
def update_building(id: int, body: BuildingUpdate, db: Session = Depends(get_db)) -> Building:
    repo = _buildings(db)
    return repo.update(repo.get(id), body.model_dump(exclude_unset=True))


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_building(id: int, db: Session = Depends(get_db)) -> None:
    repo = _buildings(db)
    repo.delete(repo.get(id))


@router.get("/{id}/floors", response_model=list[FloorOut])
def list_floors(id: int, db: Session = Depends(get_db)) -> list[Floor]:
    building = _buildings(db).get(id)
    return ScopedRepository(db, ResourceType.FLOOR).list(Floor.building_id == building.id)


@router.post("/{id}/floors", response_model=FloorOut, status_code=status.HTTP_201_CREATED)
def create_floor(id: int, body: FloorIn, db: Session = Depends(get_db), user: User = Depends(get_current_user)) -> Floor:
    building = _buildings(db).get(id)
    return ScopedRepository(db, ResourceType.FLOOR).create(user, {"building_id": building.id, **body.model_dump()})
