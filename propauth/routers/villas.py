from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from propauth.db.session import get_db
from propauth.models.property import Villa
from propauth.models.security import User
from propauth.schemas.property import VillaIn, VillaOut, VillaUpdate
from propauth.security.dependencies import get_current_user
from propauth.security.resources import ResourceType
from propauth.services.repository import ScopedRepository

router = APIRouter(prefix="/villas", tags=["villas"])


@router.get("", response_model=list[VillaOut])
def list_villas(db: Session = Depends(get_db)) -> list[Villa]:
    return ScopedRepository(db, ResourceType.VILLA).list()


@router.post("", response_model=VillaOut, status_code=status.HTTP_201_CREATED)
def create_villa(body: VillaIn, db: Session = Depends(get_db), user: User = Depends(get_current_user)) -> Villa:
    return ScopedRepository(db, ResourceType.VILLA).create(user, body.model_dump())


@router.get("/{id}", response_model=VillaOut)
def get_villa(id: int, db: Session = Depends(get_db)) -> Villa:
    return ScopedRepository(db, ResourceType.VILLA).get(id)


@router.put("/{id}", response_model=VillaOut)
def update_villa(id: int, body: VillaUpdate, db: Session = Depends(get_db)) -> Villa:
    repo = ScopedRepository(db, ResourceType.VILLA)
    return repo.update(repo.get(id), body.model_dump(exclude_unset=True))


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_villa(id: int, db: Session = Depends(get_db)) -> None:
    repo = ScopedRepository(db, ResourceType.VILLA)
    repo.delete(repo.get(id))
