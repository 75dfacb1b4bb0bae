from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from propauth.db.session import get_db
from propauth.models.security import User
from propauth.schemas.security import CreatorIn, UserCreate, UserOut, UserUpdate
from propauth.security.dependencies import get_current_user
from propauth.security.hierarchy import UserHierarchy
from propauth.security.resources import ResourceType
from propauth.services.repository import ScopedRepository

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=list[UserOut])
def list_users(db: Session = Depends(get_db)) -> list[User]:
    return ScopedRepository(db, ResourceType.USER).list()


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(body: UserCreate, db: Session = Depends(get_db), actor: User = Depends(get_current_user)) -> User:
    return UserHierarchy(db).create_user(actor, **body.model_dump())


@router.get("/{id}", response_model=UserOut)
def get_user(id: int, db: Session = Depends(get_db)) -> User:
    return ScopedRepository(db, ResourceType.USER).get(id)


@router.patch("/{id}", response_model=UserOut)
def update_user(
    id: int,
    body: UserUpdate,
    db: Session = Depends(get_db),
    actor: User = Depends(get_current_user),
) -> User:
    user = ScopedRepository(db, ResourceType.USER).get(id)
    return UserHierarchy(db).update_user(actor, user, body.model_dump(exclude_unset=True, exclude_none=True))


@router.delete("/{id}", response_model=UserOut)
def deactivate_user(id: int, db: Session = Depends(get_db), actor: User = Depends(get_current_user)) -> User:
    user = ScopedRepository(db, ResourceType.USER).get(id)
    return UserHierarchy(db).deactivate_user(actor, user)


@router.put("/{id}/creator", response_model=UserOut)
def assign_creator(
    id: int,
    body: CreatorIn,
    db: Session = Depends(get_db),
    actor: User = Depends(get_current_user),
) -> User:
    return UserHierarchy(db).adopt_orphan(actor, id, body.created_by)
