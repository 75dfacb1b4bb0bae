from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from propauth.db.session import get_db
from propauth.models.security import Role, User
from propauth.schemas.security import RoleIn, RoleOut, RolePermissionsIn, RoleWithPermissionsOut
from propauth.security.catalog import PermissionCatalog
from propauth.security.dependencies import get_current_user
from propauth.services.roles import RoleService

router = APIRouter(prefix="/roles", tags=["roles"])


@router.get("", response_model=list[RoleWithPermissionsOut])
def list_roles(db: Session = Depends(get_db), user: User = Depends(get_current_user)) -> list[Role]:
    return RoleService(db).list_roles(user)


@router.post("", response_model=RoleOut, status_code=status.HTTP_201_CREATED)
def create_role(body: RoleIn, db: Session = Depends(get_db), user: User = Depends(get_current_user)) -> Role:
    return RoleService(db).create_role(user, body.name, body.description, body.rank)


@router.get("/{id}", response_model=RoleWithPermissionsOut)
def get_role(id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)) -> Role:
    return RoleService(db).get_role(user, id)


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_role(id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)) -> None:
    RoleService(db).delete_role(user, id)


@router.put("/{id}/permissions", response_model=RoleWithPermissionsOut)
def replace_role_permissions(
    id: int,
    body: RolePermissionsIn,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> Role:
    # Hidden roles are reported as missing, not forbidden.
    RoleService(db).get_role(user, id)
    return PermissionCatalog(db).replace_role_permissions(user, id, body.permission_ids)
