from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from propauth.db.session import get_db
from propauth.models.security import Role, User
from propauth.schemas.security import (
    MyPermissionsOut,
    PermissionIn,
    PermissionOut,
    PermissionWithCountOut,
    RoleWithPermissionsOut,
    UserOut,
)
from propauth.security.catalog import PermissionCatalog
from propauth.security.context import AuthzContext
from propauth.security.dependencies import get_authz, get_current_user

router = APIRouter(tags=["permissions"])


@router.get("/me", response_model=UserOut)
def me(user: User = Depends(get_current_user)) -> User:
    return user


@router.get("/permissions/mine", response_model=MyPermissionsOut)
def my_permissions(authz: AuthzContext = Depends(get_authz)) -> MyPermissionsOut:
    return MyPermissionsOut(
        user_id=authz.user_id,
        role=authz.role_name,
        is_admin=authz.is_admin,
        permissions=sorted(authz.permissions),
    )


@router.get("/permissions", response_model=list[PermissionWithCountOut])
def list_permissions(db: Session = Depends(get_db)) -> list[PermissionWithCountOut]:
    return [
        PermissionWithCountOut(**PermissionOut.model_validate(perm).model_dump(), role_count=count)
        for perm, count in PermissionCatalog(db).list_permissions()
    ]


@router.get("/permissions/grouped", response_model=dict[str, list[PermissionOut]])
def grouped_permissions(db: Session = Depends(get_db)) -> dict:
    return PermissionCatalog(db).grouped_by_resource()


@router.get("/permissions/roles", response_model=list[RoleWithPermissionsOut])
def roles_with_permissions(db: Session = Depends(get_db)) -> list[Role]:
    return PermissionCatalog(db).roles_with_permissions()


@router.post("/permissions", response_model=PermissionOut, status_code=status.HTTP_201_CREATED)
def create_permission(body: PermissionIn, db: Session = Depends(get_db)):
    return PermissionCatalog(db).create_permission(body.resource, body.action, body.description)


@router.put("/permissions/{id}", response_model=PermissionOut)
def update_permission(id: int, body: PermissionIn, db: Session = Depends(get_db)):
    return PermissionCatalog(db).update_permission(id, body.resource, body.action, body.description)


@router.delete("/permissions/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_permission(id: int, db: Session = Depends(get_db)) -> None:
    PermissionCatalog(db).delete_permission(id)
