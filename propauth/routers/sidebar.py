from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from propauth.db.session import get_db
from propauth.models.security import User
from propauth.schemas.sidebar import (
    MenuItemOut,
    PageCheckOut,
    PageIn,
    PageOut,
    PageUpdate,
    RolePageGrantIn,
    RolePageGrantOut,
)
from propauth.security.dependencies import get_current_user
from propauth.security.sidebar import MenuItem, SidebarProjector
from propauth.services.sidebar_admin import SidebarAdmin

router = APIRouter(prefix="/sidebar", tags=["sidebar"])


@router.get("/pages", response_model=list[MenuItemOut])
def menu(db: Session = Depends(get_db), user: User = Depends(get_current_user)) -> list[MenuItem]:
    return SidebarProjector(db).project_menu(user)


@router.get("/check", response_model=PageCheckOut)
def check_page(
    page_url: str = Query(alias="pageUrl"),
    permission_type: str = Query(default="view", alias="permissionType"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> PageCheckOut:
    allowed = SidebarProjector(db).check_page(user, page_url, permission_type)
    return PageCheckOut(page_url=page_url, permission_type=permission_type, allowed=allowed)


# ---- Administration ----------------------------------------------------------------


@router.get("/admin/pages", response_model=list[PageOut])
def list_pages(db: Session = Depends(get_db)):
    return SidebarAdmin(db).list_pages()


@router.post("/admin/pages", response_model=PageOut, status_code=status.HTTP_201_CREATED)
def create_page(body: PageIn, db: Session = Depends(get_db)):
    values = body.model_dump(exclude={"permissions"})
    return SidebarAdmin(db).create_page(values, [p.model_dump() for p in body.permissions])


@router.put("/admin/pages/{id}", response_model=PageOut)
def update_page(id: int, body: PageUpdate, db: Session = Depends(get_db)):
    return SidebarAdmin(db).update_page(id, body.model_dump(exclude_unset=True))


@router.delete("/admin/pages/{id}", response_model=PageOut)
def deactivate_page(id: int, db: Session = Depends(get_db)):
    return SidebarAdmin(db).deactivate_page(id)


@router.get("/admin/roles/{id}", response_model=list[RolePageGrantOut])
def role_grants(id: int, db: Session = Depends(get_db)):
    return SidebarAdmin(db).role_grants(id)


@router.put("/admin/roles/{id}", response_model=list[RolePageGrantOut])
def replace_role_grants(id: int, body: list[RolePageGrantIn], db: Session = Depends(get_db)):
    grants = [(g.page_id, g.permission_type, g.is_granted) for g in body]
    return SidebarAdmin(db).replace_role_grants(id, grants)
