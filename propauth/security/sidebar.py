"""
Sidebar permission projector.

A page is offered to a principal when both hold:
- the role holds the page's abstract permission (e.g. `buildings.view`,
  or its `_own` counterpart)
- `role_page_permissions` grants the page to the role for that type

A page grant without the abstract permission is inert. Admin sees every
active page.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from propauth.models.security import User
from propauth.models.sidebar import RolePagePermission, SidebarPage
from propauth.security.catalog import PermissionCatalog, accepted_names

logger = logging.getLogger(__name__)

VIEW = "view"
OWN_PREFIX = "My "


@dataclass(frozen=True)
class MenuItem:
    id: int
    name: str
    label: str
    url: str
    icon: str
    display_order: int


def page_slug(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", name.strip().lower()).strip("_")


def own_label(name: str) -> str:
    if name.lower().startswith(OWN_PREFIX.lower()):
        return name
    return f"{OWN_PREFIX}{name}"


class SidebarProjector:
    def __init__(self, db: Session, catalog: PermissionCatalog | None = None) -> None:
        self.db = db
        self.catalog = catalog or PermissionCatalog(db)

    def required_permission(self, page: SidebarPage, permission_type: str = VIEW) -> str:
        for page_permission in page.permissions:
            if page_permission.permission_type == permission_type and page_permission.permission_name:
                return page_permission.permission_name
        return f"{page_slug(page.name)}.{permission_type}"

    def project_menu(self, principal: User) -> list[MenuItem]:
        pages = self._active_pages()
        if principal.is_admin:
            return [self._item(page, page.name) for page in pages]

        granted = self._granted_page_ids(principal.role_id, VIEW)
        items = []
        for page in pages:
            if page.id not in granted:
                continue
            if not self.catalog.has_any(principal, accepted_names(self.required_permission(page, VIEW))):
                continue
            items.append(self._item(page, own_label(page.name)))

        logger.debug("Menu projected user_id=%s pages=%s", principal.id, [i.url for i in items])
        return items

    def check_page(self, principal: User, page_url: str, permission_type: str = VIEW) -> bool:
        page = self.db.scalars(
            select(SidebarPage)
            .where(SidebarPage.url == page_url, SidebarPage.is_active.is_(True))
            .options(selectinload(SidebarPage.permissions))
        ).first()
        if page is None:
            logger.debug("Page check on unknown page url=%s", page_url)
            return False
        if principal.is_admin:
            return True
        if page.id not in self._granted_page_ids(principal.role_id, permission_type):
            return False
        return self.catalog.has_any(principal, accepted_names(self.required_permission(page, permission_type)))

    def _active_pages(self) -> list[SidebarPage]:
        stmt = (
            select(SidebarPage)
            .where(SidebarPage.is_active.is_(True))
            .options(selectinload(SidebarPage.permissions))
            .order_by(SidebarPage.display_order, SidebarPage.id)
        )
        return list(self.db.scalars(stmt).all())

    def _granted_page_ids(self, role_id: int, permission_type: str) -> set[int]:
        stmt = select(RolePagePermission.page_id).where(
            RolePagePermission.role_id == role_id,
            RolePagePermission.permission_type == permission_type,
            RolePagePermission.is_granted.is_(True),
        )
        return set(self.db.scalars(stmt).all())

    @staticmethod
    def _item(page: SidebarPage, label: str) -> MenuItem:
        return MenuItem(
            id=page.id,
            name=page.name,
            label=label,
            url=page.url,
            icon=page.icon,
            display_order=page.display_order,
        )
