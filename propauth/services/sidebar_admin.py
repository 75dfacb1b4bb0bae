from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.orm import Session, selectinload

from propauth.errors import ConfigurationError, Conflict, NotFound
from propauth.models.security import Role
from propauth.models.sidebar import PagePermission, RolePagePermission, SidebarPage

logger = logging.getLogger(__name__)

PAGE_FIELDS = frozenset({"name", "url", "icon", "display_order", "description", "is_active"})


class SidebarAdmin:
    def __init__(self, db: Session) -> None:
        self.db = db

    def list_pages(self, include_inactive: bool = True) -> list[SidebarPage]:
        stmt = select(SidebarPage).options(selectinload(SidebarPage.permissions)).order_by(
            SidebarPage.display_order, SidebarPage.id
        )
        if not include_inactive:
            stmt = stmt.where(SidebarPage.is_active.is_(True))
        return list(self.db.scalars(stmt).all())

    def get_page(self, page_id: int) -> SidebarPage:
        page = self.db.get(SidebarPage, page_id)
        if page is None:
            raise NotFound("Page not found")
        return page

    def create_page(self, values: dict[str, Any], permissions: Iterable[dict[str, Any]] = ()) -> SidebarPage:
        self._ensure_url_free(values["url"])
        page = SidebarPage(**{k: v for k, v in values.items() if k in PAGE_FIELDS})
        page.permissions = [
            PagePermission(
                permission_type=p.get("permission_type", "view"),
                permission_name=p.get("permission_name"),
                description=p.get("description"),
            )
            for p in permissions
        ] or [PagePermission(permission_type="view")]
        self.db.add(page)
        self.db.commit()
        logger.info("Sidebar page created url=%s", page.url)
        return page

    def update_page(self, page_id: int, changes: dict[str, Any]) -> SidebarPage:
        page = self.get_page(page_id)
        if "url" in changes and changes["url"] != page.url:
            self._ensure_url_free(changes["url"])
        for field, value in changes.items():
            if field in PAGE_FIELDS:
                setattr(page, field, value)
        self.db.commit()
        return page

    def deactivate_page(self, page_id: int) -> SidebarPage:
        page = self.get_page(page_id)
        page.is_active = False
        self.db.commit()
        logger.info("Sidebar page deactivated id=%s", page_id)
        return page

    def role_grants(self, role_id: int) -> list[RolePagePermission]:
        self._get_role(role_id)
        stmt = (
            select(RolePagePermission)
            .where(RolePagePermission.role_id == role_id)
            .order_by(RolePagePermission.page_id, RolePagePermission.permission_type)
        )
        return list(self.db.scalars(stmt).all())

    def replace_role_grants(self, role_id: int, grants: Iterable[tuple[int, str, bool]]) -> list[RolePagePermission]:
        """
        Replace every page grant of a role in one transaction.

        Each grant is `(page_id, permission_type, is_granted)`; the page must
        declare that permission type.
        """

        self._get_role(role_id)
        grants = list(grants)

        supported = {
            (pp.page_id, pp.permission_type) for pp in self.db.scalars(select(PagePermission)).all()
        }
        for page_id, permission_type, _granted in grants:
            if (page_id, permission_type) not in supported:
                raise ConfigurationError(f"Page {page_id} has no {permission_type!r} permission")
        if len({(p, t) for p, t, _ in grants}) != len(grants):
            raise Conflict("Duplicate page grant")

        try:
            self.db.execute(delete(RolePagePermission).where(RolePagePermission.role_id == role_id))
            self.db.add_all(
                RolePagePermission(role_id=role_id, page_id=page_id, permission_type=permission_type, is_granted=granted)
                for page_id, permission_type, granted in grants
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info("Page grants replaced role_id=%s count=%s", role_id, len(grants))
        return self.role_grants(role_id)

    def _get_role(self, role_id: int) -> Role:
        role = self.db.get(Role, role_id)
        if role is None:
            raise NotFound("Role not found")
        return role

    def _ensure_url_free(self, url: str) -> None:
        if self.db.scalars(select(SidebarPage.id).where(SidebarPage.url == url)).first() is not None:
            raise Conflict(f"A page with url {url!r} already exists")
