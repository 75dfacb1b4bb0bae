from __future__ import annotations

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from propauth.db.base import Base


class SidebarPage(Base):
    __tablename__ = "sidebar_pages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    url: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)
    icon: Mapped[str] = mapped_column(String(50), nullable=False)
    display_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)

    permissions: Mapped[list["PagePermission"]] = relationship(
        back_populates="page", cascade="all, delete-orphan", order_by="PagePermission.permission_type"
    )


class PagePermission(Base):
    """Permission types a page supports, each tied to an abstract catalog permission."""

    __tablename__ = "page_permissions"
    __table_args__ = (UniqueConstraint("page_id", "permission_type"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    page_id: Mapped[int] = mapped_column(ForeignKey("sidebar_pages.id", ondelete="CASCADE"), nullable=False, index=True)
    permission_type: Mapped[str] = mapped_column(String(20), nullable=False)
    # e.g. "buildings.view"; NULL means derive "<page slug>.<permission_type>".
    permission_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    page: Mapped[SidebarPage] = relationship(back_populates="permissions")


class RolePagePermission(Base):
    __tablename__ = "role_page_permissions"
    __table_args__ = (UniqueConstraint("role_id", "page_id", "permission_type"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    role_id: Mapped[int] = mapped_column(ForeignKey("roles.id", ondelete="CASCADE"), nullable=False, index=True)
    page_id: Mapped[int] = mapped_column(ForeignKey("sidebar_pages.id", ondelete="CASCADE"), nullable=False, index=True)
    permission_type: Mapped[str] = mapped_column(String(20), nullable=False)
    is_granted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
