from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class MenuItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    label: str
    url: str
    icon: str
    display_order: int


class PageCheckOut(BaseModel):
    page_url: str
    permission_type: str
    allowed: bool


class PagePermissionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    permission_type: str
    permission_name: str | None
    description: str | None


class PageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    url: str
    icon: str
    display_order: int
    description: str | None
    is_active: bool
    permissions: list[PagePermissionOut]


class PagePermissionIn(BaseModel):
    permission_type: str = "view"
    permission_name: str | None = None
    description: str | None = None


class PageIn(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    url: str = Field(min_length=1, max_length=200)
    icon: str = Field(min_length=1, max_length=50)
    display_order: int = 0
    description: str | None = None
    permissions: list[PagePermissionIn] = Field(default_factory=list)


class PageUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=1, max_length=100)
    url: str | None = Field(default=None, min_length=1, max_length=200)
    icon: str | None = Field(default=None, min_length=1, max_length=50)
    display_order: int | None = None
    description: str | None = None
    is_active: bool | None = None


class RolePageGrantIn(BaseModel):
    page_id: int
    permission_type: str = "view"
    is_granted: bool = True


class RolePageGrantOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    role_id: int
    page_id: int
    permission_type: str
    is_granted: bool
