from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class RoleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None
    rank: int
    is_system: bool


class PermissionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    resource: str
    action: str
    description: str | None


class PermissionWithCountOut(PermissionOut):
    role_count: int


class PermissionIn(BaseModel):
    resource: str
    action: str
    description: str | None = None


class RoleWithPermissionsOut(RoleOut):
    permissions: list[PermissionOut]


class RoleIn(BaseModel):
    name: str = Field(min_length=1, max_length=40)
    description: str | None = None
    # Only honored for admin; custom roles are always staff tier.
    rank: int = Field(default=1, ge=1, le=3)


class RolePermissionsIn(BaseModel):
    permission_ids: list[int]


class MyPermissionsOut(BaseModel):
    user_id: int
    role: str
    is_admin: bool
    permissions: list[str]


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    first_name: str | None
    last_name: str | None
    role_id: int
    is_active: bool
    created_by: int | None
    created_at: datetime


class UserCreate(BaseModel):
    username: str = Field(min_length=1, max_length=50)
    email: str = Field(min_length=3, max_length=100)
    role_id: int
    first_name: str | None = None
    last_name: str | None = None


class UserUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    email: str | None = Field(default=None, min_length=3, max_length=100)
    first_name: str | None = None
    last_name: str | None = None
    role_id: int | None = None
    is_active: bool | None = None


class CreatorIn(BaseModel):
    created_by: int
