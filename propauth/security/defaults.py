"""
Versioned default configuration.

One YAML document describes the roles, the permission catalog, role grants,
sidebar pages and page grants a fresh installation starts with. It is loaded
once at startup and used only for provisioning; a failed permission lookup
at request time denies instead of falling back to these lists.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, model_validator

from propauth.security.catalog import permission_name

ALL = "*"


class RoleDefault(BaseModel):
    name: str
    rank: int = 1
    description: str | None = None


class PermissionDefault(BaseModel):
    resource: str
    action: str
    description: str | None = None

    @property
    def name(self) -> str:
        return permission_name(self.resource, self.action)


class PagePermissionDefault(BaseModel):
    type: str = "view"
    # None: "<page slug>.<type>"
    permission: str | None = None
    description: str | None = None


class PageDefault(BaseModel):
    name: str
    url: str
    icon: str
    display_order: int = 0
    description: str | None = None
    permissions: list[PagePermissionDefault] = Field(default_factory=lambda: [PagePermissionDefault()])


class DefaultConfiguration(BaseModel):
    version: int
    roles: list[RoleDefault]
    permissions: list[PermissionDefault]
    # role name -> permission names, or ["*"] for the whole catalog
    role_permissions: dict[str, list[str]] = Field(default_factory=dict)
    pages: list[PageDefault] = Field(default_factory=list)
    # role name -> page urls granted for "view", or ["*"]
    role_pages: dict[str, list[str]] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_references(self) -> DefaultConfiguration:
        roles = {r.name for r in self.roles}
        perms = {p.name for p in self.permissions}
        urls = {p.url for p in self.pages}

        for role, names in self.role_permissions.items():
            if role not in roles:
                raise ValueError(f"role_permissions references unknown role {role!r}")
            unknown = set(names) - perms - {ALL}
            if unknown:
                raise ValueError(f"role {role!r} is granted unknown permissions {sorted(unknown)}")

        for role, pages in self.role_pages.items():
            if role not in roles:
                raise ValueError(f"role_pages references unknown role {role!r}")
            unknown = set(pages) - urls - {ALL}
            if unknown:
                raise ValueError(f"role {role!r} is granted unknown pages {sorted(unknown)}")
        return self

    def permissions_for(self, role: str) -> list[str]:
        names = self.role_permissions.get(role, [])
        if ALL in names:
            return [p.name for p in self.permissions]
        return list(names)

    def pages_for(self, role: str) -> list[str]:
        urls = self.role_pages.get(role, [])
        if ALL in urls:
            return [p.url for p in self.pages]
        return list(urls)


def load_defaults(path: Path) -> DefaultConfiguration:
    raw: dict[str, Any] = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if "defaults" not in raw:
        raise ValueError(f"Missing top-level 'defaults' key in config: {path}")
    return DefaultConfiguration.model_validate(raw["defaults"])
