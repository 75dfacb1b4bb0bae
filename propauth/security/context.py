from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from propauth.security.resources import ResourceType


@dataclass(frozen=True)
class ScopeFilter:
    """
    Visible identifiers per resource type for one principal and one request.

    `is_admin` means no filtering at all. Otherwise a type that is absent from
    `ids_by_type` is treated exactly like an empty set: nothing is visible.
    """

    is_admin: bool
    ids_by_type: Mapping[ResourceType, frozenset[int]] = field(default_factory=dict)

    @classmethod
    def unrestricted(cls) -> ScopeFilter:
        return cls(is_admin=True)

    def is_resolved(self, resource_type: ResourceType) -> bool:
        return self.is_admin or resource_type in self.ids_by_type

    def ids_for(self, resource_type: ResourceType) -> frozenset[int]:
        if self.is_admin:
            raise ValueError("an admin scope filter has no id sets; check is_admin first")
        return self.ids_by_type.get(resource_type, frozenset())

    def allows(self, resource_type: ResourceType, resource_id: int) -> bool:
        return self.is_admin or resource_id in self.ids_for(resource_type)

    def summary(self) -> dict[str, int | str]:
        """Counts only, for logs."""
        if self.is_admin:
            return {"scope": "ALL"}
        return {rtype.value: len(ids) for rtype, ids in self.ids_by_type.items()}


@dataclass(frozen=True)
class AuthzContext:
    """
    Per-request authorization context.

    Attached to `request.state` (FastAPI request lifetime) and its scope
    filter to `Session.info` (SQLAlchemy session lifetime).
    """

    user_id: int
    role_id: int
    role_name: str
    is_admin: bool
    permissions: frozenset[str]

    # None when the route did not ask for a scope filter.
    scope: ScopeFilter | None = None
