"""
Scope resolver: which identifiers of a resource type a principal may act on.

    scope(T, P):
        admin                  -> every id of T
        otherwise              -> assigned ∪ created ∪ derived
            assigned: explicit assignment rows for P (buildings, villas),
                      minus rows with created_by NULL
            created:  rows of T with created_by = P
            derived:  rows of T inside any container in scope(C, P), for each
                      container type C of T, minus rows with created_by NULL

Container scopes are resolved first (depth-first) and memoized for the
lifetime of the resolver, so one request computes each type once. An empty
result is a valid answer and means "nothing visible".
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from sqlalchemy import select
from sqlalchemy.orm import Session

from propauth.errors import ConfigurationError
from propauth.models.security import User
from propauth.security.context import ScopeFilter
from propauth.security.resources import ResourceSpec, ResourceType, default_registry

logger = logging.getLogger(__name__)

# Internal lookups must see the whole table even on a request-scoped session.
_UNFILTERED = {"skip_scope_filter": True}

DEFAULT_MAX_DEPTH = 6


class ScopeResolver:
    def __init__(
        self,
        db: Session,
        registry: Mapping[ResourceType, ResourceSpec] | None = None,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        self.db = db
        self.registry = registry if registry is not None else default_registry()
        self.max_depth = max_depth
        self._memo: dict[tuple[int, ResourceType], frozenset[int]] = {}

    def spec(self, resource_type: ResourceType) -> ResourceSpec:
        spec = self.registry.get(resource_type)
        if spec is None:
            raise ConfigurationError(f"Unknown resource type {resource_type!r}")
        if not spec.reachable:
            raise ConfigurationError(
                f"Resource type {resource_type.value!r} has no created_by column, assignment or container path"
            )
        return spec

    # ---- Public API -----------------------------------------------------------------

    def resolve(self, principal: User, resource_type: ResourceType) -> frozenset[int]:
        spec = self.spec(resource_type)
        if principal.is_admin:
            return self._all_ids(spec)
        return self._resolve(principal, spec, visiting=(), depth=0)

    def build_filter(self, principal: User, resource_types: Iterable[ResourceType]) -> ScopeFilter:
        """
        Resolve every requested type into one `ScopeFilter`.

        Container types resolved along the way are included as well, so a
        handler that walks from tenant to apartment stays filtered.
        """

        types = list(resource_types)
        if principal.is_admin:
            for rtype in types:
                self.spec(rtype)
            return ScopeFilter.unrestricted()

        for rtype in types:
            self.resolve(principal, rtype)

        ids_by_type = {rtype: ids for (pid, rtype), ids in self._memo.items() if pid == principal.id}
        scope = ScopeFilter(is_admin=False, ids_by_type=ids_by_type)
        logger.debug("Scope resolved user_id=%s counts=%s", principal.id, scope.summary())
        return scope

    # ---- Resolution -----------------------------------------------------------------

    def _resolve(
        self,
        principal: User,
        spec: ResourceSpec,
        visiting: tuple[ResourceType, ...],
        depth: int,
    ) -> frozenset[int]:
        key = (principal.id, spec.type)
        if key in self._memo:
            return self._memo[key]
        if spec.type in visiting:
            chain = " -> ".join(t.value for t in (*visiting, spec.type))
            raise ConfigurationError(f"Containment cycle detected: {chain}")
        if depth > self.max_depth:
            raise ConfigurationError(f"Containment deeper than {self.max_depth} at {spec.type.value!r}")

        ids: set[int] = set()
        ids |= self._assigned(principal, spec)
        ids |= self._created(principal, spec)
        for containment in spec.containers:
            container_spec = self.spec(containment.container)
            container_ids = self._resolve(principal, container_spec, (*visiting, spec.type), depth + 1)
            ids |= self._derived(spec, containment.members, container_ids)
        if spec.include_self:
            ids.add(principal.id)

        result = frozenset(ids)
        self._memo[key] = result
        return result

    def _assigned(self, principal: User, spec: ResourceSpec) -> set[int]:
        if spec.assignment is None:
            return set()
        model = spec.assignment.model
        stmt = select(getattr(model, spec.assignment.resource_column)).where(
            getattr(model, spec.assignment.user_column) == principal.id
        )
        ids = set(self.db.scalars(stmt, execution_options=_UNFILTERED).all())
        return self._authored_only(spec, ids)

    def _created(self, principal: User, spec: ResourceSpec) -> set[int]:
        if not spec.authored:
            return set()
        stmt = select(spec.model.id).where(spec.model.created_by == principal.id)
        return set(self.db.scalars(stmt, execution_options=_UNFILTERED).all())

    def _derived(self, spec: ResourceSpec, members, container_ids: frozenset[int]) -> set[int]:
        if not container_ids:
            return set()
        candidates = set(self.db.scalars(members(sorted(container_ids)), execution_options=_UNFILTERED).all())
        return self._authored_only(spec, candidates)

    def _authored_only(self, spec: ResourceSpec, ids: set[int]) -> set[int]:
        # Legacy rows without an author are admin-only, however they are reached.
        if not ids or not spec.authored:
            return ids
        stmt = select(spec.model.id).where(spec.model.id.in_(sorted(ids)), spec.model.created_by.is_not(None))
        return set(self.db.scalars(stmt, execution_options=_UNFILTERED).all())

    def _all_ids(self, spec: ResourceSpec) -> frozenset[int]:
        return frozenset(self.db.scalars(select(spec.model.id), execution_options=_UNFILTERED).all())
