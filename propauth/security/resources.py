"""
Scoped resource types and how each one is reached.

Every type visible through the scope engine is described by a
`ResourceSpec`: which model holds it, whether rows carry `created_by`,
which assignment table grants it explicitly, and which container types it
derives visibility from. The resolver walks these specs; nothing in it is
specific to buildings or tenants.
"""

from __future__ import annotations

from collections.abc import Callable, Collection, Mapping
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache

from sqlalchemy import Select, select


class ResourceType(str, Enum):
    # Values double as the permission resource names ("tenants.view_own").
    BUILDING = "buildings"
    VILLA = "villas"
    FLOOR = "floors"
    APARTMENT = "apartments"
    TENANT = "tenants"
    TRANSACTION = "transactions"
    USER = "users"


@dataclass(frozen=True)
class Containment:
    """`members(container_ids)` selects ids of the contained type."""

    container: ResourceType
    members: Callable[[Collection[int]], Select]


@dataclass(frozen=True)
class Assignment:
    model: type
    resource_column: str
    user_column: str = "user_id"


@dataclass(frozen=True)
class ResourceSpec:
    type: ResourceType
    model: type
    authored: bool = False
    assignment: Assignment | None = None
    containers: tuple[Containment, ...] = ()
    # Principals always see their own user row.
    include_self: bool = False

    @property
    def reachable(self) -> bool:
        return self.authored or self.assignment is not None or bool(self.containers)


@lru_cache
def default_registry() -> Mapping[ResourceType, ResourceSpec]:
    # Local import: models import the db layer, which imports this module lazily.
    from propauth.models import (
        Apartment,
        Building,
        BuildingAssignment,
        FinancialTransaction,
        Floor,
        Tenant,
        TenantPlacement,
        User,
        Villa,
        VillaAssignment,
        VillaTenancy,
    )

    specs = (
        ResourceSpec(
            type=ResourceType.BUILDING,
            model=Building,
            authored=True,
            assignment=Assignment(BuildingAssignment, "building_id"),
        ),
        ResourceSpec(
            type=ResourceType.VILLA,
            model=Villa,
            authored=True,
            assignment=Assignment(VillaAssignment, "villa_id"),
        ),
        ResourceSpec(
            type=ResourceType.FLOOR,
            model=Floor,
            containers=(
                Containment(ResourceType.BUILDING, lambda ids: select(Floor.id).where(Floor.building_id.in_(ids))),
            ),
        ),
        ResourceSpec(
            type=ResourceType.APARTMENT,
            model=Apartment,
            containers=(
                Containment(ResourceType.FLOOR, lambda ids: select(Apartment.id).where(Apartment.floor_id.in_(ids))),
            ),
        ),
        ResourceSpec(
            type=ResourceType.TENANT,
            model=Tenant,
            authored=True,
            containers=(
                Containment(
                    ResourceType.APARTMENT,
                    lambda ids: select(TenantPlacement.tenant_id).where(TenantPlacement.apartment_id.in_(ids)),
                ),
                Containment(
                    ResourceType.VILLA,
                    lambda ids: select(VillaTenancy.tenant_id).where(VillaTenancy.villa_id.in_(ids)),
                ),
            ),
        ),
        ResourceSpec(
            type=ResourceType.TRANSACTION,
            model=FinancialTransaction,
            authored=True,
            containers=(
                Containment(
                    ResourceType.TENANT,
                    lambda ids: select(FinancialTransaction.id).where(FinancialTransaction.tenant_id.in_(ids)),
                ),
            ),
        ),
        ResourceSpec(
            type=ResourceType.USER,
            model=User,
            authored=True,
            include_self=True,
        ),
    )
    return {spec.type: spec for spec in specs}


def scoped_models() -> dict[ResourceType, type]:
    return {rtype: spec.model for rtype, spec in default_registry().items()}
