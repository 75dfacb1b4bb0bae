from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from propauth.errors import Conflict
from propauth.models.property import Apartment, Villa
from propauth.models.tenancy import Tenant, TenantPlacement, VillaTenancy
from propauth.security.resources import ResourceType
from propauth.services.repository import ScopedRepository

logger = logging.getLogger(__name__)


def place_tenant(
    db: Session,
    tenant: Tenant,
    *,
    apartment_id: int | None = None,
    villa_id: int | None = None,
) -> TenantPlacement | VillaTenancy:
    """
    Link a visible tenant to a visible apartment or villa.

    Both ends are looked up through the request's scope filter; a target
    outside it is reported as not found.
    """

    if (apartment_id is None) == (villa_id is None):
        raise Conflict("Give exactly one of apartment_id or villa_id")

    if apartment_id is not None:
        apartment: Apartment = ScopedRepository(db, ResourceType.APARTMENT).get(apartment_id)
        link = TenantPlacement(tenant_id=tenant.id, apartment_id=apartment.id)
        clash = select(TenantPlacement.id).where(
            TenantPlacement.tenant_id == tenant.id, TenantPlacement.apartment_id == apartment.id
        )
    else:
        villa: Villa = ScopedRepository(db, ResourceType.VILLA).get(villa_id)
        link = VillaTenancy(tenant_id=tenant.id, villa_id=villa.id)
        clash = select(VillaTenancy.id).where(VillaTenancy.tenant_id == tenant.id, VillaTenancy.villa_id == villa.id)

    if db.scalars(clash).first() is not None:
        raise Conflict("Tenant is already placed there")

    db.add(link)
    db.commit()
    logger.info("Tenant placed tenant=%s apartment=%s villa=%s", link.tenant_id, apartment_id, villa_id)
    return link
