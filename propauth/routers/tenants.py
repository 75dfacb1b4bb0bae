from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from propauth.db.session import get_db
from propauth.models.security import User
from propauth.models.tenancy import Tenant, TenantPlacement, VillaTenancy
from propauth.schemas.property import PlacementIn, PlacementOut, TenantIn, TenantOut, TenantUpdate
from propauth.security.decorators import require_permissions, scoped
from propauth.security.dependencies import get_current_user
from propauth.security.resources import ResourceType
from propauth.services.repository import ScopedRepository
from propauth.services.tenancy import place_tenant

router = APIRouter(prefix="/tenants", tags=["tenants"])


def _tenants(db: Session) -> ScopedRepository[Tenant]:
    return ScopedRepository(db, ResourceType.TENANT)


@router.get("", response_model=list[TenantOut])
def list_tenants(db: Session = Depends(get_db)) -> list[Tenant]:
    return _tenants(db).list()


@router.post("", response_model=TenantOut, status_code=status.HTTP_201_CREATED)
def create_tenant(body: TenantIn, db: Session = Depends(get_db), user: User = Depends(get_current_user)) -> Tenant:
    return _tenants(db).create(user, body.model_dump())


@router.get("/{id}", response_model=TenantOut)
def get_tenant(id: int, db: Session = Depends(get_db)) -> Tenant:
    return _tenants(db).get(id)


@router.put("/{id}", response_model=TenantOut)
def update_tenant(id: int, body: TenantUpdate, db: Session = Depends(get_db)) -> Tenant:
    repo = _tenants(db)
    return repo.update(repo.get(id), body.model_dump(exclude_unset=True))


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_tenant(id: int, db: Session = Depends(get_db)) -> None:
    repo = _tenants(db)
    repo.delete(repo.get(id))


@router.post("/{id}/placements", response_model=PlacementOut, status_code=status.HTTP_201_CREATED)
@require_permissions(["tenants.update"])
@scoped(ResourceType.TENANT)
def create_placement(id: int, body: PlacementIn, db: Session = Depends(get_db)) -> TenantPlacement | VillaTenancy:
    # No route table entry: the decorators carry the rule.
    tenant = _tenants(db).get(id)
    return place_tenant(db, tenant, apartment_id=body.apartment_id, villa_id=body.villa_id)
