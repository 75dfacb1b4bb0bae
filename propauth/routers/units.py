from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from propauth.db.session import get_db
from propauth.models.ownership import UnitOwnership
from propauth.schemas.ownership import OwnershipOut, TransferIn
from propauth.security.decorators import require_permissions, scoped
from propauth.security.resources import ResourceType
from propauth.services.ownership import ownership_history, transfer_ownership
from propauth.services.repository import ScopedRepository

router = APIRouter(prefix="/units", tags=["units"])


@router.get("/{id}/ownership", response_model=list[OwnershipOut])
@require_permissions(["ownership.view"])
@scoped(ResourceType.APARTMENT)
def get_ownership(id: int, db: Session = Depends(get_db)) -> list[UnitOwnership]:
    unit = ScopedRepository(db, ResourceType.APARTMENT).get(id)
    return ownership_history(db, unit.id)


@router.post("/{id}/transfer", response_model=OwnershipOut, status_code=status.HTTP_201_CREATED)
@require_permissions(["ownership.manage"])
@scoped(ResourceType.APARTMENT)
def transfer(id: int, body: TransferIn, db: Session = Depends(get_db)) -> UnitOwnership:
    unit = ScopedRepository(db, ResourceType.APARTMENT).get(id)
    return transfer_ownership(
        db,
        unit.id,
        body.new_owner_id,
        body.transfer_date,
        ownership_type=body.ownership_type,
        contract_reference=body.contract_reference,
        loan_details=body.loan_details,
    )
