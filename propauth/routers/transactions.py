from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from propauth.db.session import get_db
from propauth.models.security import User
from propauth.models.tenancy import FinancialTransaction
from propauth.schemas.property import TransactionIn, TransactionOut, TransactionUpdate
from propauth.security.dependencies import get_current_user
from propauth.security.resources import ResourceType
from propauth.services.repository import ScopedRepository

router = APIRouter(prefix="/transactions", tags=["transactions"])


def _transactions(db: Session) -> ScopedRepository[FinancialTransaction]:
    return ScopedRepository(db, ResourceType.TRANSACTION)


@router.get("", response_model=list[TransactionOut])
def list_transactions(db: Session = Depends(get_db)) -> list[FinancialTransaction]:
    return _transactions(db).list(order_by=FinancialTransaction.transaction_date.desc())


@router.post("", response_model=TransactionOut, status_code=status.HTTP_201_CREATED)
def create_transaction(
    body: TransactionIn,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> FinancialTransaction:
    # The tenant must be visible too; resolving transactions resolved tenants on the way.
    tenant = ScopedRepository(db, ResourceType.TENANT).get(body.tenant_id)
    return _transactions(db).create(user, {**body.model_dump(), "tenant_id": tenant.id})


@router.get("/{id}", response_model=TransactionOut)
def get_transaction(id: int, db: Session = Depends(get_db)) -> FinancialTransaction:
    return _transactions(db).get(id)


@router.put("/{id}", response_model=TransactionOut)
def update_transaction(id: int, body: TransactionUpdate, db: Session = Depends(get_db)) -> FinancialTransaction:
    repo = _transactions(db)
    return repo.update(repo.get(id), body.model_dump(exclude_unset=True))


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_transaction(id: int, db: Session = Depends(get_db)) -> None:
    repo = _transactions(db)
    repo.delete(repo.get(id))
