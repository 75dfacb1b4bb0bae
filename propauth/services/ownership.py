"""
Unit ownership transfer.

Closing the current row and inserting the new one happen in one database
transaction. Any failure rolls both back, so "at most one current owner per
unit" is never observably violated. The partial unique index on
`unit_ownerships(apartment_id) WHERE is_current` backs this up.
"""

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from propauth.errors import Conflict, NotFound
from propauth.models.ownership import UnitOwnership
from propauth.models.property import Apartment
from propauth.models.security import User

logger = logging.getLogger(__name__)

_UNFILTERED = {"skip_scope_filter": True}


def current_ownership(db: Session, apartment_id: int) -> UnitOwnership | None:
    stmt = select(UnitOwnership).where(UnitOwnership.apartment_id == apartment_id, UnitOwnership.is_current.is_(True))
    return db.scalars(stmt).first()


def ownership_history(db: Session, apartment_id: int) -> list[UnitOwnership]:
    stmt = (
        select(UnitOwnership)
        .where(UnitOwnership.apartment_id == apartment_id)
        .order_by(UnitOwnership.start_date.desc(), UnitOwnership.id.desc())
    )
    return list(db.scalars(stmt).all())


def transfer_ownership(
    db: Session,
    apartment_id: int,
    new_owner_id: int,
    transfer_date: date,
    *,
    ownership_type: str = "Primary",
    contract_reference: str | None = None,
    loan_details: str | None = None,
) -> UnitOwnership:
    """
    Make `new_owner_id` the current owner of the unit as of `transfer_date`.

    The previous current row (if any) gets `is_current=False` and
    `end_date=transfer_date`.
    """

    try:
        if db.scalars(select(Apartment.id).where(Apartment.id == apartment_id), execution_options=_UNFILTERED).first() is None:
            raise NotFound("Unit not found")

        owner = db.scalars(select(User).where(User.id == new_owner_id), execution_options=_UNFILTERED).first()
        if owner is None or not owner.is_active:
            raise NotFound("Owner not found")

        previous = current_ownership(db, apartment_id)
        if previous is not None:
            if previous.owner_id == new_owner_id:
                raise Conflict("Unit is already owned by this user")
            if transfer_date < previous.start_date:
                raise Conflict("Transfer date precedes the current ownership start date")
            previous.is_current = False
            previous.end_date = transfer_date
            # Close first so the partial unique index never sees two current rows.
            db.flush()

        record = UnitOwnership(
            apartment_id=apartment_id,
            owner_id=new_owner_id,
            ownership_type=ownership_type,
            start_date=transfer_date,
            is_current=True,
            contract_reference=contract_reference,
            loan_details=loan_details,
        )
        db.add(record)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        "Ownership transferred unit=%s from=%s to=%s date=%s",
        apartment_id,
        previous.owner_id if previous is not None else None,
        new_owner_id,
        transfer_date.isoformat(),
    )
    return record
