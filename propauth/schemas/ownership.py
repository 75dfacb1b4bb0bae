from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field


class TransferIn(BaseModel):
    new_owner_id: int
    transfer_date: date
    ownership_type: str = Field(default="Primary", max_length=30)
    contract_reference: str | None = Field(default=None, max_length=100)
    loan_details: str | None = None


class OwnershipOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    apartment_id: int
    owner_id: int
    ownership_type: str
    start_date: date
    end_date: date | None
    is_current: bool
    contract_reference: str | None
    created_at: datetime
