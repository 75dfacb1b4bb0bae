from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class BuildingIn(BaseModel):
    name: str = Field(min_length=1, max_length=150)
    address: str | None = None


class BuildingUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=1, max_length=150)
    address: str | None = None


class BuildingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    address: str | None
    created_by: int | None
    created_at: datetime


class VillaIn(BuildingIn):
    pass


class VillaUpdate(BuildingUpdate):
    pass


class VillaOut(BuildingOut):
    pass


class FloorIn(BaseModel):
    name: str = Field(min_length=1, max_length=50)


class FloorOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    building_id: int
    name: str


class ApartmentIn(BaseModel):
    number: str = Field(min_length=1, max_length=20)


class ApartmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    floor_id: int
    number: str


class TenantIn(BaseModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: str | None = None


class TenantUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    email: str | None = None


class TenantOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: str
    email: str | None
    created_by: int | None
    created_at: datetime


class PlacementIn(BaseModel):
    apartment_id: int | None = None
    villa_id: int | None = None

    @model_validator(mode="after")
    def _exactly_one(self) -> PlacementIn:
        if (self.apartment_id is None) == (self.villa_id is None):
            raise ValueError("Give exactly one of apartment_id or villa_id")
        return self


class PlacementOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tenant_id: int
    apartment_id: int | None = None
    villa_id: int | None = None


class TransactionIn(BaseModel):
    tenant_id: int
    transaction_type: str = Field(min_length=1, max_length=30)
    amount: Decimal
    transaction_date: date


class TransactionUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    transaction_type: str | None = Field(default=None, min_length=1, max_length=30)
    amount: Decimal | None = None
    transaction_date: date | None = None


class TransactionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tenant_id: int
    transaction_type: str
    amount: Decimal
    transaction_date: date
    created_by: int | None
    created_at: datetime


class BuildingAssignmentIn(BaseModel):
    user_id: int
    building_id: int


class BuildingAssignmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    building_id: int
    created_at: datetime


class VillaAssignmentIn(BaseModel):
    user_id: int
    villa_id: int


class VillaAssignmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    villa_id: int
    created_at: datetime
