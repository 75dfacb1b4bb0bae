from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from propauth.db.base import Base


class UnitOwnership(Base):
    """
    Ownership history of an apartment (unit).

    At most one row per unit is current; the partial unique index enforces it
    at the database level.
    """

    __tablename__ = "unit_ownerships"
    __table_args__ = (
        Index(
            "uq_unit_ownerships_current",
            "apartment_id",
            unique=True,
            sqlite_where=text("is_current"),
            postgresql_where=text("is_current"),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    apartment_id: Mapped[int] = mapped_column(ForeignKey("apartments.id", ondelete="CASCADE"), nullable=False, index=True)
    owner_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)

    ownership_type: Mapped[str] = mapped_column(String(30), nullable=False, default="Primary")
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_current: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    contract_reference: Mapped[str | None] = mapped_column(String(100), nullable=True)
    loan_details: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
