from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from propauth.db.base import Base
from propauth.models.mixins import CreatedByMixin


class Building(CreatedByMixin, Base):
    __tablename__ = "buildings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    floors: Mapped[list["Floor"]] = relationship(
        back_populates="building", cascade="all, delete-orphan", passive_deletes=True
    )


class Floor(Base):
    __tablename__ = "floors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    building_id: Mapped[int] = mapped_column(ForeignKey("buildings.id", ondelete="CASCADE"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)

    building: Mapped[Building] = relationship(back_populates="floors")
    apartments: Mapped[list["Apartment"]] = relationship(
        back_populates="floor", cascade="all, delete-orphan", passive_deletes=True
    )


class Apartment(Base):
    """A unit inside a building. Unit ownership and tenant placement hang off apartments."""

    __tablename__ = "apartments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    floor_id: Mapped[int] = mapped_column(ForeignKey("floors.id", ondelete="CASCADE"), nullable=False, index=True)
    number: Mapped[str] = mapped_column(String(20), nullable=False)

    floor: Mapped[Floor] = relationship(back_populates="apartments")


class Villa(CreatedByMixin, Base):
    __tablename__ = "villas"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


class BuildingAssignment(Base):
    """Explicit admin grant of one building to one principal. Never implies authorship."""

    __tablename__ = "building_assignments"
    __table_args__ = (UniqueConstraint("user_id", "building_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    building_id: Mapped[int] = mapped_column(ForeignKey("buildings.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


class VillaAssignment(Base):
    __tablename__ = "villa_assignments"
    __table_args__ = (UniqueConstraint("user_id", "villa_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    villa_id: Mapped[int] = mapped_column(ForeignKey("villas.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
