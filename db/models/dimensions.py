"""
db/models/dimensions.py

Append-only dimension dictionaries shared by every processing run.

Each dictionary is keyed by its literal value and protected by a unique
constraint, so concurrent get-or-create calls converge on one row.
"""

from __future__ import annotations

import uuid

from sqlalchemy import Index, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class LocationType:
    COUNTRY = "COUNTRY"
    STATE = "STATE"
    CITY = "CITY"
    DISTRICT = "DISTRICT"
    REGION = "REGION"


class Indicator(Base, TimestampMixin):
    __tablename__ = "indicators"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (UniqueConstraint("name", name="uq_indicators_name"),)


class DimTime(Base, TimestampMixin):
    __tablename__ = "dim_time"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    value: Mapped[str] = mapped_column(String(255), nullable=False)
    year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    quarter: Mapped[int | None] = mapped_column(Integer, nullable=True)
    month: Mapped[int | None] = mapped_column(Integer, nullable=True)
    day: Mapped[int | None] = mapped_column(Integer, nullable=True)

    __table_args__ = (
        UniqueConstraint("value", name="uq_dim_time_value"),
        Index("ix_dim_time_year", "year"),
    )


class DimLocation(Base, TimestampMixin):
    __tablename__ = "dim_location"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    value: Mapped[str] = mapped_column(String(255), nullable=False)
    location_type: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=LocationType.REGION,
        comment="COUNTRY, STATE, CITY, DISTRICT, REGION",
    )

    __table_args__ = (UniqueConstraint("value", name="uq_dim_location_value"),)


class DimGeneric(Base, TimestampMixin):
    __tablename__ = "dim_generic"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    dimension_name: Mapped[str] = mapped_column(String(255), nullable=False)
    value: Mapped[str] = mapped_column(String(500), nullable=False)

    __table_args__ = (
        UniqueConstraint("dimension_name", "value", name="uq_dim_generic_name_value"),
        Index("ix_dim_generic_dimension_name", "dimension_name"),
    )
