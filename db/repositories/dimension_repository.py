"""
Get-or-create access to the shared dimension dictionaries.

Lookups go to the database first; inserts run inside a SAVEPOINT so a
unique-constraint race with another job is resolved by re-reading the row
the other writer created. Resolved ids are memoised per repository
instance, which is scoped to one processing run.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from typing import Any, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from db.models.dimensions import DimGeneric, DimLocation, DimTime, Indicator, LocationType
from db.repositories.errors import DimensionPersistenceError
from transform.values import parse_time_value

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", Indicator, DimTime, DimLocation, DimGeneric)


class DimensionRepository:
    def __init__(
        self,
        session: Session,
        *,
        country_names: frozenset[str] = frozenset(),
    ) -> None:
        self._session = session
        self._country_names = frozenset(name.lower() for name in country_names)
        self._cache: dict[tuple[str, ...], uuid.UUID] = {}

    def indicator_id(self, name: str) -> uuid.UUID:
        return self._resolve(
            ("indicator", name),
            Indicator,
            {"name": name},
            lambda: Indicator(name=name),
        )

    def time_id(self, value: str) -> uuid.UUID:
        def build() -> DimTime:
            parts = parse_time_value(value)
            return DimTime(
                value=value,
                year=parts.year,
                quarter=parts.quarter,
                month=parts.month,
                day=parts.day,
            )

        return self._resolve(("time", value), DimTime, {"value": value}, build)

    def location_id(self, value: str) -> uuid.UUID:
        location_type = LocationType.COUNTRY if value.lower() in self._country_names else LocationType.REGION
        return self._resolve(
            ("location", value),
            DimLocation,
            {"value": value},
            lambda: DimLocation(value=value, location_type=location_type),
        )

    def generic_id(self, dimension_name: str, value: str) -> uuid.UUID:
        return self._resolve(
            ("generic", dimension_name, value),
            DimGeneric,
            {"dimension_name": dimension_name, "value": value},
            lambda: DimGeneric(dimension_name=dimension_name, value=value),
        )

    def _resolve(
        self,
        cache_key: tuple[str, ...],
        model: type[ModelT],
        natural_key: dict[str, Any],
        build: Callable[[], ModelT],
    ) -> uuid.UUID:
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        existing = self._find(model, natural_key)
        if existing is None:
            candidate = build()
            try:
                with self._session.begin_nested():
                    self._session.add(candidate)
                    self._session.flush()
                existing_id = candidate.id
            except IntegrityError:
                logger.info("Concurrent insert detected for %s %s; reusing existing row", model.__tablename__, natural_key)
                found = self._find(model, natural_key)
                if found is None:
                    raise DimensionPersistenceError(
                        f"Unable to resolve {model.__tablename__} for {natural_key}"
                    )
                existing_id = found.id
        else:
            existing_id = existing.id

        self._cache[cache_key] = existing_id
        return existing_id

    def _find(self, model: type[ModelT], natural_key: dict[str, Any]) -> ModelT | None:
        stmt = select(model).filter_by(**natural_key)
        return self._session.execute(stmt).scalars().first()
