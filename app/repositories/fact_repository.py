"""
app/repositories/fact_repository.py

Persistence layer for fact indicator values.
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from typing import Any

from sqlalchemy import delete, insert, select
from sqlalchemy.orm import Session

from db.models.fact_indicator_value import FactIndicatorValue, fact_indicator_value_generics


class FactRepository:
    """
    Repository for batch persistence and run-scoped cleanup of fact records.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def add_batch(
        self,
        rows: Sequence[FactIndicatorValue],
        *,
        generic_links: Sequence[tuple[uuid.UUID, uuid.UUID]] = (),
    ) -> int:
        """
        Insert one batch of facts plus their (fact_id, generic_id) links.
        """

        if not rows:
            return 0
        self._session.add_all(rows)
        self._session.flush()
        if generic_links:
            self._session.execute(
                insert(fact_indicator_value_generics),
                [{"fact_id": fact_id, "generic_id": generic_id} for fact_id, generic_id in generic_links],
            )
        return len(rows)

    def delete_for_job(self, job_id: uuid.UUID) -> int:
        """
        Remove every fact written by one processing job.
        """

        return self._delete_where(FactIndicatorValue.processing_job_id == job_id)

    def delete_superseded(self, *, analysis_id: uuid.UUID, keep_job_id: uuid.UUID) -> int:
        """
        Remove facts of the analysis written by any job other than `keep_job_id`.
        """

        return self._delete_where(
            FactIndicatorValue.analysis_id == analysis_id,
            FactIndicatorValue.processing_job_id != keep_job_id,
        )

    def list_for_indicator(
        self,
        indicator_id: uuid.UUID,
        *,
        include_aggregated: bool = True,
        limit: int = 1000,
    ) -> list[FactIndicatorValue]:
        stmt = select(FactIndicatorValue).where(FactIndicatorValue.indicator_id == indicator_id)
        if not include_aggregated:
            stmt = stmt.where(FactIndicatorValue.is_aggregated.is_(False))
        stmt = stmt.order_by(
            FactIndicatorValue.is_aggregated.asc(),
            FactIndicatorValue.source_row_number.asc(),
        ).limit(max(1, limit))
        return list(self._session.scalars(stmt).all())

    def list_for_job(self, job_id: uuid.UUID) -> list[FactIndicatorValue]:
        stmt = (
            select(FactIndicatorValue)
            .where(FactIndicatorValue.processing_job_id == job_id)
            .order_by(FactIndicatorValue.is_aggregated.asc(), FactIndicatorValue.source_row_number.asc())
        )
        return list(self._session.scalars(stmt).all())

    def _delete_where(self, *criteria: Any) -> int:
        fact_ids = select(FactIndicatorValue.id).where(*criteria)
        self._session.execute(
            delete(fact_indicator_value_generics).where(fact_indicator_value_generics.c.fact_id.in_(fact_ids))
        )
        result = self._session.execute(delete(FactIndicatorValue).where(*criteria))
        return result.rowcount or 0
