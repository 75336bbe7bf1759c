"""Patient record repository.

Writes go through a PostgreSQL ``INSERT .. ON CONFLICT DO UPDATE`` keyed by
``patient_unique_id`` so re-syncing a submission overwrites its row instead of
duplicating it.
"""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import case, func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from app.models.patient import PatientRecord
from app.schemas.patient import PatientRecordDraft

# Columns never overwritten on conflict
_IMMUTABLE_COLUMNS = frozenset({"patient_unique_id", "outcome_letter_uploaded_at"})


class PatientRepository:
    """Repository for PatientRecord persistence."""

    def __init__(self, db: AsyncSession):
        """Initialize repository with database session.

        Args:
            db: Async SQLAlchemy session.
        """
        self.db = db

    async def upsert(self, draft: PatientRecordDraft) -> None:
        """Insert or update the record for ``draft.patient_unique_id``.

        Runs inside a savepoint so a rejected row leaves the session usable
        for the next submission. The upload timestamp only moves when the
        outcome letter URL changes, which keeps repeated syncs of unchanged
        data from shifting the expiry clock.

        Args:
            draft: Record values extracted from a submission.
        """
        values = draft.to_row()
        stmt = insert(PatientRecord).values(**values)
        excluded = stmt.excluded

        updates = {
            column: excluded[column]
            for column in values
            if column not in _IMMUTABLE_COLUMNS
        }
        updates["outcome_letter_uploaded_at"] = case(
            (
                PatientRecord.outcome_letter_url.is_distinct_from(excluded.outcome_letter_url),
                excluded.outcome_letter_uploaded_at,
            ),
            else_=func.coalesce(
                PatientRecord.outcome_letter_uploaded_at,
                excluded.outcome_letter_uploaded_at,
            ),
        )
        updates["updated_at"] = func.now()

        stmt = stmt.on_conflict_do_update(
            index_elements=[PatientRecord.patient_unique_id],
            set_=updates,
        )

        async with self.db.begin_nested():
            await self.db.execute(stmt)

    async def get_by_unique_id(self, patient_unique_id: str) -> PatientRecord | None:
        """Get a record by its Jotform submission id.

        Upserts bypass the identity map, so loaded rows are always refreshed.
        """
        result = await self.db.execute(
            select(PatientRecord)
            .where(PatientRecord.patient_unique_id == patient_unique_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_with_outcome_letter(
        self, excluded_form_ids: Iterable[str] = ()
    ) -> list[PatientRecord]:
        """All records with an outcome letter, with organisation and location loaded.

        Args:
            excluded_form_ids: Forms whose records are never patient records.

        Returns:
            List of PatientRecord objects.
        """
        query = (
            select(PatientRecord)
            .options(
                joinedload(PatientRecord.organisation),
                joinedload(PatientRecord.location),
            )
            .where(PatientRecord.outcome_letter_url.is_not(None))
        )
        excluded = list(excluded_form_ids)
        if excluded:
            query = query.where(PatientRecord.form_id.not_in(excluded))

        result = await self.db.execute(query)
        return list(result.scalars().all())
