"""Jotform submission sync pipeline.

Pulls a form's submissions from Jotform, normalizes each one into a patient
record using the owning location's field mapping (or keyword fallback) and
upserts it by submission id.

Failures are scoped as narrowly as possible:
- a missing field mapping degrades to fallback extraction
- a failure to fetch the form title degrades the title to the form id
- a bad submission or a rejected upsert is counted and skipped
- a failure to fetch submissions fails the whole call
"""

import logging
from collections.abc import Iterable
from typing import Any, Protocol

from app.config import settings
from app.schemas.field_mapping import LocationMapping
from app.schemas.jotform import RawSubmission
from app.schemas.patient import PatientRecordDraft
from app.schemas.sync import SyncResult
from app.services.answer_extractor import extract_patient
from app.services.jotform_client import MAX_SUBMISSION_LIMIT, JotformError

logger = logging.getLogger(__name__)


class FormExcludedError(ValueError):
    """Raised when asked to sync a form that never holds patient records."""

    pass


class SubmissionProvider(Protocol):
    async def fetch_form_title(self, form_id: str) -> str | None: ...

    async def fetch_submissions(self, form_id: str, limit: int) -> list[dict[str, Any]]: ...


class LocationStore(Protocol):
    async def find_by_form_id(self, form_id: str) -> LocationMapping | None: ...


class PatientStore(Protocol):
    async def upsert(self, draft: PatientRecordDraft) -> None: ...


class SubmissionSyncService:
    """Synchronizes one form's submissions into the patient record store.

    Each ``sync`` call is independent; the service schedules nothing itself.
    """

    def __init__(
        self,
        provider: SubmissionProvider,
        locations: LocationStore,
        patients: PatientStore,
        form_titles: dict[str, str] | None = None,
        excluded_form_ids: Iterable[str] | None = None,
        submission_limit: int | None = None,
    ):
        self.provider = provider
        self.locations = locations
        self.patients = patients
        self.form_titles = form_titles if form_titles is not None else settings.form_titles
        self.excluded_form_ids = frozenset(
            excluded_form_ids if excluded_form_ids is not None else settings.excluded_form_ids
        )
        limit = submission_limit or settings.jotform_submission_limit
        self.submission_limit = min(limit, MAX_SUBMISSION_LIMIT)

    async def sync(self, form_id: str) -> SyncResult:
        """Sync all submissions of a form.

        Args:
            form_id: Jotform form id.

        Returns:
            Counts of synced and failed submissions.

        Raises:
            FormExcludedError: If the form is in the exclusion list.
            JotformError: If the submissions could not be fetched.
        """
        if form_id in self.excluded_form_ids:
            raise FormExcludedError(f"Form {form_id} is excluded from patient sync")

        form_title = await self.resolve_form_title(form_id)

        location = await self.locations.find_by_form_id(form_id)
        if location is None:
            logger.warning("No location owns form %s - records will not be linked", form_id)
        elif location.field_mapping is None:
            logger.warning("No field mappings found for form %s - using fallback logic", form_id)
        else:
            logger.info("Field mappings for form %s: %s", form_id, location.field_mapping)

        submissions = await self.provider.fetch_submissions(form_id, self.submission_limit)
        if len(submissions) >= self.submission_limit:
            logger.warning(
                "Form %s returned %d submissions, the batch cap; older submissions are not synced",
                form_id,
                len(submissions),
            )

        result = SyncResult()
        for raw in submissions:
            submission_id = raw.get("id") if isinstance(raw, dict) else None
            try:
                draft = self.build_draft(raw, form_id, form_title, location)
                await self.patients.upsert(draft)
            except Exception:
                logger.exception(
                    "Failed to sync submission %s of form %s", submission_id, form_id
                )
                result.errors += 1
            else:
                result.synced += 1

        logger.info(
            "Synced form %s (%s): %d records, %d errors",
            form_id,
            form_title,
            result.synced,
            result.errors,
        )
        return result

    async def resolve_form_title(self, form_id: str) -> str:
        """Static title, else the title from Jotform, else the form id."""
        static_title = self.form_titles.get(form_id)
        if static_title:
            return static_title

        try:
            title = await self.provider.fetch_form_title(form_id)
        except JotformError as e:
            logger.warning("Could not fetch title for form %s: %s", form_id, e)
            return form_id
        return title or form_id

    @staticmethod
    def build_draft(
        raw: Any,
        form_id: str,
        form_title: str,
        location: LocationMapping | None,
    ) -> PatientRecordDraft:
        """Validate one raw submission and turn it into an upsertable draft.

        Raises:
            pydantic.ValidationError: If the submission is malformed.
        """
        submission = RawSubmission.model_validate(raw)
        mapping = location.field_mapping if location else None
        extracted = extract_patient(submission, mapping)

        return PatientRecordDraft(
            **extracted.model_dump(),
            patient_unique_id=submission.id,
            form_id=form_id,
            form_title=form_title,
            organisation_id=location.organisation_id if location else None,
            location_id=location.location_id if location else None,
        )
