"""Pydantic schemas for patient records produced by the sync pipeline."""

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict

from app.constants import UNKNOWN


class ExtractedPatient(BaseModel):
    """Patient fields extracted from one submission's answers."""

    patient_full_name: str = UNKNOWN
    name_prefix: str | None = None
    first_name: str | None = None
    last_name: str | None = None

    patient_id_document_url: str | None = None
    dr_script_url: str | None = None
    sahpra_invoice_url: str | None = None
    outcome_letter_url: str | None = None
    outcome_letter_uploaded_at: datetime | None = None


class PatientRecordDraft(ExtractedPatient):
    """Everything needed to upsert a ``section21_patients`` row."""

    model_config = ConfigDict(frozen=True)

    patient_unique_id: str
    form_id: str
    form_title: str
    organisation_id: uuid.UUID | None = None
    location_id: uuid.UUID | None = None

    def to_row(self) -> dict[str, Any]:
        """Column values for the insert."""
        return self.model_dump()
