"""Field mapping schemas.

A field mapping ties a location's Jotform question ids to the semantic roles
the sync pipeline understands.
"""

import uuid
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class FieldRole(str, Enum):
    """Semantic roles a form answer can play in a patient record."""

    PATIENT_NAME = "patient_name"
    ID_DOCUMENT = "id_document"
    DR_SCRIPT = "dr_script"
    OUTCOME_LETTER = "outcome_letter"
    SAHPRA_INVOICE = "sahpra_invoice"


class FieldMapping(BaseModel):
    """Operator-configured question ids, any of which may be unset."""

    model_config = ConfigDict(frozen=True)

    patient_name_field_id: str | None = None
    id_document_field_id: str | None = None
    dr_script_field_id: str | None = None
    outcome_letters_field_id: str | None = None

    def field_id_for(self, role: FieldRole) -> str | None:
        """Configured question id for a role, or None.

        The invoice role has no configurable field.
        """
        field_id = {
            FieldRole.PATIENT_NAME: self.patient_name_field_id,
            FieldRole.ID_DOCUMENT: self.id_document_field_id,
            FieldRole.DR_SCRIPT: self.dr_script_field_id,
            FieldRole.OUTCOME_LETTER: self.outcome_letters_field_id,
        }.get(role)
        return field_id or None

    @property
    def is_empty(self) -> bool:
        return not any(
            (
                self.patient_name_field_id,
                self.id_document_field_id,
                self.dr_script_field_id,
                self.outcome_letters_field_id,
            )
        )


class LocationMapping(BaseModel):
    """The location owning a form, as seen by the sync pipeline."""

    organisation_id: uuid.UUID | None = None
    location_id: uuid.UUID | None = None
    field_mapping: FieldMapping | None = Field(
        default=None,
        description="None when the location has no usable mapping",
    )
