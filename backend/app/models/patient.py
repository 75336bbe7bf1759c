"""Section 21 patient record model."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.organisation import Location, Organisation


class PatientRecord(Base):
    """Patient compliance record synchronized from a Jotform submission.

    ``patient_unique_id`` is the Jotform submission id. It is stable across
    re-syncs and is the conflict key for upserts.
    """

    __tablename__ = "section21_patients"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    # Identity
    patient_unique_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    form_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    form_title: Mapped[str] = mapped_column(Text, nullable=False)

    # Name
    patient_full_name: Mapped[str] = mapped_column(Text, nullable=False)
    name_prefix: Mapped[str | None] = mapped_column(Text, nullable=True)
    first_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_name: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Control Centre links
    organisation_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("organisations.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    location_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("locations.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Document URLs
    patient_id_document_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    dr_script_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    sahpra_invoice_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    outcome_letter_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Expiry clock anchor, distinct from updated_at
    outcome_letter_uploaded_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=text("now()"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=text("now()"),
        onupdate=text("now()"),
    )

    organisation: Mapped[Organisation | None] = relationship()
    location: Mapped[Location | None] = relationship()

    __table_args__ = (
        Index(
            "idx_section21_outcome_letter",
            "outcome_letter_url",
            postgresql_where=text("outcome_letter_url IS NOT NULL"),
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<PatientRecord(id={self.id}, patient_unique_id={self.patient_unique_id}, "
            f"form_id={self.form_id})>"
        )
