"""Organisation and location models.

Organisations and their locations are maintained through the admin screens;
this service only reads them. Each location owns one Jotform form and the
operator-configured field mapping for that form.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.schemas.field_mapping import FieldMapping


class Organisation(Base):
    """Organisation grouping one or more locations."""

    __tablename__ = "organisations"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=text("now()"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=text("now()"),
        onupdate=text("now()"),
    )

    locations: Mapped[list["Location"]] = relationship(back_populates="organisation")

    def __repr__(self) -> str:
        return f"<Organisation(id={self.id}, name={self.name})>"


class Location(Base):
    """Location collecting patient submissions through a Jotform form."""

    __tablename__ = "locations"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    organisation_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("organisations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    table_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    form_id: Mapped[str] = mapped_column(String(64), nullable=False)

    # Jotform question ids chosen by the operator, one per semantic role
    field_mapping_patient_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    field_mapping_id_document: Mapped[str | None] = mapped_column(Text, nullable=True)
    field_mapping_dr_script: Mapped[str | None] = mapped_column(Text, nullable=True)
    field_mapping_outcome_letters: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=text("now()"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=text("now()"),
        onupdate=text("now()"),
    )

    organisation: Mapped[Organisation] = relationship(back_populates="locations")

    __table_args__ = (Index("idx_locations_form_id", "form_id"),)

    @property
    def field_mapping(self) -> FieldMapping:
        """The four mapping columns as a FieldMapping."""
        return FieldMapping(
            patient_name_field_id=self.field_mapping_patient_name,
            id_document_field_id=self.field_mapping_id_document,
            dr_script_field_id=self.field_mapping_dr_script,
            outcome_letters_field_id=self.field_mapping_outcome_letters,
        )

    def __repr__(self) -> str:
        return f"<Location(id={self.id}, name={self.name}, form_id={self.form_id})>"
