"""initial_control_centre

Revision ID: 3b7c1d2e9f40
Revises:
Create Date: 2026-10-19 09:12:44.518203

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "3b7c1d2e9f40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Create organisations, locations and section21_patients tables."""
    op.create_table(
        "organisations",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "locations",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("organisation_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("table_id", sa.String(64), nullable=True),
        sa.Column("form_id", sa.String(64), nullable=False),
        sa.Column("field_mapping_patient_name", sa.Text(), nullable=True),
        sa.Column("field_mapping_id_document", sa.Text(), nullable=True),
        sa.Column("field_mapping_dr_script", sa.Text(), nullable=True),
        sa.Column("field_mapping_outcome_letters", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["organisation_id"], ["organisations.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_locations_organisation_id", "locations", ["organisation_id"], unique=False
    )
    op.create_index("idx_locations_form_id", "locations", ["form_id"], unique=False)

    op.create_table(
        "section21_patients",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("patient_unique_id", sa.String(64), nullable=False),
        sa.Column("form_id", sa.String(64), nullable=False),
        sa.Column("form_title", sa.Text(), nullable=False),
        sa.Column("patient_full_name", sa.Text(), nullable=False),
        sa.Column("name_prefix", sa.Text(), nullable=True),
        sa.Column("first_name", sa.Text(), nullable=True),
        sa.Column("last_name", sa.Text(), nullable=True),
        sa.Column("organisation_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("location_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("patient_id_document_url", sa.Text(), nullable=True),
        sa.Column("dr_script_url", sa.Text(), nullable=True),
        sa.Column("sahpra_invoice_url", sa.Text(), nullable=True),
        sa.Column("outcome_letter_url", sa.Text(), nullable=True),
        sa.Column(
            "outcome_letter_uploaded_at", sa.DateTime(timezone=True), nullable=True
        ),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["organisation_id"], ["organisations.id"], ondelete="SET NULL"
        ),
        sa.ForeignKeyConstraint(["location_id"], ["locations.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        # Conflict target for sync upserts
        sa.UniqueConstraint("patient_unique_id"),
    )
    op.create_index(
        "ix_section21_patients_form_id", "section21_patients", ["form_id"], unique=False
    )
    op.create_index(
        "ix_section21_patients_organisation_id",
        "section21_patients",
        ["organisation_id"],
        unique=False,
    )
    op.create_index(
        "ix_section21_patients_location_id",
        "section21_patients",
        ["location_id"],
        unique=False,
    )
    # Partial index for the notification scan
    op.create_index(
        "idx_section21_outcome_letter",
        "section21_patients",
        ["outcome_letter_url"],
        unique=False,
        postgresql_where=sa.text("outcome_letter_url IS NOT NULL"),
    )


def downgrade() -> None:
    """Drop section21_patients, locations and organisations tables."""
    op.drop_index("idx_section21_outcome_letter", table_name="section21_patients")
    op.drop_index("ix_section21_patients_location_id", table_name="section21_patients")
    op.drop_index(
        "ix_section21_patients_organisation_id", table_name="section21_patients"
    )
    op.drop_index("ix_section21_patients_form_id", table_name="section21_patients")
    op.drop_table("section21_patients")
    op.drop_index("idx_locations_form_id", table_name="locations")
    op.drop_index("ix_locations_organisation_id", table_name="locations")
    op.drop_table("locations")
    op.drop_table("organisations")
