"""Pytest configuration and shared fixtures.

This module provides centralized test fixtures for:
- HTTP client for API testing
- PostgreSQL test database sessions (skipped when unavailable)
- In-memory collaborators for the sync pipeline
- Jotform submission builders
"""

import os
import uuid
from datetime import datetime, timezone
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import app.models  # noqa: F401 - registers tables on Base.metadata
from app.config import settings
from app.database import Base
from app.main import app
from app.models import PatientRecord
from app.schemas.field_mapping import FieldMapping, LocationMapping
from app.schemas.patient import PatientRecordDraft
from app.services.jotform_client import JotformError

ORGANISATION_ID = uuid.UUID("7d4f2f0e-3f1b-4a53-9a8e-0c5b2a1e9d11")
LOCATION_ID = uuid.UUID("b1c0a9e4-6c55-4d2b-8f0e-2a9d7e3c4b22")


# =============================================================================
# Submission Builders
# =============================================================================


def make_answer(
    name: str,
    text: str,
    answer: Any,
    type: str = "control_textbox",
    pretty: str | None = None,
) -> dict[str, Any]:
    """Build one Jotform answer as it appears on the wire."""
    data: dict[str, Any] = {"name": name, "text": text, "type": type, "answer": answer}
    if pretty is not None:
        data["prettyFormat"] = pretty
    return data


def make_submission(
    submission_id: str,
    answers: dict[str, Any],
    created_at: str = "2026-03-02 09:15:00",
    updated_at: str | None = None,
) -> dict[str, Any]:
    """Build one Jotform submission as it appears on the wire."""
    return {
        "id": submission_id,
        "form_id": "241000000000001",
        "created_at": created_at,
        "updated_at": updated_at,
        "answers": answers,
    }


def full_submission(submission_id: str, first: str = "Thandi", last: str = "Nkosi") -> dict[str, Any]:
    """A complete submission with a name and all four documents."""
    return make_submission(
        submission_id,
        {
            "3": make_answer(
                "patientName",
                "Patient Name",
                {"prefix": "", "first": first, "last": last},
                type="control_fullname",
                pretty=f"{first} {last}",
            ),
            "5": make_answer(
                "uploadId",
                "Upload ID Document",
                [f"https://files.jotform.com/{submission_id}/id.pdf"],
                type="control_fileupload",
            ),
            "6": make_answer(
                "prescription",
                "Doctor's Prescription",
                [f"https://files.jotform.com/{submission_id}/script.pdf"],
                type="control_fileupload",
            ),
            "7": make_answer(
                "sahpraInvoice",
                "SAHPRA Invoice",
                [f"https://files.jotform.com/{submission_id}/invoice.pdf"],
                type="control_fileupload",
            ),
            "8": make_answer(
                "outcomeLetter",
                "Section 21 Outcome Letter",
                [f"https://files.jotform.com/{submission_id}/outcome.pdf"],
                type="control_fileupload",
            ),
        },
    )


# =============================================================================
# In-memory Collaborators
# =============================================================================


class FakeProvider:
    """Stands in for JotformClient."""

    def __init__(
        self,
        submissions: list[Any] | None = None,
        title: str | None = "Bassani Cape Town",
        title_error: bool = False,
        submissions_error: bool = False,
    ):
        self.submissions = submissions or []
        self.title = title
        self.title_error = title_error
        self.submissions_error = submissions_error
        self.title_calls: list[str] = []
        self.submission_calls: list[tuple[str, int]] = []

    async def fetch_form_title(self, form_id: str) -> str | None:
        self.title_calls.append(form_id)
        if self.title_error:
            raise JotformError("title lookup failed", status_code=500)
        return self.title

    async def fetch_submissions(self, form_id: str, limit: int) -> list[Any]:
        self.submission_calls.append((form_id, limit))
        if self.submissions_error:
            raise JotformError("submissions failed", status_code=503)
        return list(self.submissions)


class FakeLocationStore:
    """Stands in for LocationRepository."""

    def __init__(self, locations: dict[str, LocationMapping] | None = None):
        self.locations = locations or {}

    async def find_by_form_id(self, form_id: str) -> LocationMapping | None:
        return self.locations.get(form_id)


class InMemoryPatientStore:
    """Stands in for PatientRepository, with the same upsert semantics."""

    def __init__(self, reject: set[str] | None = None):
        self.records: dict[str, PatientRecord] = {}
        self.reject = reject or set()
        self.upsert_calls = 0

    async def upsert(self, draft: PatientRecordDraft) -> None:
        self.upsert_calls += 1
        if draft.patient_unique_id in self.reject:
            raise RuntimeError(f"store rejected {draft.patient_unique_id}")

        now = datetime.now(timezone.utc)
        values = draft.to_row()
        existing = self.records.get(draft.patient_unique_id)
        if existing is None:
            self.records[draft.patient_unique_id] = PatientRecord(
                id=uuid.uuid4(), created_at=now, updated_at=now, **values
            )
            return

        uploaded_at = values.pop("outcome_letter_uploaded_at")
        if existing.outcome_letter_url != values["outcome_letter_url"]:
            existing.outcome_letter_uploaded_at = uploaded_at
        elif existing.outcome_letter_uploaded_at is None:
            existing.outcome_letter_uploaded_at = uploaded_at
        for column, value in values.items():
            setattr(existing, column, value)
        existing.updated_at = now

    async def list_with_outcome_letter(self, excluded_form_ids=()) -> list[PatientRecord]:
        excluded = set(excluded_form_ids)
        return [
            r for r in self.records.values()
            if r.outcome_letter_url and r.form_id not in excluded
        ]


@pytest.fixture
def configured_location() -> LocationMapping:
    """Location with all four field ids mapped to full_submission's questions."""
    return LocationMapping(
        organisation_id=ORGANISATION_ID,
        location_id=LOCATION_ID,
        field_mapping=FieldMapping(
            patient_name_field_id="3",
            id_document_field_id="5",
            dr_script_field_id="6",
            outcome_letters_field_id="8",
        ),
    )


@pytest.fixture
def patient_store() -> InMemoryPatientStore:
    return InMemoryPatientStore()


# =============================================================================
# HTTP Client Fixtures
# =============================================================================


@pytest.fixture
def api_headers() -> dict[str, str]:
    """Authentication headers for API requests."""
    return {"X-API-Key": settings.api_key}


@pytest_asyncio.fixture
async def client():
    """Async test client for the FastAPI app.

    Tests override service dependencies on ``app.dependency_overrides``;
    overrides are cleared afterwards.
    """
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


# =============================================================================
# Database Fixtures
# =============================================================================


def get_test_database_url() -> str:
    """Test database URL from DATABASE_TEST_URL, else derived from settings."""
    db_url = os.environ.get("DATABASE_TEST_URL")
    if db_url:
        return db_url
    return settings.database_url.rsplit("/", 1)[0] + "/control_centre_test"


@pytest_asyncio.fixture
async def test_engine():
    """Create test database engine with automatic schema management.

    Creates all tables before tests, drops them after. Skips the test when
    PostgreSQL is not reachable.
    """
    engine = create_async_engine(get_test_database_url(), echo=False)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except Exception as e:
        await engine.dispose()
        pytest.skip(f"PostgreSQL not available: {e}")

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncSession:
    """Create test database session with automatic rollback."""
    session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with session_maker() as session:
        yield session
        await session.rollback()
