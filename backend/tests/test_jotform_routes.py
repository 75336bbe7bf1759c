"""Tests for the Jotform API endpoints.

Tests POST /api/jotform/sync, GET /api/jotform/forms and
GET /api/jotform/form-fields/{form_id} covering:
- Authentication (API key validation)
- Request validation
- Mapping of sync outcomes and Jotform failures to HTTP responses
"""

from unittest.mock import AsyncMock

import httpx
import pytest
from conftest import FakeLocationStore, FakeProvider, InMemoryPatientStore, full_submission

from app.database import get_db
from app.dependencies import get_jotform_client, get_sync_service
from app.main import app
from app.schemas.jotform import FormField, FormSummary
from app.services.jotform_client import JotformClient, JotformError
from app.services.submission_sync import SubmissionSyncService

FORM_ID = "241000000000001"


def override_sync_service(provider: FakeProvider, patients: InMemoryPatientStore, **kwargs):
    kwargs.setdefault("form_titles", {})
    kwargs.setdefault("excluded_form_ids", ())
    service = SubmissionSyncService(provider, FakeLocationStore(), patients, **kwargs)
    app.dependency_overrides[get_sync_service] = lambda: service
    return service


def override_jotform_client(client) -> None:
    async def _client():
        yield client

    app.dependency_overrides[get_jotform_client] = _client


# =============================================================================
# POST /api/jotform/sync
# =============================================================================


class TestSyncEndpoint:
    """Tests for POST /api/jotform/sync."""

    @pytest.mark.asyncio
    async def test_requires_api_key(self, client):
        response = await client.post("/api/jotform/sync", json={"form_id": FORM_ID})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_sync_success(self, client, api_headers, patient_store):
        provider = FakeProvider([full_submission("s1"), full_submission("s2")])
        override_sync_service(provider, patient_store)

        response = await client.post(
            "/api/jotform/sync", json={"form_id": FORM_ID}, headers=api_headers
        )

        assert response.status_code == 200
        assert response.json() == {
            "synced": 2,
            "errors": 0,
            "success": True,
            "message": "Synced 2 records, 0 errors",
        }
        assert set(patient_store.records) == {"s1", "s2"}

    @pytest.mark.asyncio
    async def test_partial_failure_is_still_success(self, client, api_headers):
        patients = InMemoryPatientStore(reject={"s2"})
        provider = FakeProvider([full_submission("s1"), full_submission("s2")])
        override_sync_service(provider, patients)

        response = await client.post(
            "/api/jotform/sync", json={"form_id": FORM_ID}, headers=api_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["synced"] == 1
        assert data["errors"] == 1
        assert data["message"] == "Synced 1 records, 1 errors"

    @pytest.mark.asyncio
    async def test_missing_form_id(self, client, api_headers, patient_store):
        override_sync_service(FakeProvider(), patient_store)

        response = await client.post("/api/jotform/sync", json={}, headers=api_headers)

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_empty_form_id(self, client, api_headers, patient_store):
        override_sync_service(FakeProvider(), patient_store)

        response = await client.post(
            "/api/jotform/sync", json={"form_id": ""}, headers=api_headers
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_excluded_form(self, client, api_headers, patient_store):
        override_sync_service(FakeProvider(), patient_store, excluded_form_ids={FORM_ID})

        response = await client.post(
            "/api/jotform/sync", json={"form_id": FORM_ID}, headers=api_headers
        )

        assert response.status_code == 400
        assert FORM_ID in response.json()["detail"]

    @pytest.mark.asyncio
    async def test_provider_failure(self, client, api_headers, patient_store):
        override_sync_service(FakeProvider(submissions_error=True), patient_store)

        response = await client.post(
            "/api/jotform/sync", json={"form_id": FORM_ID}, headers=api_headers
        )

        assert response.status_code == 502
        assert response.json()["detail"] == "Failed to fetch Jotform submissions"

    @pytest.mark.asyncio
    async def test_jotform_key_not_configured(self, client, api_headers, monkeypatch):
        async def override_get_db():
            yield AsyncMock()

        app.dependency_overrides[get_db] = override_get_db
        monkeypatch.setattr("app.dependencies.settings.jotform_api_key", "")

        response = await client.post(
            "/api/jotform/sync", json={"form_id": FORM_ID}, headers=api_headers
        )

        assert response.status_code == 500
        assert response.json()["detail"] == "Jotform API key not configured"


# =============================================================================
# GET /api/jotform/forms
# =============================================================================


class TestListFormsEndpoint:
    """Tests for GET /api/jotform/forms."""

    @pytest.mark.asyncio
    async def test_requires_api_key(self, client):
        response = await client.get("/api/jotform/forms")
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_lists_forms(self, client, api_headers):
        jotform = AsyncMock()
        jotform.list_forms.return_value = [FormSummary(id="241", title="Bassani Cape Town")]
        override_jotform_client(jotform)

        response = await client.get("/api/jotform/forms", headers=api_headers)

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "forms": [{"id": "241", "title": "Bassani Cape Town"}],
        }
        jotform.list_forms.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_jotform_failure(self, client, api_headers):
        jotform = AsyncMock()
        jotform.list_forms.side_effect = JotformError("boom", status_code=500)
        override_jotform_client(jotform)

        response = await client.get("/api/jotform/forms", headers=api_headers)

        assert response.status_code == 502


# =============================================================================
# GET /api/jotform/form-fields/{form_id}
# =============================================================================


class TestFormFieldsEndpoint:
    """Tests for GET /api/jotform/form-fields/{form_id}."""

    @pytest.mark.asyncio
    async def test_lists_fields(self, client, api_headers):
        jotform = AsyncMock()
        jotform.fetch_form_fields.return_value = [
            FormField(id="3", name="patientName", text="Patient Name", type="control_fullname", order=1),
        ]
        override_jotform_client(jotform)

        response = await client.get(f"/api/jotform/form-fields/{FORM_ID}", headers=api_headers)

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["fields"][0]["id"] == "3"
        jotform.fetch_form_fields.assert_awaited_once_with(FORM_ID)

    @pytest.mark.asyncio
    async def test_unknown_form(self, client, api_headers):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"responseCode": 404, "message": "Form not found"})

        http_client = httpx.AsyncClient(
            base_url="https://api.jotform.test",
            transport=httpx.MockTransport(handler),
        )
        override_jotform_client(JotformClient(api_key="test-key", http_client=http_client))

        response = await client.get("/api/jotform/form-fields/000", headers=api_headers)

        assert response.status_code == 400
        assert response.json()["detail"] == "Failed to fetch form from Jotform. Check the Form ID."
        await http_client.aclose()


class TestRouterStructure:
    def test_routes_registered(self):
        paths = set(app.openapi()["paths"])
        assert "/api/jotform/sync" in paths
        assert "/api/jotform/forms" in paths
        assert "/api/jotform/form-fields/{form_id}" in paths
        assert "/api/notifications" in paths
