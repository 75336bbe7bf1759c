"""Jotform API routes.

Sync trigger plus the form and question listings the admin screens use to
configure a location's field mapping.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from app.auth import verify_api_key
from app.config import settings
from app.dependencies import get_jotform_client, get_sync_service
from app.schemas.jotform import FormFieldsResponse, FormListResponse
from app.schemas.sync import SyncRequest, SyncResponse
from app.services.jotform_client import JotformClient, JotformError
from app.services.submission_sync import FormExcludedError, SubmissionSyncService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jotform", tags=["jotform"])


@router.post("/sync", response_model=SyncResponse)
async def sync_form(
    request: SyncRequest,
    _api_key: str = Depends(verify_api_key),
    service: SubmissionSyncService = Depends(get_sync_service),
) -> SyncResponse:
    """Sync a form's Jotform submissions into patient records.

    Individual submission failures are counted in ``errors`` and do not fail
    the request.

    Raises:
        HTTPException: 400 if the form is excluded, 502 if Jotform fails.
    """
    try:
        result = await service.sync(request.form_id)
    except FormExcludedError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except JotformError as e:
        logger.error("Jotform sync of form %s failed: %s", request.form_id, e)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to fetch Jotform submissions",
        )

    return SyncResponse(
        message=f"Synced {result.synced} records, {result.errors} errors",
        synced=result.synced,
        errors=result.errors,
    )


@router.get("/forms", response_model=FormListResponse)
async def list_forms(
    _api_key: str = Depends(verify_api_key),
    client: JotformClient = Depends(get_jotform_client),
) -> FormListResponse:
    """List the account's forms, without the excluded non-patient forms."""
    try:
        forms = await client.list_forms(settings.excluded_form_ids)
    except JotformError as e:
        logger.error("Failed to list Jotform forms: %s", e)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to fetch forms from Jotform",
        )
    return FormListResponse(forms=forms)


@router.get("/form-fields/{form_id}", response_model=FormFieldsResponse)
async def list_form_fields(
    form_id: str,
    _api_key: str = Depends(verify_api_key),
    client: JotformClient = Depends(get_jotform_client),
) -> FormFieldsResponse:
    """List a form's questions for field mapping, in form order."""
    try:
        fields = await client.fetch_form_fields(form_id)
    except JotformError as e:
        logger.warning("Failed to fetch questions for form %s: %s", form_id, e)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Failed to fetch form from Jotform. Check the Form ID.",
        )
    return FormFieldsResponse(fields=fields)
