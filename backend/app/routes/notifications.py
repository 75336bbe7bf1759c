"""Section 21 expiry notification routes."""

from fastapi import APIRouter, Depends, Query

from app.auth import verify_api_key
from app.config import settings
from app.dependencies import get_patient_repository
from app.repositories import PatientRepository
from app.schemas.notification import NotificationFilter, NotificationListResponse
from app.services.expiry_notifications import list_notifications

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationListResponse)
async def get_notifications(
    _api_key: str = Depends(verify_api_key),
    patients: PatientRepository = Depends(get_patient_repository),
    status: NotificationFilter | None = Query(None),
) -> NotificationListResponse:
    """List outcome letters that are expired or expiring soon.

    Args:
        status: Filter by ``expiring_soon`` or ``expired``; ``all`` or no
            value returns both.

    Returns:
        Notifications, most urgent first, with per-status counts.
    """
    return await list_notifications(
        patients,
        status_filter=status,
        excluded_form_ids=settings.excluded_form_ids,
    )
