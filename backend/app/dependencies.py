"""FastAPI dependencies wiring services to the database and Jotform."""

from collections.abc import AsyncIterator

from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.repositories import LocationRepository, PatientRepository
from app.services.jotform_client import JotformClient
from app.services.submission_sync import SubmissionSyncService


async def get_jotform_client() -> AsyncIterator[JotformClient]:
    """Jotform client for the duration of a request.

    Raises:
        HTTPException: 500 if no Jotform API key is configured.
    """
    if not settings.jotform_api_key:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Jotform API key not configured",
        )
    async with JotformClient() as client:
        yield client


def get_patient_repository(db: AsyncSession = Depends(get_db)) -> PatientRepository:
    return PatientRepository(db)


def get_sync_service(
    db: AsyncSession = Depends(get_db),
    client: JotformClient = Depends(get_jotform_client),
) -> SubmissionSyncService:
    return SubmissionSyncService(
        provider=client,
        locations=LocationRepository(db),
        patients=PatientRepository(db),
    )
