"""Pydantic schemas for the submission sync endpoint."""

from pydantic import BaseModel, Field


class SyncRequest(BaseModel):
    form_id: str = Field(min_length=1, description="Jotform form id to sync")


class SyncResult(BaseModel):
    """Aggregate outcome of one sync run.

    ``errors > 0`` is a degraded but completed run.
    """

    synced: int = 0
    errors: int = 0


class SyncResponse(SyncResult):
    success: bool = True
    message: str
