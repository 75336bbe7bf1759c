"""Pydantic schemas for Section 21 expiry notifications."""

import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class NotificationStatus(str, Enum):
    """Urgency of an outcome letter. Letters that are fine have no status."""

    EXPIRING_SOON = "EXPIRING_SOON"
    EXPIRED = "EXPIRED"


class NotificationFilter(str, Enum):
    """Query filter accepted by the notifications endpoint."""

    EXPIRING_SOON = "expiring_soon"
    EXPIRED = "expired"
    ALL = "all"

    @classmethod
    def _missing_(cls, value):
        # Accept ?status=EXPIRED as well as ?status=expired
        if isinstance(value, str):
            for member in cls:
                if member.value == value.lower():
                    return member
        return None

    def matches(self, status: NotificationStatus) -> bool:
        if self is NotificationFilter.ALL:
            return True
        return self.value.upper() == status.value


class Notification(BaseModel):
    """Expiry notification derived from a patient record."""

    id: uuid.UUID
    patient_id: uuid.UUID
    patient_name: str
    patient_unique_id: str
    organisation_name: str
    location_name: str
    uploaded_date: datetime = Field(description="Anchor date the expiry is computed from")
    expiry_date: datetime
    days_until_expiry: int
    status: NotificationStatus


class NotificationSummary(BaseModel):
    expiring_soon: int = 0
    expired: int = 0


class NotificationListResponse(BaseModel):
    success: bool = True
    notifications: list[Notification]
    count: int
    summary: NotificationSummary
