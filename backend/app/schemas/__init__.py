"""Pydantic schemas."""

from app.schemas.field_mapping import FieldMapping, FieldRole, LocationMapping
from app.schemas.jotform import (
    Answer,
    FormField,
    FormFieldsResponse,
    FormListResponse,
    FormSummary,
    RawSubmission,
)
from app.schemas.notification import (
    Notification,
    NotificationFilter,
    NotificationListResponse,
    NotificationStatus,
    NotificationSummary,
)
from app.schemas.patient import ExtractedPatient, PatientRecordDraft
from app.schemas.sync import SyncRequest, SyncResponse, SyncResult

__all__ = [
    "Answer",
    "ExtractedPatient",
    "FieldMapping",
    "FieldRole",
    "FormField",
    "FormFieldsResponse",
    "FormListResponse",
    "FormSummary",
    "LocationMapping",
    "Notification",
    "NotificationFilter",
    "NotificationListResponse",
    "NotificationStatus",
    "NotificationSummary",
    "PatientRecordDraft",
    "RawSubmission",
    "SyncRequest",
    "SyncResponse",
    "SyncResult",
]
