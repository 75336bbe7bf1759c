"""SQLAlchemy models."""

from app.models.organisation import Location, Organisation
from app.models.patient import PatientRecord

__all__ = [
    "Location",
    "Organisation",
    "PatientRecord",
]
