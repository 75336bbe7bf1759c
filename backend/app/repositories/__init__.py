"""Repository layer for data access.

Repositories encapsulate database operations and provide a clean interface
for the sync pipeline and the notification engine.
"""

from app.repositories.location import LocationRepository
from app.repositories.patient import PatientRepository

__all__ = ["LocationRepository", "PatientRepository"]
