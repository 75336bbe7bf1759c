"""Location repository.

Read-only access to locations and the field mappings they own. Locations are
created and edited through the admin screens, never by the sync pipeline.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.organisation import Location
from app.schemas.field_mapping import LocationMapping

logger = logging.getLogger(__name__)


class LocationRepository:
    """Repository for Location lookups by Jotform form id."""

    def __init__(self, db: AsyncSession):
        """Initialize repository with database session.

        Args:
            db: Async SQLAlchemy session.
        """
        self.db = db

    async def get_by_form_id(self, form_id: str) -> Location | None:
        """Get the location owning a form.

        When several locations point at the same form the oldest one wins.
        """
        result = await self.db.execute(
            select(Location)
            .where(Location.form_id == form_id)
            .order_by(Location.created_at.asc(), Location.id.asc())
            .limit(1)
        )
        return result.scalars().first()

    async def find_by_form_id(self, form_id: str) -> LocationMapping | None:
        """Resolve the organisation, location and field mapping for a form.

        Args:
            form_id: Jotform form id.

        Returns:
            LocationMapping, or None when no location owns the form. The
            mapping is None when the location has no field ids configured.
        """
        location = await self.get_by_form_id(form_id)
        if location is None:
            return None

        mapping = location.field_mapping
        return LocationMapping(
            organisation_id=location.organisation_id,
            location_id=location.id,
            field_mapping=None if mapping.is_empty else mapping,
        )

    async def list_form_ids(self, excluded_form_ids: list[str] | None = None) -> list[str]:
        """Distinct form ids owned by any location, minus excluded ones."""
        query = select(Location.form_id).distinct().order_by(Location.form_id)
        if excluded_form_ids:
            query = query.where(Location.form_id.not_in(excluded_form_ids))
        result = await self.db.execute(query)
        return [form_id for form_id in result.scalars().all() if form_id]
