"""Section 21 outcome letter expiry notifications.

Notifications are never stored. They are a pure function of the patient
records and the current time, recomputed on every request, so there is no
notification state that can drift from the records it describes.

For each record with an outcome letter:
- anchor = outcome_letter_uploaded_at, else created_at
- expiry = anchor + OUTCOME_LETTER_VALIDITY_MONTHS calendar months
- days_until_expiry = ceil((expiry - now) / 1 day)
- days < 0 is EXPIRED, 0..EXPIRING_SOON_WINDOW_DAYS is EXPIRING_SOON,
  anything later produces no notification
"""

import calendar
import logging
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol

from app.constants import EXPIRING_SOON_WINDOW_DAYS, OUTCOME_LETTER_VALIDITY_MONTHS, UNKNOWN
from app.schemas.notification import (
    Notification,
    NotificationFilter,
    NotificationListResponse,
    NotificationStatus,
    NotificationSummary,
)

logger = logging.getLogger(__name__)

_ONE_DAY = timedelta(days=1)


class OutcomeLetterStore(Protocol):
    async def list_with_outcome_letter(self, excluded_form_ids: Iterable[str] = ()) -> list[Any]: ...


def add_months(value: datetime, months: int) -> datetime:
    """Shift a datetime by calendar months.

    The day of month is kept where the target month has it and clamped to
    the month's last day otherwise (Aug 31 + 6 months is Feb 28, or Feb 29 in
    a leap year). Time of day and tzinfo are preserved.
    """
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def anchor_date(record: Any) -> datetime | None:
    """Upload time of the outcome letter, falling back to record creation."""
    anchor = record.outcome_letter_uploaded_at or record.created_at
    return _as_utc(anchor) if anchor else None


def expiry_date(anchor: datetime) -> datetime:
    return add_months(anchor, OUTCOME_LETTER_VALIDITY_MONTHS)


def days_until(expiry: datetime, now: datetime) -> int:
    """Whole days until expiry, rounded up; negative once expired."""
    return -((now - expiry) // _ONE_DAY)


def classify(days_until_expiry: int) -> NotificationStatus | None:
    """Urgency for a letter, or None when it needs no attention yet."""
    if days_until_expiry < 0:
        return NotificationStatus.EXPIRED
    if days_until_expiry <= EXPIRING_SOON_WINDOW_DAYS:
        return NotificationStatus.EXPIRING_SOON
    return None


def _patient_name(record: Any) -> str:
    if record.patient_full_name:
        return record.patient_full_name
    joined = f"{record.first_name or ''} {record.last_name or ''}".strip()
    return joined or UNKNOWN


def _related_name(related: Any) -> str:
    name = getattr(related, "name", None) if related is not None else None
    return name or UNKNOWN


def build_notification(record: Any, now: datetime) -> Notification | None:
    """Notification for one patient record, or None if nothing is due."""
    if not record.outcome_letter_url:
        return None

    anchor = anchor_date(record)
    if anchor is None:
        logger.warning("Record %s has no anchor date, skipping", record.patient_unique_id)
        return None

    expiry = expiry_date(anchor)
    days = days_until(expiry, _as_utc(now))
    status = classify(days)
    if status is None:
        return None

    return Notification(
        id=record.id,
        patient_id=record.id,
        patient_name=_patient_name(record),
        patient_unique_id=record.patient_unique_id,
        organisation_name=_related_name(record.organisation),
        location_name=_related_name(record.location),
        uploaded_date=anchor,
        expiry_date=expiry,
        days_until_expiry=days,
        status=status,
    )


def _urgency_key(notification: Notification) -> tuple[int, int]:
    group = 0 if notification.status is NotificationStatus.EXPIRED else 1
    return group, notification.days_until_expiry


def build_notifications(
    records: Iterable[Any],
    now: datetime,
    status_filter: NotificationFilter | None = None,
) -> list[Notification]:
    """Notifications for all records, most urgent first.

    Expired letters come before expiring ones; within each group the order
    is ascending days until expiry.
    """
    notifications = []
    for record in records:
        notification = build_notification(record, now)
        if notification is None:
            continue
        if status_filter is not None and not status_filter.matches(notification.status):
            continue
        notifications.append(notification)

    notifications.sort(key=_urgency_key)
    return notifications


def summarize(notifications: Iterable[Notification]) -> NotificationSummary:
    summary = NotificationSummary()
    for notification in notifications:
        if notification.status is NotificationStatus.EXPIRED:
            summary.expired += 1
        else:
            summary.expiring_soon += 1
    return summary


async def list_notifications(
    store: OutcomeLetterStore,
    status_filter: NotificationFilter | None = None,
    now: datetime | None = None,
    excluded_form_ids: Iterable[str] = (),
) -> NotificationListResponse:
    """Load records with outcome letters and project them into notifications.

    Args:
        store: Patient record store.
        status_filter: Optional status filter; None or ALL returns both.
        now: Reference time, defaults to the current UTC time.
        excluded_form_ids: Forms whose records are ignored.

    Returns:
        Sorted notifications with per-status counts of the returned list.
    """
    records = await store.list_with_outcome_letter(excluded_form_ids)
    notifications = build_notifications(
        records,
        now or datetime.now(timezone.utc),
        status_filter,
    )
    return NotificationListResponse(
        notifications=notifications,
        count=len(notifications),
        summary=summarize(notifications),
    )
