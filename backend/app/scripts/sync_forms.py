"""Sync Jotform submissions into Section 21 patient records.

Syncs one form, or every form owned by a location. Meant to be run by hand
or by an external scheduler (cron, a k8s CronJob); it schedules nothing
itself.

Usage:
    python -m app.scripts.sync_forms --form-id 241234567890123
    python -m app.scripts.sync_forms --all --timeout 60

The script is idempotent - records are upserted by Jotform submission id.
"""

import argparse
import asyncio
import logging
import sys

from app.config import settings
from app.database import async_session_maker, engine
from app.main import configure_logging
from app.repositories import LocationRepository, PatientRepository
from app.services.jotform_client import JotformClient, JotformError
from app.services.submission_sync import FormExcludedError, SubmissionSyncService

logger = logging.getLogger(__name__)


async def sync_forms(form_ids: list[str] | None, timeout: float | None = None) -> dict[str, int]:
    """
    Sync the given forms, or every location's form when none are given.

    Each form is synced and committed on its own; a form that fails does not
    stop the others.

    Args:
        form_ids: Forms to sync, or None for all location forms.
        timeout: Per-request Jotform timeout in seconds.

    Returns:
        Dictionary with counts: forms_synced, forms_failed, records_synced,
        record_errors.
    """
    stats = {"forms_synced": 0, "forms_failed": 0, "records_synced": 0, "record_errors": 0}

    async with JotformClient(timeout=timeout) as client:
        if form_ids is None:
            async with async_session_maker() as session:
                form_ids = await LocationRepository(session).list_form_ids(
                    settings.excluded_form_ids
                )
            print(f"Found {len(form_ids)} location forms")

        for form_id in form_ids:
            print(f"\n  Syncing form {form_id}...")
            async with async_session_maker() as session:
                service = SubmissionSyncService(
                    provider=client,
                    locations=LocationRepository(session),
                    patients=PatientRepository(session),
                )
                try:
                    result = await service.sync(form_id)
                except (FormExcludedError, JotformError) as e:
                    await session.rollback()
                    print(f"    FAILED - {e}")
                    stats["forms_failed"] += 1
                    continue
                await session.commit()

            print(f"    Synced: {result.synced}")
            print(f"    Errors: {result.errors}")
            stats["forms_synced"] += 1
            stats["records_synced"] += result.synced
            stats["record_errors"] += result.errors

    return stats


async def _run(form_ids: list[str] | None, timeout: float | None) -> dict[str, int]:
    try:
        return await sync_forms(form_ids, timeout)
    finally:
        await engine.dispose()


def main() -> None:
    """Main entry point for the sync script."""
    parser = argparse.ArgumentParser(description="Sync Jotform submissions")
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--form-id", action="append", dest="form_ids", help="Form id to sync (repeatable)")
    target.add_argument("--all", action="store_true", help="Sync every form owned by a location")
    parser.add_argument("--timeout", type=float, default=None, help="Jotform request timeout in seconds")
    args = parser.parse_args()

    configure_logging()

    if not settings.jotform_api_key:
        print("JOTFORM_API_KEY is not set")
        sys.exit(1)

    print("=" * 50)
    print("Jotform Submission Sync")
    print("=" * 50)

    stats = asyncio.run(_run(None if args.all else args.form_ids, args.timeout))

    print("\n" + "=" * 50)
    print("Summary")
    print("=" * 50)
    print(f"  Forms synced: {stats['forms_synced']}")
    print(f"  Forms failed: {stats['forms_failed']}")
    print(f"  Records synced: {stats['records_synced']}")
    print(f"  Record errors: {stats['record_errors']}")

    if stats["forms_failed"]:
        sys.exit(1)


if __name__ == "__main__":
    main()
