from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from pixhub.core.errors import StorageError
from pixhub.services.galleries import GalleryRepository
from pixhub.services.storage import BlobStore, blob_written_at

logger = logging.getLogger(__name__)


async def reconcile_orphaned_blobs(
    repository: GalleryRepository,
    blob_store: BlobStore,
    grace_minutes: int,
    now: datetime | None = None,
) -> dict[str, int]:
    """Delete blobs that no media row references and that are older than the grace period.

    The grace period covers uploads whose media row is still being appended.
    Keys without an embedded write time are never touched.
    """
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(minutes=max(int(grace_minutes or 0), 0))

    keys = await blob_store.list_keys()
    referenced = await repository.referenced_storage_keys()

    deleted = 0
    failed = 0
    for key in keys:
        if key in referenced:
            continue
        written_at = blob_written_at(key)
        if written_at is None or written_at > cutoff:
            continue
        try:
            await blob_store.delete(key)
        except StorageError:
            logger.warning("Failed to delete orphaned blob %s", key, exc_info=True)
            failed += 1
            continue
        deleted += 1

    if deleted or failed:
        logger.info("Orphan reconciliation: scanned=%d deleted=%d failed=%d", len(keys), deleted, failed)
    return {"scanned": len(keys), "deleted": deleted, "failed": failed}
