"""
Cleanup Task

Celery beat task for the periodic sweep of expired share codes and of
blobs that no registry row references any more.
"""

import logging
from datetime import timedelta

from celery import shared_task
from flask import current_app

from dropin.config.transfer_config import TransferConfig
from dropin.domain.transfer import BlobStore, CodeRegistry, ExpirySweeper

logger = logging.getLogger(__name__)


@shared_task(bind=True, name="dropin.tasks.sweep_expired_codes")
def sweep_expired_codes(self):
    """
    Periodic cleanup task that removes expired code groups and orphaned blobs.

    Runs every SWEEP_INTERVAL_SECONDS (Celery beat schedule) and:
    1. Sweeps expired code groups through ExpirySweeper
    2. Deletes blobs older than ORPHAN_MAX_AGE_SECONDS that no group references
    3. Logs cleanup activities for monitoring

    Failures are logged and reported in the result, never raised.

    Returns:
        dict: Cleanup statistics with counts and errors
    """
    logger.info("Starting sweep task")

    cleanup_stats = {
        "codes_scanned": 0,
        "expired_codes_removed": 0,
        "orphaned_blobs_removed": 0,
        "errors": [],
    }

    try:
        container = current_app.container
        sweeper = container.resolve(ExpirySweeper)
        registry = container.resolve(CodeRegistry)
        blob_store = container.resolve(BlobStore)
        config = container.resolve(TransferConfig)
    except Exception as e:
        error_msg = f"Sweep task could not resolve services: {e}"
        logger.error(error_msg, exc_info=True)
        cleanup_stats["errors"].append(error_msg)
        return cleanup_stats

    # 1. Expired code groups
    report = sweeper.sweep()
    cleanup_stats["codes_scanned"] = report.scanned
    cleanup_stats["expired_codes_removed"] = report.removed
    cleanup_stats["errors"].extend(report.errors)

    # 2. Orphaned blobs
    try:
        cleanup_stats["orphaned_blobs_removed"] = cleanup_orphaned_blobs(
            registry, blob_store, timedelta(seconds=config.orphan_max_age_seconds)
        )
    except Exception as e:
        error_msg = f"Error cleaning up orphaned blobs: {e}"
        cleanup_stats["errors"].append(error_msg)
        logger.error(error_msg, exc_info=True)

    logger.info(
        f"Sweep task completed - Scanned: {cleanup_stats['codes_scanned']}, "
        f"Expired: {cleanup_stats['expired_codes_removed']}, "
        f"Orphaned: {cleanup_stats['orphaned_blobs_removed']}, "
        f"Errors: {len(cleanup_stats['errors'])}"
    )

    if cleanup_stats["errors"]:
        logger.warning(f"Sweep errors: {cleanup_stats['errors']}")

    return cleanup_stats


def cleanup_orphaned_blobs(registry: CodeRegistry, blob_store: BlobStore,
                           max_age: timedelta) -> int:
    """
    Delete blobs that belong to no code group.

    Only blobs older than max_age are touched, so a batch whose blobs are
    written but whose group is not yet registered survives.

    Returns:
        Number of blobs removed
    """
    referenced = registry.referenced_blobs()
    cutoff = registry.clock() - max_age
    count = 0

    for blob in blob_store.list_blobs():
        if blob.stored_name in referenced or blob.modified_at > cutoff:
            continue
        try:
            if blob_store.delete(blob.stored_name):
                count += 1
                logger.info(f"Removed orphaned blob: {blob.stored_name}")
        except Exception as e:
            logger.warning(f"Failed to remove orphaned blob {blob.stored_name}: {e}")

    return count
