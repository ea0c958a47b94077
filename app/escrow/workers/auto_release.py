"""
Auto-release worker for escrows past their deadline.

Tasks:
- auto_release_due_escrows: Periodic task that runs one AutoReleaseSweeper pass

Usage:
    # Typically called via celery-beat schedule (see migration 0002)
    from escrow.workers import auto_release_due_escrows

    auto_release_due_escrows.delay()
"""

from __future__ import annotations

import logging

from celery import shared_task

from escrow.services.auto_release import AutoReleaseSweeper

logger = logging.getLogger(__name__)


@shared_task(bind=True)
def auto_release_due_escrows(self) -> dict:
    """
    Release every held escrow whose release_at has passed.

    Safe to run while another sweep or a buyer confirmation is in
    progress: each record can only be released once.

    Returns:
        Dict with released_count, scanned_count, skipped_count and
        failed_count
    """
    logger.info(
        "Starting auto-release sweep",
        extra={"task_id": getattr(self.request, "id", None)},
    )
    report = AutoReleaseSweeper.run()
    return report.to_dict()
