"""
Celery workers for escrow background processing.

Usage:
    from escrow.workers import auto_release_due_escrows

    auto_release_due_escrows.delay()
"""

from escrow.workers.auto_release import auto_release_due_escrows

__all__ = ["auto_release_due_escrows"]
