"""
Celery tasks for the escrow app.

Worker tasks live in escrow.workers and are re-exported here so Celery's
autodiscover_tasks() registers them.
"""

from escrow.workers import auto_release_due_escrows  # noqa: F401
