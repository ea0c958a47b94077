"""
Celery configuration for the escrow release service.

Celery runs the background side of the engine:
- The periodic auto-release sweep (scheduled by django-celery-beat)
- Any future asynchronous follow-ups to escrow transitions

Redis is used as both the message broker and result backend. Tasks are
auto-discovered from installed apps; the escrow app exposes its tasks
through ``escrow/tasks.py``.

Usage:
    # Trigger a sweep outside of the beat schedule:
    from escrow.workers.auto_release import auto_release_due_escrows

    auto_release_due_escrows.delay()

For more information, see:
https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html
"""

import os

from celery import Celery

# Set the default Django settings module for the Celery worker
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

app.autodiscover_tasks()
