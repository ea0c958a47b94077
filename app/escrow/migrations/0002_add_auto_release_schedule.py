"""
Add celery-beat schedule for releasing escrows past their deadline.

This migration creates the periodic task schedule for the
auto_release_due_escrows task, which runs every 15 minutes.
"""

from django.db import migrations

TASK_NAME = "Auto-release Due Escrows"


def create_periodic_task(apps, schema_editor):
    """Create the periodic task for the auto-release sweep."""
    IntervalSchedule = apps.get_model("django_celery_beat", "IntervalSchedule")
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")

    schedule, _ = IntervalSchedule.objects.get_or_create(
        every=15,
        period="minutes",
    )

    PeriodicTask.objects.get_or_create(
        name=TASK_NAME,
        defaults={
            "task": "escrow.workers.auto_release.auto_release_due_escrows",
            "interval": schedule,
            "enabled": True,
            "description": (
                "Releases held escrows whose release_at has passed, "
                "skipping orders with an open return request."
            ),
        },
    )


def remove_periodic_task(apps, schema_editor):
    """Remove the periodic task on migration rollback."""
    PeriodicTask = apps.get_model("django_celery_beat", "PeriodicTask")
    PeriodicTask.objects.filter(name=TASK_NAME).delete()


class Migration(migrations.Migration):
    dependencies = [
        ("escrow", "0001_initial"),
        ("django_celery_beat", "0019_alter_periodictasks_options"),
    ]

    operations = [
        migrations.RunPython(create_periodic_task, remove_periodic_task),
    ]
