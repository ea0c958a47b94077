"""
Django app configuration for stores.
"""

from django.apps import AppConfig


class StoresConfig(AppConfig):
    """Configuration for the stores application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "stores"
    verbose_name = "Stores"
