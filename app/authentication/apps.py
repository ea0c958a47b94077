from django.apps import AppConfig


class AuthenticationConfig(AppConfig):
    """Staff accounts that sign in with email and authenticate with JWT."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "authentication"
    verbose_name = "Staff accounts"
