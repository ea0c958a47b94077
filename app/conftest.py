"""
Project-wide pytest configuration for the Django apps.

App-specific fixtures are defined in each app's tests/conftest.py.
"""

import pytest


def pytest_configure():
    """Adjust settings for the test run."""
    from django.conf import settings

    # Only views that opt in (confirm-delivery) are throttled in tests
    settings.REST_FRAMEWORK["DEFAULT_THROTTLE_CLASSES"] = []

    # Use fast password hasher for tests (PBKDF2 is too slow with 870K iterations)
    settings.PASSWORD_HASHERS = [
        "django.contrib.auth.hashers.MD5PasswordHasher",
    ]


def pytest_collection_modifyitems(items):
    """
    Auto-mark tests based on filename patterns.

    Mapping:
    - test_concurrency.py → e2e (real threads against the database)
    - test_views.py, test_services.py, test_auto_release.py, etc. → integration
    - test_helpers.py, test_managers.py, test_credential_hasher.py, etc. → unit
    - Unmatched files → integration (safe default for Django)

    Explicit markers on test functions/classes take precedence.
    """
    e2e_patterns = ["test_concurrency.py"]

    integration_patterns = [
        "test_views.py",
        "test_services.py",
        "test_auto_release.py",
        "test_confirmation_verifier.py",
        "test_confirmation_issuer.py",
        "test_escrow_ledger.py",
    ]

    unit_patterns = [
        "test_helpers.py",
        "test_credential_hasher.py",
        "test_managers.py",
    ]

    for item in items:
        existing_markers = {m.name for m in item.iter_markers()}
        if existing_markers & {"unit", "integration", "e2e"}:
            continue

        filename = str(item.fspath).split("/")[-1]

        if any(pattern in filename for pattern in e2e_patterns):
            item.add_marker(pytest.mark.e2e)
        elif any(pattern in filename for pattern in integration_patterns):
            item.add_marker(pytest.mark.integration)
        elif any(pattern in filename for pattern in unit_patterns):
            item.add_marker(pytest.mark.unit)
        else:
            item.add_marker(pytest.mark.integration)


def _patch_postgresql_flush_for_cascade():
    """
    Patch PostgreSQL flush to always use CASCADE.

    Transactional tests reset the database with TRUNCATE, which fails on
    tables referenced by foreign keys unless CASCADE is used.
    """
    from django.db.backends.postgresql import operations

    original_sql_flush = operations.DatabaseOperations.sql_flush

    def sql_flush_with_cascade(
        self, style, tables, *, reset_sequences=False, allow_cascade=False
    ):
        return original_sql_flush(
            self, style, tables, reset_sequences=reset_sequences, allow_cascade=True
        )

    operations.DatabaseOperations.sql_flush = sql_flush_with_cascade


_patch_postgresql_flush_for_cascade()
