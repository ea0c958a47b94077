"""
Tests for core/services.py.

This module tests:
- ServiceResult construction and response shapes
- ServiceResult.from_exception keeping application error codes
- BaseService.atomic rolling back on failure
- BaseService.handle_exception logging and converting
"""

import logging

import pytest

from authentication.models import User
from core.exceptions import NotFoundError
from core.services import BaseService, ServiceResult


# =============================================================================
# ServiceResult
# =============================================================================


class TestServiceResult:
    """Tests for ServiceResult."""

    def test_success_is_truthy_and_carries_data(self):
        result = ServiceResult.success({"released": True})

        assert result
        assert result.data == {"released": True}
        assert result.to_response() == {"success": True, "data": {"released": True}}

    def test_failure_response_includes_error_code(self):
        result = ServiceResult.failure("Store access denied", "STORE_ACCESS_DENIED")

        assert not result
        assert result.to_response() == {
            "success": False,
            "error": "Store access denied",
            "error_code": "STORE_ACCESS_DENIED",
        }

    def test_from_exception_keeps_application_error_code(self):
        """
        Application errors already carry a machine-readable code.

        Why it matters: views map error_code to HTTP status.
        """
        exc = NotFoundError("Order not found", error_code="ORDER_NOT_FOUND")

        result = ServiceResult.from_exception(exc)

        assert result.error == "Order not found"
        assert result.error_code == "ORDER_NOT_FOUND"

    def test_from_exception_falls_back_to_class_name(self):
        result = ServiceResult.from_exception(KeyError("x"))

        assert result.error_code == "KEYERROR"


# =============================================================================
# BaseService
# =============================================================================


class _Service(BaseService):
    pass


@pytest.mark.django_db
class TestBaseService:
    """Tests for BaseService utilities."""

    def test_atomic_rolls_back_on_error(self):
        """Writes inside atomic() disappear when the block raises."""
        with pytest.raises(RuntimeError):
            with _Service.atomic():
                User.objects.create_user(email="rollback@example.com", password="x")
                raise RuntimeError("boom")

        assert not User.objects.filter(email="rollback@example.com").exists()

    def test_get_logger_is_named_after_service(self):
        assert _Service.get_logger().name.endswith("._Service")

    def test_handle_exception_logs_and_converts(self, caplog):
        with caplog.at_level(logging.ERROR):
            result = _Service.handle_exception(ValueError("bad"), context="sweep")

        assert result.success is False
        assert result.error == "bad"
        assert "sweep: bad" in caplog.text
