"""
Base exception classes for application-wide error handling.

Every domain error raised by the service carries a human-readable message,
a machine-readable error code and optional details, so views can turn any
of them into the same response shape.

Exception Hierarchy:
    BaseApplicationError (base)
    ├── ValidationError - Input validation failures
    ├── NotFoundError - Resource not found
    └── PermissionDeniedError - Authorization failures

Usage:
    from core.exceptions import NotFoundError

    raise NotFoundError(
        "Order not found",
        error_code="ORDER_NOT_FOUND",
        details={"order_id": str(order_id)},
    )

    try:
        ...
    except BaseApplicationError as e:
        return Response(e.to_dict(), status=404)

Note:
    These exceptions are for domain/business logic errors.
    DRF handles API-layer exceptions (serialization, authentication, throttling).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code for client-side handling
        details: Additional error context (identifiers, state, etc.)
    """

    default_error_code: str = "APPLICATION_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert exception to dictionary for API response.

        Example:
            {
                "error": "Escrow record not found",
                "error_code": "ESCROW_NOT_FOUND",
                "details": {"escrow_id": "..."}
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """
    Raised when input validation fails in the service layer.

    For request payloads, use DRF serializer validation. Use this when a
    service is called directly with malformed input.
    """

    default_error_code: str = "VALIDATION_ERROR"


class NotFoundError(BaseApplicationError):
    """
    Raised when a requested resource is not found.

    Use for single-resource lookups where existence is expected
    (an order by number, the escrow record of an order).
    """

    default_error_code: str = "NOT_FOUND"


class PermissionDeniedError(BaseApplicationError):
    """
    Raised when a user lacks permission for an operation.

    For authentication failures (missing/invalid token), DRF's
    AuthenticationFailed applies. Use this for authorization failures such
    as acting on a store the user is not a member of.
    """

    default_error_code: str = "PERMISSION_DENIED"
