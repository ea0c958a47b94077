"""
Escrow-specific exceptions.

Exception Hierarchy:
    EscrowError (base for escrow domain)
    ├── CredentialInvalidError - Credential wrong, expired or already used
    └── DisputeBlockedError - Release refused while a return is open

    EscrowNotFoundError - Escrow record lookup failures (inherits NotFoundError)
    OrderNotFoundError - Order lookup failures (inherits NotFoundError)
    StoreAccessDeniedError - User is not a store member (inherits PermissionDeniedError)
    ConfirmationValidationError - Malformed confirmation input (inherits ValidationError)

Usage:
    from escrow.exceptions import CredentialInvalidError

    if rows_updated != 1:
        raise CredentialInvalidError()

Note:
    CredentialInvalidError deliberately carries one generic message for
    every cause. Callers must not be able to tell a wrong credential from
    an expired or consumed one.
"""

from __future__ import annotations

from core.exceptions import (
    BaseApplicationError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)

CREDENTIAL_INVALID_MESSAGE = "Invalid, expired or already used confirmation code"


# =============================================================================
# Escrow Domain Exceptions
# =============================================================================


class EscrowError(BaseApplicationError):
    """Base exception for all escrow operations."""

    default_error_code: str = "ESCROW_ERROR"


class CredentialInvalidError(EscrowError):
    """
    Raised when a presented delivery credential cannot be consumed.

    Covers every failure of the credential path: no matching hash, an
    expired confirmation, a consumed one, and losing the consumption race
    to a concurrent request.
    """

    default_error_code: str = "CREDENTIAL_INVALID"

    def __init__(self, message: str = CREDENTIAL_INVALID_MESSAGE, **kwargs):
        super().__init__(message, **kwargs)


class DisputeBlockedError(EscrowError):
    """
    Raised when a release is refused because the order has an open return.

    Internal only: callers turn it into a skipped release, never into an
    error response.
    """

    default_error_code: str = "DISPUTE_BLOCKED"


# =============================================================================
# Lookup / Permission / Validation
# =============================================================================


class EscrowNotFoundError(NotFoundError):
    """Raised when an escrow record cannot be found."""

    default_error_code: str = "ESCROW_NOT_FOUND"


class OrderNotFoundError(NotFoundError):
    """Raised when an order cannot be found or is not visible to the caller."""

    default_error_code: str = "ORDER_NOT_FOUND"


class StoreAccessDeniedError(PermissionDeniedError):
    """Raised when a user acts on a store they are not a member of."""

    default_error_code: str = "STORE_ACCESS_DENIED"


class ConfirmationValidationError(ValidationError):
    """
    Raised when confirmation input is malformed.

    The API validates payloads with serializers first; this covers direct
    service calls.
    """
