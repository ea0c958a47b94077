"""
Core Application - Infrastructure & Base Classes

Generic building blocks shared by the domain apps (stores, escrow). Nothing
in here knows about orders, credentials or escrow.

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Model Mixins (import from core.model_mixins):
    - UUIDPrimaryKeyMixin: UUID as primary key
    - AppendOnlyMixin: Insert-only rows (audit trails, ledgers)

Managers (import from core.managers):
    - AppendOnlyManager / AppendOnlyQuerySet: Refuse bulk update/delete

Services (import from core.services):
    - BaseService: Base class for service layer
    - ServiceResult: Standard result wrapper for success/failure handling

Exceptions (import from core.exceptions):
    - BaseApplicationError: Base exception with error codes
    - ValidationError, NotFoundError, PermissionDeniedError

Helpers (import from core.helpers):
    - generate_token, hash_string, validate_uuid, get_client_ip

Note:
    Django models, model mixins and managers are NOT imported here to avoid
    AppRegistryNotReady errors. Import them directly from their modules.
"""

# Services (no Django model dependencies)
from .services import BaseService, ServiceResult

# Exceptions (no Django dependencies)
from .exceptions import (
    BaseApplicationError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)

# Helpers (no Django model dependencies)
from .helpers import (
    generate_token,
    get_client_ip,
    hash_string,
    validate_uuid,
)

__all__ = [
    # Services
    "BaseService",
    "ServiceResult",
    # Exceptions
    "BaseApplicationError",
    "ValidationError",
    "NotFoundError",
    "PermissionDeniedError",
    # Helpers
    "generate_token",
    "hash_string",
    "validate_uuid",
    "get_client_ip",
]
