"""
Delivery confirmation strategies.

Usage:
    from escrow.services import ConfirmationVerifier
    from escrow.strategies import ConfirmationRequest, CredentialStrategy

    result = ConfirmationVerifier(CredentialStrategy()).confirm(
        ConfirmationRequest(token=token, client_ip=ip)
    )
"""

from escrow.strategies.base import (
    ConfirmationRequest,
    ConfirmationStrategy,
    ResolvedConfirmation,
)
from escrow.strategies.credential import CredentialStrategy
from escrow.strategies.weak_identity import WeakIdentityStrategy

__all__ = [
    "ConfirmationRequest",
    "ConfirmationStrategy",
    "CredentialStrategy",
    "ResolvedConfirmation",
    "WeakIdentityStrategy",
]
