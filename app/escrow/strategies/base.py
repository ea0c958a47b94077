"""
Abstract base strategy for delivery confirmation.

A confirmation strategy answers one question: which order is the buyer
confirming, and how sure are we that it is really the buyer? Everything
after that (marking the order delivered, the gated escrow release, the
audit entry) is shared by ConfirmationVerifier and never duplicated per
strategy.

Strategies:
    CredentialStrategy: Consumes a single-use token or OTP (full assurance)
    WeakIdentityStrategy: Matches order id or number + phone (reduced assurance)

Usage:
    class MyStrategy(ConfirmationStrategy):
        assurance = Assurance.FULL
        release_trigger = ReleaseTrigger.DELIVERY_CONFIRMED

        def resolve(self, request):
            order = ...
            return ResolvedConfirmation(order=order, method="...", assurance=self.assurance)
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from stores.models import Order


# =============================================================================
# Parameter and Result Types
# =============================================================================


@dataclass(frozen=True)
class ConfirmationRequest:
    """
    Everything a buyer may present to confirm a delivery.

    Attributes:
        token: Raw QR token
        otp: Raw one-time code
        method: "qr" or "otp"; picks the credential path explicitly
        order_number: Required with an OTP, and with a phone on the weak path
        order_id: Weak path only
        phone: Weak path only, compared with whitespace removed
        client_ip: Recorded on the consumed confirmation
    """

    token: str | None = None
    otp: str | None = None
    method: str | None = None
    order_number: str | None = None
    order_id: uuid.UUID | str | None = None
    phone: str | None = None
    client_ip: str | None = None


@dataclass(frozen=True)
class ResolvedConfirmation:
    """The order a strategy resolved, and how it got there."""

    order: Order
    method: str
    assurance: str
    confirmation_id: uuid.UUID | None = None


# =============================================================================
# Abstract Strategy
# =============================================================================


class ConfirmationStrategy(ABC):
    """
    Abstract base class for delivery confirmation strategies.

    Subclasses set:
        assurance: Recorded in the audit entry of every confirmation
        release_trigger: Passed to the escrow release
    """

    assurance: str
    release_trigger: str

    @abstractmethod
    def resolve(self, request: ConfirmationRequest) -> ResolvedConfirmation:
        """
        Identify the order being confirmed.

        Raises:
            BaseApplicationError subclass: If the request identifies no order.
                The verifier turns it into a failed ServiceResult.
        """
