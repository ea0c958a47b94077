"""
CredentialStrategy: confirm delivery with a single-use credential.

QR path:  token -> hash -> unused, unexpired confirmation with that token_hash
OTP path: otp + order_number -> hash -> same, restricted to that order

The lookup only finds a candidate. Consumption is a separate conditional
UPDATE; of two concurrent requests for the same credential, exactly one
sees one affected row. Every failure raises the same CredentialInvalidError,
so a caller cannot tell a wrong code from an expired or used one.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import validate_ipv46_address
from django.utils import timezone

from escrow.exceptions import ConfirmationValidationError, CredentialInvalidError
from escrow.models import DeliveryConfirmation
from escrow.services.credential_hasher import CredentialHasher
from escrow.state_machines import Assurance, ConfirmationMethod, ReleaseTrigger
from escrow.strategies.base import (
    ConfirmationRequest,
    ConfirmationStrategy,
    ResolvedConfirmation,
)
from stores.services import StoreService

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID

logger = logging.getLogger(__name__)


class CredentialStrategy(ConfirmationStrategy):
    """Full-assurance confirmation by token or OTP."""

    assurance = Assurance.FULL
    release_trigger = ReleaseTrigger.DELIVERY_CONFIRMED

    def resolve(self, request: ConfirmationRequest) -> ResolvedConfirmation:
        now = timezone.now()

        if self._uses_otp(request):
            method = ConfirmationMethod.OTP
            candidates = self._otp_candidates(request, now)
        else:
            method = ConfirmationMethod.QR
            if not request.token:
                raise ConfirmationValidationError("A token or an OTP is required")
            candidates = DeliveryConfirmation.objects.active(now).filter(
                token_hash=CredentialHasher.hash(request.token)
            )

        confirmation = candidates.select_related("order").order_by("-created_at").first()
        if confirmation is None:
            logger.info("No active confirmation matches", extra={"method": method})
            raise CredentialInvalidError()

        if not self.consume(confirmation.id, method, request.client_ip, now):
            logger.info(
                "Confirmation consumed concurrently",
                extra={"confirmation_id": str(confirmation.id)},
            )
            raise CredentialInvalidError()

        return ResolvedConfirmation(
            order=confirmation.order,
            method=method,
            assurance=self.assurance,
            confirmation_id=confirmation.id,
        )

    @staticmethod
    def _uses_otp(request: ConfirmationRequest) -> bool:
        if request.method == ConfirmationMethod.OTP:
            return True
        return not request.token and bool(request.otp)

    @staticmethod
    def _otp_candidates(request: ConfirmationRequest, now: datetime):
        if not request.otp or not request.order_number:
            raise ConfirmationValidationError(
                "An OTP must be presented with its order number"
            )

        order = StoreService.get_order_by_number(request.order_number)
        if order is None:
            raise CredentialInvalidError()

        return (
            DeliveryConfirmation.objects.for_order(order.id)
            .active(now)
            .filter(otp_hash=CredentialHasher.hash(request.otp))
        )

    @staticmethod
    def consume(
        confirmation_id: UUID,
        method: str,
        client_ip: str | None = None,
        now: datetime | None = None,
    ) -> bool:
        """
        Mark a confirmation used, if nobody else has.

        Returns:
            True only for the caller whose UPDATE matched the row
        """
        now = now or timezone.now()
        rows = DeliveryConfirmation.objects.filter(
            id=confirmation_id,
            used_at__isnull=True,
            expires_at__gt=now,
        ).update(
            used_at=now,
            method=method,
            confirmed_ip=_clean_ip(client_ip),
            updated_at=now,
        )
        return rows == 1


def _clean_ip(value: str | None) -> str | None:
    if not value:
        return None
    try:
        validate_ipv46_address(value)
    except DjangoValidationError:
        return None
    return value
