"""
ConfirmationVerifier: the shared delivery confirmation pipeline.

    1. strategy.resolve(request)      -> order (or a domain error)
    2. StoreService.mark_delivered    -> order status DELIVERED
    3. gated, idempotent escrow release
    4. audit entry delivery_confirmed

Once step 1 has consumed a credential the confirmation stands: a release
failure in step 3 is logged and reported as escrow_released = False, but
never rolls the consumption back. The sweep releases the escrow later.

Usage:
    from escrow.services import ConfirmationVerifier
    from escrow.strategies import ConfirmationRequest, CredentialStrategy

    result = ConfirmationVerifier(CredentialStrategy()).confirm(
        ConfirmationRequest(otp="123456", method="otp", order_number="ORD-1001")
    )
    if result.success:
        result.data.escrow_released
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING

from core.exceptions import BaseApplicationError
from core.services import BaseService, ServiceResult
from escrow.audit.services import AuditRecorder
from escrow.exceptions import DisputeBlockedError
from escrow.services.escrow_ledger import EscrowLedgerService
from escrow.state_machines import AuditAction
from stores.services import StoreService

if TYPE_CHECKING:
    from escrow.strategies.base import ConfirmationRequest, ConfirmationStrategy
    from stores.models import Order

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConfirmationOutcome:
    order_number: str
    escrow_released: bool
    method: str
    assurance: str

    def to_dict(self) -> dict:
        return asdict(self)


class ConfirmationVerifier(BaseService):
    """Run a confirmation strategy through the shared pipeline."""

    def __init__(self, strategy: ConfirmationStrategy):
        self.strategy = strategy

    def confirm(self, request: ConfirmationRequest) -> ServiceResult[ConfirmationOutcome]:
        """
        Confirm a delivery.

        Returns:
            ServiceResult with a ConfirmationOutcome, or a failure carrying
            the domain error code (CREDENTIAL_INVALID, ORDER_NOT_FOUND,
            ESCROW_NOT_FOUND, VALIDATION_ERROR)
        """
        try:
            resolved = self.strategy.resolve(request)
        except BaseApplicationError as exc:
            return self.handle_exception(
                exc,
                context="Delivery confirmation rejected",
                log_level=logging.INFO,
            )

        order = StoreService.mark_delivered(resolved.order)
        released = self._attempt_release(order)

        AuditRecorder.record(
            AuditAction.DELIVERY_CONFIRMED,
            store_id=order.store_id,
            target_type="order",
            target_id=order.id,
            metadata={
                "method": str(resolved.method),
                "escrow_released": released,
                "assurance": str(resolved.assurance),
                "confirmation_id": (
                    str(resolved.confirmation_id) if resolved.confirmation_id else None
                ),
            },
        )

        logger.info(
            "Delivery confirmed",
            extra={
                "order_id": str(order.id),
                "method": str(resolved.method),
                "assurance": str(resolved.assurance),
                "escrow_released": released,
            },
        )

        return ServiceResult.success(
            ConfirmationOutcome(
                order_number=order.order_number,
                escrow_released=released,
                method=str(resolved.method),
                assurance=str(resolved.assurance),
            )
        )

    def _attempt_release(self, order: Order) -> bool:
        record = EscrowLedgerService.get_held_for_order(order.id)
        if record is None:
            return False

        try:
            return EscrowLedgerService.release_unless_disputed(
                record.id,
                trigger=self.strategy.release_trigger,
            )
        except DisputeBlockedError:
            return False
        except Exception:
            logger.exception(
                "Escrow release failed after delivery confirmation",
                extra={"order_id": str(order.id), "escrow_id": str(record.id)},
            )
            return False
