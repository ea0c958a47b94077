"""
WeakIdentityStrategy: the legacy receipt confirmation.

The buyer identifies the order by its id, or by its number together with
the shipping phone. No credential is consumed, so the confirmation is
recorded with reduced assurance. Only orders with held funds can be
confirmed this way. Dispute gating and the idempotent release
still apply through the shared verifier pipeline.
"""

from __future__ import annotations

from escrow.exceptions import EscrowNotFoundError, OrderNotFoundError
from escrow.services.escrow_ledger import EscrowLedgerService
from escrow.state_machines import Assurance, ReleaseTrigger
from escrow.strategies.base import (
    ConfirmationRequest,
    ConfirmationStrategy,
    ResolvedConfirmation,
)
from stores.services import StoreService

IDENTITY_METHOD = "identity"


class WeakIdentityStrategy(ConfirmationStrategy):
    """Reduced-assurance confirmation by order identity."""

    assurance = Assurance.REDUCED
    release_trigger = ReleaseTrigger.RECEIPT_CONFIRMED

    def resolve(self, request: ConfirmationRequest) -> ResolvedConfirmation:
        order = StoreService.find_order_for_receipt(
            order_id=request.order_id,
            order_number=request.order_number,
            phone=request.phone,
        )
        if order is None:
            raise OrderNotFoundError("Order not found")

        # A settled escrow leaves nothing to confirm; the order stays as it is
        if EscrowLedgerService.get_held_for_order(order.id) is None:
            raise EscrowNotFoundError(
                "No held escrow for this order",
                details={"order_number": order.order_number},
            )

        return ResolvedConfirmation(
            order=order,
            method=IDENTITY_METHOD,
            assurance=self.assurance,
        )
