"""
DisputeGate: is this order currently disputed?

An order is disputed while any of its return requests is unresolved, that
is, in any status other than rejected or refunded. A disputed order's
escrow must stay held. A return opened after the release does not reverse
it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.db.models import Min

from stores.models import RESOLVED_RETURN_STATUSES, ReturnRequest

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID


class DisputeGate:
    """Read-only dispute check shared by every release path."""

    @staticmethod
    def is_blocked(order_id: UUID | str) -> bool:
        return (
            ReturnRequest.objects.filter(order_id=order_id)
            .exclude(status__in=RESOLVED_RETURN_STATUSES)
            .exists()
        )

    @staticmethod
    def disputed_since(order_id: UUID | str) -> datetime | None:
        """When the oldest unresolved return of the order was opened, or None."""
        return (
            ReturnRequest.objects.filter(order_id=order_id)
            .exclude(status__in=RESOLVED_RETURN_STATUSES)
            .aggregate(opened_at=Min("created_at"))["opened_at"]
        )
