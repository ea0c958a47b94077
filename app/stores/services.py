"""
Store lookups used by the escrow engine.

The escrow app never queries store tables directly; it goes through
StoreService so the collaborator boundary stays narrow:

- is_store_member: may this user act for this store?
- get_store_order: an order, only if it belongs to the given store
- get_order_by_number / find_order_for_receipt: buyer-facing lookups
- mark_delivered: move an order to DELIVERED after confirmation
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.utils import timezone

from core.helpers import validate_uuid
from core.services import BaseService
from stores.models import Order, OrderStatus, Store, StoreMembership

if TYPE_CHECKING:
    from uuid import UUID

logger = logging.getLogger(__name__)


class StoreService(BaseService):
    """Membership checks and order lookups."""

    @staticmethod
    def is_store_member(store_id: UUID | str, user) -> bool:
        """
        Return True if the user owns the store or holds a membership in it.

        Anonymous or inactive users are never members.
        """
        if user is None or not getattr(user, "is_authenticated", False):
            return False
        if not user.is_active or not validate_uuid(store_id):
            return False

        if Store.objects.filter(id=store_id, owner=user).exists():
            return True
        return StoreMembership.objects.filter(store_id=store_id, user=user).exists()

    @staticmethod
    def get_store_order(store_id: UUID | str, order_id: UUID | str) -> Order | None:
        """Return the order if it exists and belongs to the store."""
        if not validate_uuid(store_id) or not validate_uuid(order_id):
            return None
        return Order.objects.filter(id=order_id, store_id=store_id).first()

    @staticmethod
    def get_order_by_number(order_number: str) -> Order | None:
        return Order.objects.filter(order_number=order_number).first()

    @staticmethod
    def find_order_for_receipt(
        order_id: UUID | str | None = None,
        order_number: str | None = None,
        phone: str | None = None,
    ) -> Order | None:
        """
        Find an order for the legacy receipt confirmation.

        Either the order id alone, or the order number together with the
        shipping phone, identifies the order. Whitespace in the phone is
        ignored on both sides of the comparison.
        """
        if order_id:
            if not validate_uuid(order_id):
                return None
            return Order.objects.filter(id=order_id).first()

        if not order_number or not phone:
            return None

        order = Order.objects.filter(order_number=order_number).first()
        if order is None:
            return None

        wanted = "".join(phone.split())
        stored = "".join(order.shipping_phone.split())
        if not stored or stored != wanted:
            return None
        return order

    @staticmethod
    def mark_delivered(order: Order) -> Order:
        """
        Move an order to DELIVERED.

        Re-marking an already delivered order keeps the first delivery time.
        """
        if order.status == OrderStatus.DELIVERED:
            return order

        now = timezone.now()
        Order.objects.filter(id=order.id).update(
            status=OrderStatus.DELIVERED,
            delivered_at=now,
            updated_at=now,
        )
        order.status = OrderStatus.DELIVERED
        order.delivered_at = now

        logger.info(
            "Order marked delivered",
            extra={"order_id": str(order.id), "order_number": order.order_number},
        )
        return order
