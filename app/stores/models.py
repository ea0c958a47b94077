"""
Store, order and return-request models.

Models:
    Store: A vendor storefront owned by a user
    StoreMembership: Staff access to a store, with a role
    Order: A buyer order placed with one store
    ReturnRequest: A buyer's return or dispute on an order

Related files:
    - services.py: Membership checks and order lookups used by escrow
"""

from django.conf import settings
from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class MembershipRole(models.TextChoices):
    """
    Staff roles within a store.

    Every role may issue delivery credentials and read the audit trail.
    """

    OWNER = "owner", "Owner"
    ADMIN = "admin", "Admin"
    MANAGER = "manager", "Manager"
    STAFF = "staff", "Staff"


class OrderStatus(models.TextChoices):
    """
    Fulfilment states of an order.

    Confirming a delivery moves the order to DELIVERED regardless of its
    previous fulfilment state.
    """

    NEW = "new", "New"
    CONFIRMED = "confirmed", "Confirmed"
    PACKED = "packed", "Packed"
    SHIPPED = "shipped", "Shipped"
    DELIVERED = "delivered", "Delivered"
    CANCELLED = "cancelled", "Cancelled"
    REFUNDED = "refunded", "Refunded"
    DISPUTE = "dispute", "Dispute"


class ReturnStatus(models.TextChoices):
    """
    States of a return request.

    REJECTED and REFUNDED are resolved. Any other state means the order is
    under dispute and its escrow must not be released.
    """

    REQUESTED = "requested", "Requested"
    REVIEWING = "reviewing", "Reviewing"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"
    RECEIVED = "received", "Received"
    REFUNDED = "refunded", "Refunded"


RESOLVED_RETURN_STATUSES = (ReturnStatus.REJECTED, ReturnStatus.REFUNDED)


class Store(UUIDPrimaryKeyMixin, BaseModel):
    """A vendor storefront."""

    name = models.CharField(
        max_length=200,
        help_text="Public store name",
    )
    slug = models.SlugField(
        max_length=200,
        unique=True,
        help_text="URL-safe store identifier",
    )
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="owned_stores",
        help_text="User who owns the store",
    )

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class StoreMembership(BaseModel):
    """
    Staff access to a store.

    The store owner does not need a membership row; ownership alone grants
    access.
    """

    store = models.ForeignKey(
        Store,
        on_delete=models.CASCADE,
        related_name="memberships",
        help_text="Store the user works for",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="store_memberships",
        help_text="Staff user",
    )
    role = models.CharField(
        max_length=20,
        choices=MembershipRole.choices,
        default=MembershipRole.STAFF,
        help_text="Role within the store",
    )

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["store", "user"],
                name="stores_membership_unique_user",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.user_id} ({self.role}) in {self.store_id}"


class Order(UUIDPrimaryKeyMixin, BaseModel):
    """
    A buyer order placed with one store.

    Only the fields the escrow engine reads are modelled: the public order
    number, the shipping phone used by the legacy receipt confirmation, and
    the fulfilment status it moves to DELIVERED.
    """

    store = models.ForeignKey(
        Store,
        on_delete=models.PROTECT,
        related_name="orders",
        help_text="Store that fulfils the order",
    )
    buyer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="orders",
        help_text="Buyer account (null for guest checkout)",
    )
    order_number = models.CharField(
        max_length=50,
        unique=True,
        help_text="Human-readable order number shown to the buyer",
    )
    shipping_phone = models.CharField(
        max_length=20,
        blank=True,
        default="",
        help_text="Delivery contact phone, digits with optional leading +",
    )
    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.NEW,
        db_index=True,
        help_text="Fulfilment status",
    )
    total = models.PositiveBigIntegerField(
        help_text="Order total in the smallest currency unit",
    )
    currency = models.CharField(
        max_length=3,
        default="xof",
        help_text="ISO 4217 currency code (lowercase)",
    )
    delivered_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When delivery was confirmed",
    )

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.order_number


class ReturnRequest(UUIDPrimaryKeyMixin, BaseModel):
    """A buyer's return or dispute on an order."""

    order = models.ForeignKey(
        Order,
        on_delete=models.CASCADE,
        related_name="return_requests",
        help_text="Order being returned",
    )
    store = models.ForeignKey(
        Store,
        on_delete=models.CASCADE,
        related_name="return_requests",
        help_text="Store handling the return",
    )
    status = models.CharField(
        max_length=20,
        choices=ReturnStatus.choices,
        default=ReturnStatus.REQUESTED,
        db_index=True,
        help_text="Return request status",
    )
    reason = models.TextField(
        blank=True,
        default="",
        help_text="Buyer's stated reason",
    )

    class Meta:
        indexes = [
            models.Index(fields=["order", "status"], name="stores_return_order_status"),
        ]

    def __str__(self) -> str:
        return f"Return {self.id} for {self.order_id} ({self.status})"

    @property
    def is_open(self) -> bool:
        return self.status not in RESOLVED_RETURN_STATUSES
