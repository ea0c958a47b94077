"""
DeliveryConfirmation model: a single-use delivery credential.

A store member issues a credential for an order; the buyer presents it
(scanned token or typed OTP) to confirm the delivery. Only SHA-256 hashes of
the secrets are stored.

Consumption:
    A confirmation is consumed by one conditional UPDATE:

        UPDATE ... SET used_at = now
        WHERE id = ? AND used_at IS NULL AND expires_at > now

    Exactly one affected row means this caller consumed it. Zero rows means
    it was used, expired or consumed concurrently by someone else.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils import timezone

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel
from escrow.state_machines import ConfirmationMethod


class DeliveryConfirmationQuerySet(models.QuerySet):
    def active(self, now=None):
        """Confirmations that are unused and not yet expired."""
        now = now or timezone.now()
        return self.filter(used_at__isnull=True, expires_at__gt=now)

    def for_order(self, order_id):
        return self.filter(order_id=order_id)


class DeliveryConfirmation(UUIDPrimaryKeyMixin, BaseModel):
    """
    Single-use credential confirming delivery of one order.

    Fields:
        token_hash: SHA-256 hex of the long token (QR path)
        otp_hash: SHA-256 hex of the 6-digit code (OTP path)
        method: How the credential was (or will be) presented
        expires_at: End of the validity window
        used_at: Set exactly once, when consumed
    """

    order = models.ForeignKey(
        "stores.Order",
        on_delete=models.CASCADE,
        related_name="delivery_confirmations",
        help_text="Order this credential confirms",
    )
    store = models.ForeignKey(
        "stores.Store",
        on_delete=models.CASCADE,
        related_name="delivery_confirmations",
        help_text="Store that issued the credential",
    )
    issued_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="issued_delivery_confirmations",
        help_text="Store member who issued the credential",
    )

    token_hash = models.CharField(
        max_length=64,
        db_index=True,
        help_text="SHA-256 hex digest of the token",
    )
    otp_hash = models.CharField(
        max_length=64,
        db_index=True,
        help_text="SHA-256 hex digest of the one-time code",
    )
    method = models.CharField(
        max_length=10,
        choices=ConfirmationMethod.choices,
        default=ConfirmationMethod.QR,
        help_text="Presentation method",
    )

    expires_at = models.DateTimeField(
        help_text="When the credential stops being accepted",
    )
    used_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the credential was consumed (null until then)",
    )
    confirmed_ip = models.GenericIPAddressField(
        null=True,
        blank=True,
        help_text="Client IP of the consuming request",
    )

    objects = DeliveryConfirmationQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Delivery Confirmation"
        verbose_name_plural = "Delivery Confirmations"
        indexes = [
            models.Index(fields=["order", "used_at"], name="delivery_conf_order_used_idx"),
        ]

    def __str__(self) -> str:
        state = "used" if self.used_at else "unused"
        return f"DeliveryConfirmation({self.id}, order={self.order_id}, {state})"

    @property
    def is_active(self) -> bool:
        return self.used_at is None and self.expires_at > timezone.now()
