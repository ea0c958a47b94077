"""
EscrowRecord model: buyer funds held on behalf of a store.

One EscrowRecord exists per order whose payment has been captured. It is
released to the store when delivery is confirmed or when its release_at
deadline passes, unless the order is under dispute.

Usage:
    from escrow.models import EscrowRecord

    record = EscrowRecord.objects.get(order=order)
    record.release()   # held -> released (django-fsm)
    record.save()      # UPDATE ... WHERE status = 'held'

Concurrency:
    ConcurrentTransitionMixin turns every save into a conditional UPDATE on
    the status loaded with the instance. When two writers race on the same
    held record, exactly one UPDATE matches; the other save raises
    django_fsm.ConcurrentTransition and must be treated as "not released".
"""

from __future__ import annotations

from decimal import Decimal

from django.db import models
from django.utils import timezone

from django_fsm import ConcurrentTransitionMixin, FSMField, transition

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel
from escrow.state_machines import EscrowStatus


class EscrowRecord(ConcurrentTransitionMixin, UUIDPrimaryKeyMixin, BaseModel):
    """
    Funds held for one order until delivery is confirmed.

    State Flow:
        HELD -> RELEASED
        HELD -> REFUNDED

    Fields:
        order: The order this escrow secures (one record per order)
        store: Store credited on release
        amount: Held amount in the smallest currency unit
        commission_rate / commission_amount: Platform share withheld on release
        status: FSM-managed state (protected; change it via transitions)
        release_at: Auto-release deadline
    """

    # ==========================================================================
    # Relationships
    # ==========================================================================

    order = models.OneToOneField(
        "stores.Order",
        on_delete=models.PROTECT,
        related_name="escrow",
        help_text="Order whose payment is held",
    )

    store = models.ForeignKey(
        "stores.Store",
        on_delete=models.PROTECT,
        related_name="escrow_records",
        help_text="Store credited when the escrow is released",
    )

    # ==========================================================================
    # Amount & Commission
    # ==========================================================================

    amount = models.PositiveBigIntegerField(
        help_text="Held amount in smallest currency unit",
    )

    currency = models.CharField(
        max_length=3,
        default="xof",
        help_text="ISO 4217 currency code (lowercase)",
    )

    commission_rate = models.DecimalField(
        max_digits=5,
        decimal_places=4,
        default=Decimal("0"),
        help_text="Platform commission rate between 0 and 1",
    )

    commission_amount = models.PositiveBigIntegerField(
        default=0,
        help_text="Platform commission in smallest currency unit",
    )

    # ==========================================================================
    # State
    # ==========================================================================

    status = FSMField(
        default=EscrowStatus.HELD,
        choices=EscrowStatus.choices,
        db_index=True,
        protected=True,  # Prevent direct assignment outside transitions
        help_text="Current escrow state (managed by FSM)",
    )

    # ==========================================================================
    # State Timestamps
    # ==========================================================================

    held_at = models.DateTimeField(
        default=timezone.now,
        help_text="When the funds were placed in escrow",
    )

    release_at = models.DateTimeField(
        db_index=True,
        help_text="Deadline after which the sweep releases the funds",
    )

    released_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the funds were released to the store",
    )

    refunded_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the funds were refunded to the buyer",
    )

    # ==========================================================================
    # Metadata
    # ==========================================================================

    metadata = models.JSONField(
        default=dict,
        blank=True,
        help_text="Release trigger and other context",
    )

    # ==========================================================================
    # Meta & Methods
    # ==========================================================================

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Escrow Record"
        verbose_name_plural = "Escrow Records"
        indexes = [
            models.Index(fields=["status", "release_at"], name="escrow_due_idx"),
            models.Index(fields=["store", "status"], name="escrow_store_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="escrow_record_amount_positive",
            ),
            models.CheckConstraint(
                condition=models.Q(commission_amount__lte=models.F("amount")),
                name="escrow_record_commission_within_amount",
            ),
        ]

    def __str__(self) -> str:
        return f"EscrowRecord({self.id}, {self.status}, {self.amount} {self.currency.upper()})"

    @property
    def net_amount(self) -> int:
        """Amount credited to the store after commission."""
        return self.amount - self.commission_amount

    @property
    def is_due(self) -> bool:
        return self.status == EscrowStatus.HELD and self.release_at <= timezone.now()

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=status,
        source=EscrowStatus.HELD,
        target=EscrowStatus.RELEASED,
    )
    def release(self, trigger: str | None = None):
        """
        Release funds to the store.

        Transition: HELD -> RELEASED
        """
        self.released_at = timezone.now()
        if trigger:
            self.metadata = {**self.metadata, "release_trigger": trigger}

    @transition(
        field=status,
        source=EscrowStatus.HELD,
        target=EscrowStatus.REFUNDED,
    )
    def refund(self, reason: str | None = None):
        """
        Return funds to the buyer.

        Transition: HELD -> REFUNDED
        """
        self.refunded_at = timezone.now()
        if reason:
            self.metadata = {**self.metadata, "refund_reason": reason}
