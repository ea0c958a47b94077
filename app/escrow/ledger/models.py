"""
Ledger models for double-entry bookkeeping of escrowed funds.

- LedgerAccount: Holds monetary value (store balances, escrow, revenue)
- LedgerEntry: Records a movement between two accounts

Every entry debits one account and credits another, so the books always
balance. Entries are append-only.

Flows:
    capture:  external_provider -> platform_escrow     (amount)
    release:  platform_escrow   -> store_balance        (amount - commission)
              platform_escrow   -> platform_revenue     (commission)
    refund:   platform_escrow   -> external_provider    (amount)
"""

from __future__ import annotations

from django.db import models
from django.db.models import Case, Q, Sum, Value, When
from django.db.models.functions import Coalesce

from core.managers import AppendOnlyManager
from core.model_mixins import AppendOnlyMixin, UUIDPrimaryKeyMixin


class AccountType(models.TextChoices):
    """
    Types of ledger accounts.

    Values:
        STORE_BALANCE: A store's earned balance, owned by the store id
        PLATFORM_ESCROW: Buyer funds held until delivery
        PLATFORM_REVENUE: Commission earned by the platform
        EXTERNAL_PROVIDER: Money in/out of the payment provider (outside world)
    """

    STORE_BALANCE = "store_balance", "Store Balance"
    PLATFORM_ESCROW = "platform_escrow", "Platform Escrow"
    PLATFORM_REVENUE = "platform_revenue", "Platform Revenue"
    EXTERNAL_PROVIDER = "external_provider", "External Provider"


class EntryType(models.TextChoices):
    """Categories of ledger movements."""

    PAYMENT_CAPTURED = "payment_captured", "Payment Captured"
    ESCROW_RELEASED = "escrow_released", "Escrow Released"
    COMMISSION_COLLECTED = "commission_collected", "Commission Collected"
    REFUND = "refund", "Refund"


class LedgerAccount(UUIDPrimaryKeyMixin, models.Model):
    """
    A ledger account that holds monetary value.

    The balance is never stored; it is the sum of credits minus debits.

    Fields:
        type: Account category
        owner_id: Optional UUID of the owning entity (the store for balances)
        currency: ISO 4217 currency code
        allow_negative: Whether balance can go negative (external accounts)
        is_active: Inactive accounts reject new entries

    Constraints:
        - Unique combination of (type, owner_id, currency)
    """

    type = models.CharField(
        max_length=50,
        choices=AccountType.choices,
        help_text="Category of this account",
    )
    owner_id = models.UUIDField(
        null=True,
        blank=True,
        db_index=True,
        help_text="UUID of the entity that owns this account (e.g., store ID)",
    )
    currency = models.CharField(
        max_length=3,
        default="xof",
        help_text="ISO 4217 currency code",
    )
    allow_negative = models.BooleanField(
        default=False,
        help_text="Whether this account can have a negative balance",
    )
    is_active = models.BooleanField(
        default=True,
        db_index=True,
        help_text="Whether this account is active",
    )
    created_at = models.DateTimeField(
        auto_now_add=True,
        db_index=True,
        help_text="Timestamp when this account was created",
    )

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["type", "owner_id", "currency"],
                name="escrow_unique_account_per_owner",
            )
        ]
        indexes = [
            models.Index(fields=["type", "currency"], name="escrow_acct_type_cur_idx"),
        ]

    def __str__(self) -> str:
        if self.owner_id:
            return f"{self.get_type_display()} ({self.owner_id})"
        return self.get_type_display()

    def get_balance(self) -> int:
        """
        Compute current balance from entries.

        Returns:
            Balance in the smallest currency unit
        """
        result = LedgerEntry.objects.filter(
            Q(credit_account=self) | Q(debit_account=self)
        ).aggregate(
            credits=Coalesce(
                Sum(
                    Case(
                        When(credit_account=self, then="amount"),
                        default=Value(0),
                        output_field=models.BigIntegerField(),
                    )
                ),
                Value(0),
                output_field=models.BigIntegerField(),
            ),
            debits=Coalesce(
                Sum(
                    Case(
                        When(debit_account=self, then="amount"),
                        default=Value(0),
                        output_field=models.BigIntegerField(),
                    )
                ),
                Value(0),
                output_field=models.BigIntegerField(),
            ),
        )
        return result["credits"] - result["debits"]


class LedgerEntry(UUIDPrimaryKeyMixin, AppendOnlyMixin, models.Model):
    """
    A movement of money between two accounts.

    Entries are immutable once created. The unique idempotency_key makes a
    replayed release or refund a no-op instead of a second credit.

    Constraints:
        - amount must be positive
        - idempotency_key must be unique
    """

    created_at = models.DateTimeField(
        auto_now_add=True,
        db_index=True,
        help_text="Timestamp when this entry was recorded",
    )

    debit_account = models.ForeignKey(
        LedgerAccount,
        on_delete=models.PROTECT,
        related_name="debit_entries",
        help_text="Account money is taken from",
    )
    credit_account = models.ForeignKey(
        LedgerAccount,
        on_delete=models.PROTECT,
        related_name="credit_entries",
        help_text="Account money is added to",
    )
    amount = models.PositiveBigIntegerField(
        help_text="Amount in smallest currency unit (always positive)",
    )
    currency = models.CharField(
        max_length=3,
        default="xof",
        help_text="ISO 4217 currency code",
    )

    entry_type = models.CharField(
        max_length=50,
        choices=EntryType.choices,
        help_text="Category of this entry",
    )
    reference_id = models.UUIDField(
        null=True,
        blank=True,
        help_text="UUID of related business entity (e.g., escrow record ID)",
    )
    reference_type = models.CharField(
        max_length=50,
        null=True,
        blank=True,
        help_text="Type of related entity (e.g., 'escrow_record')",
    )
    description = models.TextField(
        null=True,
        blank=True,
        help_text="Human-readable description of this entry",
    )
    metadata = models.JSONField(
        default=dict,
        blank=True,
        help_text="Arbitrary JSON data for extensibility",
    )
    created_by = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        help_text="Identifier of service/user that created this entry",
    )
    idempotency_key = models.CharField(
        max_length=255,
        unique=True,
        help_text="Unique key to prevent duplicate entries",
    )

    objects = AppendOnlyManager()

    class Meta:
        ordering = ["-created_at"]
        verbose_name_plural = "ledger entries"
        indexes = [
            models.Index(fields=["reference_type", "reference_id"], name="escrow_entry_ref_idx"),
            models.Index(fields=["entry_type"], name="escrow_entry_type_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(amount__gt=0),
                name="escrow_ledger_entry_amount_positive",
            )
        ]

    def __str__(self) -> str:
        return f"{self.get_entry_type_display()}: {self.amount} {self.currency.upper()}"
