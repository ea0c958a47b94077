"""
Data types for ledger operations.

Types:
    Money: A monetary amount in the smallest currency unit with currency
    RecordEntryParams: Parameters for recording a ledger entry
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any


@dataclass
class Money:
    """
    Represents a monetary amount.

    Amounts are integers in the smallest currency unit to avoid
    floating-point precision issues.

    Example:
        Money(amount=25000, currency="xof")
    """

    amount: int
    currency: str = "xof"

    def __str__(self) -> str:
        return f"{self.amount} {self.currency.upper()}"

    def __add__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        if self.currency != other.currency:
            raise ValueError(
                f"Cannot add Money with different currencies: "
                f"{self.currency} and {other.currency}"
            )
        return Money(amount=self.amount + other.amount, currency=self.currency)

    def __sub__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        if self.currency != other.currency:
            raise ValueError(
                f"Cannot subtract Money with different currencies: "
                f"{self.currency} and {other.currency}"
            )
        return Money(amount=self.amount - other.amount, currency=self.currency)


@dataclass
class RecordEntryParams:
    """
    Parameters for recording a ledger entry.

    Required Attributes:
        debit_account_id: UUID of the account being debited (money out)
        credit_account_id: UUID of the account being credited (money in)
        amount: Amount in smallest currency unit (must be positive)
        entry_type: Type of entry (see EntryType)
        idempotency_key: Unique key to prevent duplicate entries

    Example:
        params = RecordEntryParams(
            debit_account_id=escrow.id,
            credit_account_id=store_balance.id,
            amount=23750,
            entry_type=EntryType.ESCROW_RELEASED,
            idempotency_key=f"escrow:{record.id}:release:store",
            reference_type="escrow_record",
            reference_id=record.id,
        )
    """

    # Required fields
    debit_account_id: uuid.UUID
    credit_account_id: uuid.UUID
    amount: int
    entry_type: str
    idempotency_key: str

    # Optional fields
    reference_id: uuid.UUID | None = None
    reference_type: str | None = None
    description: str | None = None
    metadata: dict[str, Any] | None = field(default_factory=dict)
    created_by: str | None = None

    def __post_init__(self) -> None:
        if self.amount <= 0:
            raise ValueError("amount must be positive")
        if not self.idempotency_key:
            raise ValueError("idempotency_key is required")
        if self.debit_account_id == self.credit_account_id:
            raise ValueError("debit_account_id and credit_account_id must be different")
