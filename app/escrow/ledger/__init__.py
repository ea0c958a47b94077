"""
Double-entry ledger for escrowed funds.

Every captured payment, release, commission and refund is recorded as a
balanced entry between two accounts. Entries are keyed by idempotency key,
so an escrow can never credit a store twice.

Usage:
    from escrow.ledger import LedgerService, AccountType

    revenue = LedgerService.get_or_create_account(AccountType.PLATFORM_REVENUE)
    LedgerService.get_balance(revenue.id)
"""

from .exceptions import (
    AccountNotFound,
    InactiveAccount,
    InsufficientBalance,
    LedgerError,
)
from .models import AccountType, EntryType, LedgerAccount, LedgerEntry
from .services import LedgerService
from .types import Money, RecordEntryParams

__all__ = [
    # Models
    "LedgerAccount",
    "LedgerEntry",
    "AccountType",
    "EntryType",
    # Service
    "LedgerService",
    # Types
    "Money",
    "RecordEntryParams",
    # Exceptions
    "LedgerError",
    "AccountNotFound",
    "InsufficientBalance",
    "InactiveAccount",
]
