"""
Ledger service layer.

All ledger writes go through LedgerService so that validation, transaction
handling and idempotency are applied uniformly.

Usage:
    from escrow.ledger.services import LedgerService
    from escrow.ledger.models import AccountType

    escrow = LedgerService.get_or_create_account(AccountType.PLATFORM_ESCROW, currency="xof")
    balance = LedgerService.get_balance(escrow.id)
"""

from __future__ import annotations

import uuid

from django.db import IntegrityError, transaction
from django.db.models import Q

from .exceptions import AccountNotFound, InactiveAccount, InsufficientBalance
from .models import AccountType, LedgerAccount, LedgerEntry
from .types import Money, RecordEntryParams


class LedgerService:
    """
    Service class for ledger operations.

    Key features:
    - Atomic transactions for multi-entry operations
    - Idempotency via unique keys (safe to retry)
    - Balance validation before debits
    - Account locking in a consistent order

    All methods are static - no instance state is maintained.
    """

    @staticmethod
    def get_or_create_account(
        account_type: AccountType | str,
        owner_id: uuid.UUID | None = None,
        currency: str = "xof",
        allow_negative: bool = False,
    ) -> LedgerAccount:
        """
        Get existing account or create new one.

        Looks up an account by (type, owner_id, currency).
        """
        try:
            account, _ = LedgerAccount.objects.get_or_create(
                type=account_type,
                owner_id=owner_id,
                currency=currency,
                defaults={"allow_negative": allow_negative},
            )
        except IntegrityError:
            # Lost a creation race on the unique constraint
            account = LedgerAccount.objects.get(
                type=account_type,
                owner_id=owner_id,
                currency=currency,
            )
        return account

    @staticmethod
    def get_account(account_id: uuid.UUID) -> LedgerAccount:
        """
        Get account by ID.

        Raises:
            AccountNotFound: If account doesn't exist
        """
        try:
            return LedgerAccount.objects.get(id=account_id)
        except LedgerAccount.DoesNotExist:
            raise AccountNotFound(
                f"Account {account_id} not found",
                details={"account_id": str(account_id)},
            )

    @staticmethod
    def _validate_account_for_debit(account: LedgerAccount, amount: int) -> None:
        if not account.is_active:
            raise InactiveAccount(
                f"Account {account.id} is inactive",
                details={"account_id": str(account.id)},
            )

        if not account.allow_negative:
            current_balance = account.get_balance()
            if current_balance < amount:
                raise InsufficientBalance(
                    account_id=account.id,
                    required=amount,
                    available=current_balance,
                )

    @staticmethod
    def _validate_account_for_credit(account: LedgerAccount) -> None:
        if not account.is_active:
            raise InactiveAccount(
                f"Account {account.id} is inactive",
                details={"account_id": str(account.id)},
            )

    @staticmethod
    def record_entries(entries: list[RecordEntryParams]) -> list[LedgerEntry]:
        """
        Record multiple ledger entries atomically.

        All entries succeed or all fail. Entries whose idempotency_key
        already exists are returned unchanged instead of being recorded
        again. Entries are processed in order, so earlier entries in the
        batch count towards balance checks of later ones.

        Raises:
            AccountNotFound: If any account doesn't exist
            InactiveAccount: If any account is inactive
            InsufficientBalance: If any debit account lacks funds
        """
        if not entries:
            return []

        results: list[LedgerEntry] = []

        with transaction.atomic():
            account_ids: set[uuid.UUID] = set()
            for params in entries:
                account_ids.add(params.debit_account_id)
                account_ids.add(params.credit_account_id)

            # Lock accounts in id order so concurrent batches cannot deadlock
            accounts = {
                acc.id: acc
                for acc in LedgerAccount.objects.filter(id__in=account_ids)
                .select_for_update()
                .order_by("id")
            }

            for account_id in account_ids:
                if account_id not in accounts:
                    raise AccountNotFound(
                        f"Account {account_id} not found",
                        details={"account_id": str(account_id)},
                    )

            for params in entries:
                debit_account = accounts[params.debit_account_id]
                credit_account = accounts[params.credit_account_id]

                # Idempotency check must precede the balance check
                existing = LedgerEntry.objects.filter(
                    idempotency_key=params.idempotency_key
                ).first()
                if existing is not None:
                    results.append(existing)
                    continue

                LedgerService._validate_account_for_debit(debit_account, params.amount)
                LedgerService._validate_account_for_credit(credit_account)

                try:
                    with transaction.atomic():
                        entry = LedgerEntry.objects.create(
                            idempotency_key=params.idempotency_key,
                            debit_account=debit_account,
                            credit_account=credit_account,
                            amount=params.amount,
                            currency=debit_account.currency,
                            entry_type=params.entry_type,
                            reference_id=params.reference_id,
                            reference_type=params.reference_type,
                            description=params.description,
                            metadata=params.metadata or {},
                            created_by=params.created_by,
                        )
                except IntegrityError:
                    # Another process recorded the same key between check and insert
                    entry = LedgerEntry.objects.get(
                        idempotency_key=params.idempotency_key
                    )

                results.append(entry)

        return results

    @staticmethod
    def record_entry(params: RecordEntryParams) -> LedgerEntry:
        """Record a single ledger entry. Idempotent on idempotency_key."""
        return LedgerService.record_entries([params])[0]

    @staticmethod
    def get_balance(account_id: uuid.UUID) -> Money:
        """
        Get current balance for an account.

        Raises:
            AccountNotFound: If account doesn't exist
        """
        account = LedgerService.get_account(account_id)
        return Money(amount=account.get_balance(), currency=account.currency)

    @staticmethod
    def get_entries_by_reference(
        reference_type: str,
        reference_id: uuid.UUID,
    ) -> list[LedgerEntry]:
        """All entries for a business entity, oldest first."""
        return list(
            LedgerEntry.objects.filter(
                reference_type=reference_type,
                reference_id=reference_id,
            ).order_by("created_at")
        )

    @staticmethod
    def get_entries_for_account(
        account_id: uuid.UUID,
        limit: int = 100,
        offset: int = 0,
    ) -> list[LedgerEntry]:
        """Entries where the account is debited or credited, newest first."""
        return list(
            LedgerEntry.objects.filter(
                Q(debit_account_id=account_id) | Q(credit_account_id=account_id)
            ).order_by("-created_at")[offset : offset + limit]
        )
