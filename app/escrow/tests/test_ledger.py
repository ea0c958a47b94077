"""
Tests for the escrow ledger book.

This module tests:
- Account creation and lookup
- Atomic, idempotent entry recording
- Balance checks and immutability of entries
"""

import uuid

import pytest

from core.model_mixins import ImmutableRecordError
from escrow.ledger import (
    AccountNotFound,
    AccountType,
    EntryType,
    InsufficientBalance,
    LedgerEntry,
    LedgerService,
    Money,
    RecordEntryParams,
)


@pytest.fixture
def provider(db):
    return LedgerService.get_or_create_account(AccountType.EXTERNAL_PROVIDER, allow_negative=True)


@pytest.fixture
def escrow_account(db):
    return LedgerService.get_or_create_account(AccountType.PLATFORM_ESCROW)


def capture(provider, escrow_account, amount=1000, key="capture-1"):
    return RecordEntryParams(
        debit_account_id=provider.id,
        credit_account_id=escrow_account.id,
        amount=amount,
        entry_type=EntryType.PAYMENT_CAPTURED,
        idempotency_key=key,
    )


class TestRecordEntryParams:
    def test_rejects_non_positive_amount(self):
        with pytest.raises(ValueError):
            RecordEntryParams(uuid.uuid4(), uuid.uuid4(), 0, EntryType.REFUND, "k")

    def test_rejects_same_account(self):
        account_id = uuid.uuid4()
        with pytest.raises(ValueError):
            RecordEntryParams(account_id, account_id, 10, EntryType.REFUND, "k")


class TestMoney:
    def test_add_and_subtract(self):
        assert Money(100) + Money(50) == Money(150)
        assert Money(100) - Money(50) == Money(50)

    def test_currency_mismatch(self):
        with pytest.raises(ValueError):
            Money(100, "xof") + Money(100, "eur")


@pytest.mark.django_db
class TestAccounts:
    def test_get_or_create_is_stable(self):
        store_id = uuid.uuid4()

        first = LedgerService.get_or_create_account(AccountType.STORE_BALANCE, owner_id=store_id)
        second = LedgerService.get_or_create_account(AccountType.STORE_BALANCE, owner_id=store_id)

        assert first.id == second.id

    def test_get_account_missing(self):
        with pytest.raises(AccountNotFound):
            LedgerService.get_account(uuid.uuid4())


@pytest.mark.django_db
class TestRecordEntries:
    def test_moves_money(self, provider, escrow_account):
        LedgerService.record_entry(capture(provider, escrow_account))

        assert LedgerService.get_balance(escrow_account.id) == Money(1000)
        assert LedgerService.get_balance(provider.id) == Money(-1000)

    def test_same_key_is_recorded_once(self, provider, escrow_account):
        first = LedgerService.record_entry(capture(provider, escrow_account))
        second = LedgerService.record_entry(capture(provider, escrow_account))

        assert first.id == second.id
        assert LedgerEntry.objects.count() == 1

    def test_insufficient_balance_rolls_back_batch(self, provider, escrow_account):
        revenue = LedgerService.get_or_create_account(AccountType.PLATFORM_REVENUE)
        overdraw = RecordEntryParams(
            debit_account_id=escrow_account.id,
            credit_account_id=revenue.id,
            amount=5000,
            entry_type=EntryType.COMMISSION_COLLECTED,
            idempotency_key="overdraw",
        )

        with pytest.raises(InsufficientBalance):
            LedgerService.record_entries([capture(provider, escrow_account), overdraw])

        assert LedgerEntry.objects.count() == 0

    def test_entries_by_reference(self, provider, escrow_account):
        reference = uuid.uuid4()
        params = capture(provider, escrow_account)
        params.reference_type = "escrow_record"
        params.reference_id = reference
        LedgerService.record_entry(params)

        assert len(LedgerService.get_entries_by_reference("escrow_record", reference)) == 1
        assert len(LedgerService.get_entries_for_account(escrow_account.id)) == 1

    def test_entries_are_immutable(self, provider, escrow_account):
        entry = LedgerService.record_entry(capture(provider, escrow_account))
        entry.amount = 1

        with pytest.raises(ImmutableRecordError):
            entry.save()
