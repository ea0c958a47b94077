"""
EscrowLedgerService: the held -> released / refunded transitions.

Every state change of an EscrowRecord goes through this service. A
transition is a conditional UPDATE (django-fsm ConcurrentTransitionMixin),
and the matching ledger entries and audit entry are written in the same
transaction, so either all three happen or none does.

Idempotency:
    release() and refund() return True only for the call that performed
    the transition. Calls on an already settled record, and calls that lose
    a race to a concurrent writer, return False without side effects.

Ledger Flow:
    capture:    external_provider -> platform_escrow    (amount)
    release:    platform_escrow   -> store_balance      (amount - commission)
                platform_escrow   -> platform_revenue   (commission)
    refund:     platform_escrow   -> external_provider  (amount)

Usage:
    from escrow.services import EscrowLedgerService

    record = EscrowLedgerService.open_for_order(order)
    released = EscrowLedgerService.release(record.id, trigger=ReleaseTrigger.MANUAL)
"""

from __future__ import annotations

import logging
from datetime import timedelta
from decimal import ROUND_FLOOR, Decimal, InvalidOperation
from typing import TYPE_CHECKING

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError
from django.utils import timezone

from django_fsm import ConcurrentTransition

from core.services import BaseService
from escrow.audit.services import AuditRecorder
from escrow.exceptions import (
    ConfirmationValidationError,
    DisputeBlockedError,
    EscrowNotFoundError,
)
from escrow.ledger import AccountType, EntryType, LedgerService, RecordEntryParams
from escrow.models import EscrowRecord
from escrow.services.dispute_gate import DisputeGate
from escrow.state_machines import AuditAction, EscrowStatus, ReleaseTrigger

if TYPE_CHECKING:
    from uuid import UUID

    from stores.models import Order

logger = logging.getLogger(__name__)

REFERENCE_TYPE = "escrow_record"
COMMISSION_QUANTUM = Decimal("0.0001")


class EscrowLedgerService(BaseService):
    """Open, release and refund escrow records."""

    # ==========================================================================
    # Lookups
    # ==========================================================================

    @staticmethod
    def _get_record(escrow_id: UUID | str) -> EscrowRecord:
        try:
            return EscrowRecord.objects.get(id=escrow_id)
        except (EscrowRecord.DoesNotExist, DjangoValidationError, ValueError):
            raise EscrowNotFoundError(
                "Escrow record not found",
                details={"escrow_id": str(escrow_id)},
            )

    @staticmethod
    def get_for_order(order_id: UUID | str) -> EscrowRecord | None:
        """The order's escrow record in any state, or None."""
        return EscrowRecord.objects.filter(order_id=order_id).first()

    @staticmethod
    def get_held_for_order(order_id: UUID | str) -> EscrowRecord | None:
        return EscrowRecord.objects.filter(
            order_id=order_id, status=EscrowStatus.HELD
        ).first()

    # ==========================================================================
    # Opening
    # ==========================================================================

    @classmethod
    def open_for_order(
        cls,
        order: Order,
        commission_rate: Decimal | str | None = None,
        hold_days: int | None = None,
        actor=None,
    ) -> EscrowRecord:
        """
        Place an order's captured payment in escrow.

        Idempotent per order: an existing record is returned unchanged.

        Args:
            order: Order whose total is held
            commission_rate: Platform share between 0 and 1
                (defaults to ESCROW_DEFAULT_COMMISSION_RATE)
            hold_days: Days until auto-release
                (defaults to ESCROW_AUTO_RELEASE_DAYS)
            actor: User performing the operation, for the audit trail

        Raises:
            ConfirmationValidationError: If the rate or amount is out of range
        """
        existing = cls.get_for_order(order.id)
        if existing is not None:
            return existing

        rate = cls._parse_commission_rate(commission_rate)
        if order.total <= 0:
            raise ConfirmationValidationError(
                "Order total must be positive",
                details={"order_id": str(order.id)},
            )

        commission = int((Decimal(order.total) * rate).to_integral_value(rounding=ROUND_FLOOR))
        days = settings.ESCROW_AUTO_RELEASE_DAYS if hold_days is None else hold_days
        now = timezone.now()

        try:
            with cls.atomic():
                record = EscrowRecord.objects.create(
                    order=order,
                    store_id=order.store_id,
                    amount=order.total,
                    currency=order.currency,
                    commission_rate=rate,
                    commission_amount=commission,
                    held_at=now,
                    release_at=now + timedelta(days=days),
                )
                LedgerService.record_entries([cls._capture_entry(record)])
                AuditRecorder.record(
                    AuditAction.ESCROW_OPENED,
                    store_id=record.store_id,
                    target_type=REFERENCE_TYPE,
                    target_id=record.id,
                    user=actor,
                    metadata={
                        "order_id": str(order.id),
                        "amount": record.amount,
                        "commission_amount": record.commission_amount,
                        "release_at": record.release_at.isoformat(),
                    },
                )
        except IntegrityError:
            # Concurrent open for the same order won the one-to-one constraint
            return EscrowRecord.objects.get(order_id=order.id)

        logger.info(
            "Escrow opened",
            extra={
                "escrow_id": str(record.id),
                "order_id": str(order.id),
                "amount": record.amount,
                "release_at": record.release_at.isoformat(),
            },
        )
        return record

    @staticmethod
    def _parse_commission_rate(value) -> Decimal:
        if value is None:
            value = settings.ESCROW_DEFAULT_COMMISSION_RATE
        try:
            rate = Decimal(str(value)).quantize(COMMISSION_QUANTUM, rounding=ROUND_FLOOR)
        except InvalidOperation:
            raise ConfirmationValidationError(
                "Commission rate must be a decimal number",
                details={"commission_rate": str(value)},
            )
        if rate < 0 or rate > 1:
            raise ConfirmationValidationError(
                "Commission rate must be between 0 and 1",
                details={"commission_rate": str(value)},
            )
        return rate

    # ==========================================================================
    # Transitions
    # ==========================================================================

    @classmethod
    def release(
        cls,
        escrow_id: UUID | str,
        trigger: str = ReleaseTrigger.MANUAL,
        actor=None,
    ) -> bool:
        """
        Release held funds to the store.

        Does not consult the dispute gate; callers that release on behalf
        of a buyer or the sweep use release_unless_disputed().

        Returns:
            True if this call moved the record from held to released

        Raises:
            EscrowNotFoundError: If no record has this id
        """
        record = cls._get_record(escrow_id)
        return cls._release_record(record, trigger, actor)

    @classmethod
    def release_unless_disputed(
        cls,
        escrow_id: UUID | str,
        trigger: str,
        actor=None,
    ) -> bool:
        """
        Release held funds unless the order has an open return request.

        A blocked release is written to the audit trail as skipped, once per
        dispute and trigger. Repeated skips (every sweep while the dispute
        stays open) are only logged.

        Raises:
            EscrowNotFoundError: If no record has this id
            DisputeBlockedError: If the order is under dispute
        """
        record = cls._get_record(escrow_id)
        if record.status != EscrowStatus.HELD:
            return False

        disputed_since = DisputeGate.disputed_since(record.order_id)
        if disputed_since is not None:
            already_audited = AuditRecorder.has_entry(
                AuditAction.ESCROW_RELEASE_SKIPPED,
                target_type=REFERENCE_TYPE,
                target_id=record.id,
                since=disputed_since,
                trigger=str(trigger),
            )
            if not already_audited:
                AuditRecorder.record(
                    AuditAction.ESCROW_RELEASE_SKIPPED,
                    store_id=record.store_id,
                    target_type=REFERENCE_TYPE,
                    target_id=record.id,
                    user=actor,
                    metadata={"trigger": str(trigger), "reason": "open_return_request"},
                )
            logger.info(
                "Escrow release skipped, order under dispute",
                extra={
                    "escrow_id": str(record.id),
                    "order_id": str(record.order_id),
                    "trigger": str(trigger),
                    "audited": not already_audited,
                },
            )
            raise DisputeBlockedError(
                "Order has an open return request",
                details={"escrow_id": str(record.id), "order_id": str(record.order_id)},
            )

        return cls._release_record(record, trigger, actor)

    @classmethod
    def _release_record(cls, record: EscrowRecord, trigger: str, actor=None) -> bool:
        if record.status != EscrowStatus.HELD:
            logger.info(
                "Escrow already settled, release ignored",
                extra={"escrow_id": str(record.id), "status": record.status},
            )
            return False

        try:
            with cls.atomic():
                record.release(trigger=str(trigger))
                record.save()
                LedgerService.record_entries(cls._release_entries(record, trigger))
                AuditRecorder.record(
                    AuditAction.ESCROW_RELEASED,
                    store_id=record.store_id,
                    target_type=REFERENCE_TYPE,
                    target_id=record.id,
                    user=actor,
                    metadata={
                        "trigger": str(trigger),
                        "amount": record.amount,
                        "commission_amount": record.commission_amount,
                        "net_amount": record.net_amount,
                    },
                )
        except ConcurrentTransition:
            logger.info(
                "Escrow release lost to a concurrent writer",
                extra={"escrow_id": str(record.id), "trigger": str(trigger)},
            )
            return False

        logger.info(
            "Escrow released",
            extra={
                "escrow_id": str(record.id),
                "order_id": str(record.order_id),
                "trigger": str(trigger),
                "net_amount": record.net_amount,
            },
        )
        return True

    @classmethod
    def refund(
        cls,
        escrow_id: UUID | str,
        reason: str | None = None,
        actor=None,
    ) -> bool:
        """
        Return held funds to the buyer.

        Returns:
            True if this call moved the record from held to refunded

        Raises:
            EscrowNotFoundError: If no record has this id
        """
        record = cls._get_record(escrow_id)
        if record.status != EscrowStatus.HELD:
            return False

        try:
            with cls.atomic():
                record.refund(reason=reason)
                record.save()
                LedgerService.record_entries(cls._refund_entries(record))
                AuditRecorder.record(
                    AuditAction.ESCROW_REFUNDED,
                    store_id=record.store_id,
                    target_type=REFERENCE_TYPE,
                    target_id=record.id,
                    user=actor,
                    metadata={"amount": record.amount, "reason": reason or ""},
                )
        except ConcurrentTransition:
            logger.info(
                "Escrow refund lost to a concurrent writer",
                extra={"escrow_id": str(record.id)},
            )
            return False

        logger.info(
            "Escrow refunded",
            extra={"escrow_id": str(record.id), "amount": record.amount},
        )
        return True

    # ==========================================================================
    # Ledger Entries
    # ==========================================================================

    @staticmethod
    def _capture_entry(record: EscrowRecord) -> RecordEntryParams:
        provider = LedgerService.get_or_create_account(
            AccountType.EXTERNAL_PROVIDER,
            currency=record.currency,
            allow_negative=True,
        )
        escrow = LedgerService.get_or_create_account(
            AccountType.PLATFORM_ESCROW,
            currency=record.currency,
        )
        return RecordEntryParams(
            debit_account_id=provider.id,
            credit_account_id=escrow.id,
            amount=record.amount,
            entry_type=EntryType.PAYMENT_CAPTURED,
            idempotency_key=f"escrow:{record.id}:capture",
            reference_type=REFERENCE_TYPE,
            reference_id=record.id,
            description=f"Payment captured for order {record.order_id}",
        )

    @classmethod
    def _release_entries(cls, record: EscrowRecord, trigger: str) -> list[RecordEntryParams]:
        # The capture entry is replayed idempotently so records opened
        # outside open_for_order still have funds in escrow to move.
        entries = [cls._capture_entry(record)]
        escrow = LedgerService.get_or_create_account(
            AccountType.PLATFORM_ESCROW,
            currency=record.currency,
        )

        if record.net_amount > 0:
            store_balance = LedgerService.get_or_create_account(
                AccountType.STORE_BALANCE,
                owner_id=record.store_id,
                currency=record.currency,
            )
            entries.append(
                RecordEntryParams(
                    debit_account_id=escrow.id,
                    credit_account_id=store_balance.id,
                    amount=record.net_amount,
                    entry_type=EntryType.ESCROW_RELEASED,
                    idempotency_key=f"escrow:{record.id}:release:store",
                    reference_type=REFERENCE_TYPE,
                    reference_id=record.id,
                    description=f"Escrow released to store ({trigger})",
                    created_by=str(trigger),
                )
            )

        if record.commission_amount > 0:
            revenue = LedgerService.get_or_create_account(
                AccountType.PLATFORM_REVENUE,
                currency=record.currency,
            )
            entries.append(
                RecordEntryParams(
                    debit_account_id=escrow.id,
                    credit_account_id=revenue.id,
                    amount=record.commission_amount,
                    entry_type=EntryType.COMMISSION_COLLECTED,
                    idempotency_key=f"escrow:{record.id}:release:commission",
                    reference_type=REFERENCE_TYPE,
                    reference_id=record.id,
                    description="Platform commission",
                    created_by=str(trigger),
                )
            )

        return entries

    @classmethod
    def _refund_entries(cls, record: EscrowRecord) -> list[RecordEntryParams]:
        capture = cls._capture_entry(record)
        return [
            capture,
            RecordEntryParams(
                debit_account_id=capture.credit_account_id,
                credit_account_id=capture.debit_account_id,
                amount=record.amount,
                entry_type=EntryType.REFUND,
                idempotency_key=f"escrow:{record.id}:refund",
                reference_type=REFERENCE_TYPE,
                reference_id=record.id,
                description="Escrow refunded to buyer",
            ),
        ]
