"""
Tests for ConfirmationVerifier with both strategies.

This module tests:
- QR and OTP consumption, exactly once
- Expired, wrong and used credentials fail identically
- Delivery is confirmed even when the release is blocked or fails
- The weak receipt path goes through the same gate and release
"""

from datetime import timedelta

import pytest
from django.utils import timezone
from freezegun import freeze_time

from escrow.exceptions import CREDENTIAL_INVALID_MESSAGE
from escrow.models import AuditLogEntry, DeliveryConfirmation, EscrowRecord
from escrow.services import (
    ConfirmationIssuer,
    ConfirmationVerifier,
    CredentialHasher,
    EscrowLedgerService,
)
from escrow.state_machines import AuditAction, ConfirmationMethod, EscrowStatus
from escrow.strategies import ConfirmationRequest, CredentialStrategy, WeakIdentityStrategy
from escrow.tests.factories import DeliveryConfirmationFactory, EscrowRecordFactory
from stores.models import Order, OrderStatus, ReturnStatus
from stores.tests.factories import OrderFactory, ReturnRequestFactory

TOKEN = "0123456789abcdef0123456789abcdef-fedcba9876543210fedcba9876543210"


def confirm(**kwargs):
    return ConfirmationVerifier(CredentialStrategy()).confirm(ConfirmationRequest(**kwargs))


def confirm_receipt(**kwargs):
    return ConfirmationVerifier(WeakIdentityStrategy()).confirm(ConfirmationRequest(**kwargs))


# =============================================================================
# Credential Strategy
# =============================================================================


@pytest.mark.django_db
class TestTokenConfirmation:
    def test_valid_token_confirms_and_releases(self, held_escrow):
        DeliveryConfirmationFactory(order=held_escrow.order, raw_token=TOKEN)

        result = confirm(token=TOKEN, client_ip="203.0.113.7")

        assert result.success
        assert result.data.order_number == held_escrow.order.order_number
        assert result.data.escrow_released is True
        assert result.data.assurance == "full"
        assert Order.objects.get(id=held_escrow.order_id).status == OrderStatus.DELIVERED
        assert EscrowRecord.objects.get(id=held_escrow.id).status == EscrowStatus.RELEASED

    def test_consumption_is_recorded(self, order):
        confirmation = DeliveryConfirmationFactory(order=order, raw_token=TOKEN)

        confirm(token=TOKEN, client_ip="203.0.113.7")

        confirmation = DeliveryConfirmation.objects.get(id=confirmation.id)
        assert confirmation.used_at is not None
        assert confirmation.method == ConfirmationMethod.QR
        assert confirmation.confirmed_ip == "203.0.113.7"

    def test_malformed_ip_is_not_recorded(self, order):
        confirmation = DeliveryConfirmationFactory(order=order, raw_token=TOKEN)

        assert confirm(token=TOKEN, client_ip="unknown").success

        assert DeliveryConfirmation.objects.get(id=confirmation.id).confirmed_ip is None

    def test_second_use_is_invalid(self, order):
        DeliveryConfirmationFactory(order=order, raw_token=TOKEN)

        assert confirm(token=TOKEN).success
        result = confirm(token=TOKEN)

        assert not result.success
        assert result.error_code == "CREDENTIAL_INVALID"

    def test_wrong_token_is_invalid(self, order):
        DeliveryConfirmationFactory(order=order, raw_token=TOKEN)

        result = confirm(token=CredentialHasher.generate_token())

        assert result.error_code == "CREDENTIAL_INVALID"
        assert result.error == CREDENTIAL_INVALID_MESSAGE

    def test_expired_token_is_invalid(self, order):
        """Scenario D: a correct secret past its expiry never verifies."""
        DeliveryConfirmationFactory(
            order=order,
            raw_token=TOKEN,
            expires_at=timezone.now() - timedelta(seconds=1),
        )

        result = confirm(token=TOKEN)

        assert result.error_code == "CREDENTIAL_INVALID"
        assert Order.objects.get(id=order.id).status == OrderStatus.SHIPPED

    def test_issued_credential_expires_after_ttl(self, order, staff_user, settings):
        settings.DELIVERY_CONFIRMATION_TTL_HOURS = 24

        with freeze_time("2026-03-02 09:00:00") as frozen:
            issued = ConfirmationIssuer.issue(order.id, order.store_id, staff_user).data
            frozen.tick(timedelta(hours=24, seconds=1))

            result = confirm(token=issued.token)

        assert result.error_code == "CREDENTIAL_INVALID"

    def test_failures_are_indistinguishable(self, order):
        DeliveryConfirmationFactory(
            order=order, raw_token=TOKEN, expires_at=timezone.now() - timedelta(seconds=1)
        )
        used_token = "f" * 32 + "-" + "e" * 32
        DeliveryConfirmationFactory(order=order, raw_token=used_token, used_at=timezone.now())

        expired = confirm(token=TOKEN)
        used = confirm(token=used_token)
        wrong = confirm(token="a" * 65)

        assert expired.to_response() == used.to_response() == wrong.to_response()

    def test_missing_secret_is_validation_error(self, db):
        result = confirm()

        assert result.error_code == "VALIDATION_ERROR"


@pytest.mark.django_db
class TestOtpConfirmation:
    def test_scenario_c_otp_confirms_once(self, held_escrow, mocker):
        """Scenario C: the OTP returned at issuance works exactly once."""
        order = held_escrow.order
        mocker.patch(
            "escrow.services.confirmation_issuer.CredentialHasher.generate_otp",
            return_value="482913",
        )
        issued = ConfirmationIssuer.issue(order.id, order.store_id, order.store.owner).data
        assert issued.otp == "482913"

        first = confirm(otp="482913", method="otp", order_number=order.order_number)
        second = confirm(otp="482913", method="otp", order_number=order.order_number)

        assert first.success
        assert first.data.method == "otp"
        assert Order.objects.get(id=order.id).status == OrderStatus.DELIVERED
        assert second.error_code == "CREDENTIAL_INVALID"
        assert DeliveryConfirmation.objects.get(id=issued.confirmation.id).method == "otp"

    def test_otp_without_method_uses_otp_path(self, order):
        DeliveryConfirmationFactory(order=order, raw_otp="482913")

        result = confirm(otp="482913", order_number=order.order_number)

        assert result.success

    def test_otp_is_scoped_to_its_order(self, store):
        order = OrderFactory(store=store)
        other = OrderFactory(store=store)
        DeliveryConfirmationFactory(order=order, raw_otp="482913")

        result = confirm(otp="482913", method="otp", order_number=other.order_number)

        assert result.error_code == "CREDENTIAL_INVALID"

    def test_unknown_order_number_is_invalid(self, order):
        DeliveryConfirmationFactory(order=order, raw_otp="482913")

        result = confirm(otp="482913", method="otp", order_number="ORD-UNKNOWN")

        assert result.error_code == "CREDENTIAL_INVALID"

    def test_otp_requires_order_number(self, order):
        DeliveryConfirmationFactory(order=order, raw_otp="482913")

        result = confirm(otp="482913", method="otp")

        assert result.error_code == "VALIDATION_ERROR"
        assert DeliveryConfirmation.objects.get(order=order).used_at is None

    def test_regenerated_credential_no_longer_verifies(self, order):
        owner = order.store.owner
        first = ConfirmationIssuer.issue(order.id, order.store_id, owner).data
        ConfirmationIssuer.issue(order.id, order.store_id, owner, regenerate=True)

        assert confirm(token=first.token).error_code == "CREDENTIAL_INVALID"
        assert confirm(otp=first.otp, order_number=order.order_number).error_code == (
            "CREDENTIAL_INVALID"
        )


@pytest.mark.django_db
class TestConsume:
    def test_only_first_consumer_wins(self, order):
        confirmation = DeliveryConfirmationFactory(order=order)

        assert CredentialStrategy.consume(confirmation.id, ConfirmationMethod.QR) is True
        assert CredentialStrategy.consume(confirmation.id, ConfirmationMethod.QR) is False

    def test_lost_race_after_lookup_is_invalid(self, order, mocker):
        """The lookup saw an unused row but another request consumed it first."""
        DeliveryConfirmationFactory(order=order, raw_token=TOKEN)
        mocker.patch.object(CredentialStrategy, "consume", return_value=False)

        result = confirm(token=TOKEN)

        assert result.error_code == "CREDENTIAL_INVALID"
        assert Order.objects.get(id=order.id).status == OrderStatus.SHIPPED


# =============================================================================
# Shared Pipeline
# =============================================================================


@pytest.mark.django_db
class TestPipeline:
    def test_dispute_blocks_release_but_confirms_delivery(self, held_escrow):
        ReturnRequestFactory(order=held_escrow.order)
        DeliveryConfirmationFactory(order=held_escrow.order, raw_token=TOKEN)

        result = confirm(token=TOKEN)

        assert result.success
        assert result.data.escrow_released is False
        assert EscrowRecord.objects.get(id=held_escrow.id).status == EscrowStatus.HELD
        assert Order.objects.get(id=held_escrow.order_id).status == OrderStatus.DELIVERED
        assert AuditLogEntry.objects.filter(action=AuditAction.ESCROW_RELEASE_SKIPPED).exists()

    def test_release_failure_keeps_confirmation(self, held_escrow, mocker):
        confirmation = DeliveryConfirmationFactory(order=held_escrow.order, raw_token=TOKEN)
        mocker.patch.object(
            EscrowLedgerService,
            "release_unless_disputed",
            side_effect=RuntimeError("ledger down"),
        )

        result = confirm(token=TOKEN)

        assert result.success
        assert result.data.escrow_released is False
        assert DeliveryConfirmation.objects.get(id=confirmation.id).used_at is not None
        assert EscrowRecord.objects.get(id=held_escrow.id).status == EscrowStatus.HELD

    def test_no_escrow_still_confirms(self, order):
        DeliveryConfirmationFactory(order=order, raw_token=TOKEN)

        result = confirm(token=TOKEN)

        assert result.success
        assert result.data.escrow_released is False

    def test_audit_entry(self, held_escrow):
        confirmation = DeliveryConfirmationFactory(order=held_escrow.order, raw_token=TOKEN)

        confirm(token=TOKEN)

        entry = AuditLogEntry.objects.get(action=AuditAction.DELIVERY_CONFIRMED)
        assert entry.user is None
        assert entry.target_id == held_escrow.order_id
        assert entry.metadata == {
            "method": "qr",
            "escrow_released": True,
            "assurance": "full",
            "confirmation_id": str(confirmation.id),
        }


# =============================================================================
# Weak Identity Strategy
# =============================================================================


@pytest.mark.django_db
class TestReceiptConfirmation:
    def test_by_order_id(self, held_escrow):
        result = confirm_receipt(order_id=held_escrow.order_id)

        assert result.success
        assert result.data.escrow_released is True
        assert result.data.assurance == "reduced"
        record = EscrowRecord.objects.get(id=held_escrow.id)
        assert record.metadata["release_trigger"] == "receipt_confirmed"

    def test_by_number_and_phone_ignores_whitespace(self, held_escrow):
        result = confirm_receipt(
            order_number=held_escrow.order.order_number,
            phone="+223 70 00 00 00",
        )

        assert result.success

    def test_wrong_phone_is_not_found(self, held_escrow):
        result = confirm_receipt(
            order_number=held_escrow.order.order_number,
            phone="+22399999999",
        )

        assert result.error_code == "ORDER_NOT_FOUND"
        assert EscrowRecord.objects.get(id=held_escrow.id).status == EscrowStatus.HELD

    def test_order_without_escrow(self, order):
        result = confirm_receipt(order_id=order.id)

        assert result.error_code == "ESCROW_NOT_FOUND"

    def test_dispute_blocks_weak_path(self, held_escrow):
        ReturnRequestFactory(order=held_escrow.order, status=ReturnStatus.REVIEWING)

        result = confirm_receipt(order_id=held_escrow.order_id)

        assert result.success
        assert result.data.escrow_released is False
        assert EscrowRecord.objects.get(id=held_escrow.id).status == EscrowStatus.HELD

    def test_repeat_after_release_is_refused(self, held_escrow):
        assert confirm_receipt(order_id=held_escrow.order_id).data.escrow_released is True

        repeat = confirm_receipt(order_id=held_escrow.order_id)

        assert repeat.error_code == "ESCROW_NOT_FOUND"
        assert EscrowRecord.objects.get(id=held_escrow.id).status == EscrowStatus.RELEASED

    def test_audit_marks_reduced_assurance(self, held_escrow):
        confirm_receipt(order_id=held_escrow.order_id)

        entry = AuditLogEntry.objects.get(action=AuditAction.DELIVERY_CONFIRMED)
        assert entry.metadata["assurance"] == "reduced"
        assert entry.metadata["method"] == "identity"
        assert entry.metadata["confirmation_id"] is None

    def test_refunded_order_is_left_untouched(self, store):
        record = EscrowRecordFactory(order=OrderFactory(store=store, status=OrderStatus.REFUNDED))
        EscrowLedgerService.refund(record.id)

        result = confirm_receipt(order_id=record.order_id)

        assert not result.success
        assert result.error_code == "ESCROW_NOT_FOUND"
        assert Order.objects.get(id=record.order_id).status == OrderStatus.REFUNDED
        assert not AuditLogEntry.objects.filter(action=AuditAction.DELIVERY_CONFIRMED).exists()
