"""
Tests for ConfirmationIssuer.

This module tests:
- Access control (store membership, store-scoped orders)
- Only hashes are persisted, raw secrets are returned once
- regenerate expires unused credentials and leaves consumed ones alone
- Without regenerate, several credentials stay valid
"""

from datetime import timedelta

import pytest
from django.utils import timezone

from escrow.models import AuditLogEntry, DeliveryConfirmation
from escrow.services import ConfirmationIssuer, CredentialHasher
from escrow.state_machines import AuditAction, ConfirmationMethod
from escrow.tests.factories import DeliveryConfirmationFactory
from stores.tests.factories import OrderFactory


@pytest.mark.django_db
class TestAccess:
    def test_owner_can_issue(self, order):
        result = ConfirmationIssuer.issue(order.id, order.store_id, order.store.owner)

        assert result.success

    def test_staff_member_can_issue(self, order, staff_user):
        result = ConfirmationIssuer.issue(order.id, order.store_id, staff_user)

        assert result.success

    def test_outsider_is_refused(self, order, outsider):
        result = ConfirmationIssuer.issue(order.id, order.store_id, outsider)

        assert not result.success
        assert result.error_code == "STORE_ACCESS_DENIED"
        assert not DeliveryConfirmation.objects.exists()

    def test_order_of_another_store_is_not_found(self, store, staff_user):
        foreign_order = OrderFactory()

        result = ConfirmationIssuer.issue(foreign_order.id, store.id, staff_user)

        assert not result.success
        assert result.error_code == "ORDER_NOT_FOUND"


@pytest.mark.django_db
class TestIssue:
    def test_returns_raw_secrets_and_stores_hashes(self, order, staff_user):
        result = ConfirmationIssuer.issue(order.id, order.store_id, staff_user)

        issued = result.data
        confirmation = DeliveryConfirmation.objects.get(id=issued.confirmation.id)
        assert len(issued.token) == 65
        assert len(issued.otp) == 6
        assert confirmation.token_hash == CredentialHasher.hash(issued.token)
        assert confirmation.otp_hash == CredentialHasher.hash(issued.otp)
        assert issued.token not in (confirmation.token_hash, confirmation.otp_hash)

    def test_defaults(self, order, staff_user, settings):
        settings.DELIVERY_CONFIRMATION_TTL_HOURS = 24
        before = timezone.now()

        confirmation = ConfirmationIssuer.issue(order.id, order.store_id, staff_user).data.confirmation

        assert confirmation.method == ConfirmationMethod.QR
        assert confirmation.used_at is None
        assert confirmation.issued_by == staff_user
        assert before + timedelta(hours=24) <= confirmation.expires_at
        assert confirmation.expires_at <= timezone.now() + timedelta(hours=24)

    def test_records_audit_entry(self, order, staff_user):
        ConfirmationIssuer.issue(order.id, order.store_id, staff_user)

        entry = AuditLogEntry.objects.get(action=AuditAction.DELIVERY_TOKEN_ISSUED)
        assert entry.user == staff_user
        assert entry.target_id == order.id
        assert entry.metadata["regenerate"] is False
        assert entry.metadata["invalidated_count"] == 0

    def test_without_regenerate_previous_stays_valid(self, order, staff_user):
        first = ConfirmationIssuer.issue(order.id, order.store_id, staff_user).data
        second = ConfirmationIssuer.issue(order.id, order.store_id, staff_user).data

        assert first.token != second.token
        active = DeliveryConfirmation.objects.for_order(order.id).active()
        assert active.count() == 2

        entries = AuditLogEntry.objects.filter(action=AuditAction.DELIVERY_TOKEN_ISSUED)
        assert sorted(e.metadata["active_before"] for e in entries) == [0, 1]

    def test_regenerate_expires_unused(self, order, staff_user):
        first = ConfirmationIssuer.issue(order.id, order.store_id, staff_user).data
        second = ConfirmationIssuer.issue(order.id, order.store_id, staff_user, regenerate=True).data

        active_ids = set(
            DeliveryConfirmation.objects.for_order(order.id).active().values_list("id", flat=True)
        )
        assert active_ids == {second.confirmation.id}
        assert not DeliveryConfirmation.objects.get(id=first.confirmation.id).is_active

    def test_regenerate_leaves_consumed_untouched(self, order, staff_user):
        used_at = timezone.now() - timedelta(minutes=5)
        consumed = DeliveryConfirmationFactory(order=order, used_at=used_at)
        original_expiry = consumed.expires_at

        ConfirmationIssuer.issue(order.id, order.store_id, staff_user, regenerate=True)

        consumed = DeliveryConfirmation.objects.get(id=consumed.id)
        assert consumed.used_at == used_at
        assert consumed.expires_at == original_expiry

    def test_regenerate_does_not_touch_other_orders(self, order, staff_user):
        other = DeliveryConfirmationFactory()

        ConfirmationIssuer.issue(order.id, order.store_id, staff_user, regenerate=True)

        assert DeliveryConfirmation.objects.get(id=other.id).is_active
