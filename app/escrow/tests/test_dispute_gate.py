"""Tests for DisputeGate."""

import pytest

from escrow.services import DisputeGate
from stores.models import ReturnStatus
from stores.tests.factories import ReturnRequestFactory


@pytest.mark.django_db
class TestIsBlocked:
    def test_no_returns_is_not_blocked(self, order):
        assert DisputeGate.is_blocked(order.id) is False

    @pytest.mark.parametrize(
        "status",
        [
            ReturnStatus.REQUESTED,
            ReturnStatus.REVIEWING,
            ReturnStatus.APPROVED,
            ReturnStatus.RECEIVED,
        ],
    )
    def test_open_return_blocks(self, order, status):
        ReturnRequestFactory(order=order, status=status)

        assert DisputeGate.is_blocked(order.id) is True

    @pytest.mark.parametrize("status", [ReturnStatus.REJECTED, ReturnStatus.REFUNDED])
    def test_resolved_return_does_not_block(self, order, status):
        ReturnRequestFactory(order=order, status=status)

        assert DisputeGate.is_blocked(order.id) is False

    def test_one_open_return_among_resolved_blocks(self, order):
        ReturnRequestFactory(order=order, status=ReturnStatus.REJECTED)
        ReturnRequestFactory(order=order, status=ReturnStatus.REVIEWING)

        assert DisputeGate.is_blocked(order.id) is True

    def test_return_on_other_order_does_not_block(self, order):
        ReturnRequestFactory()

        assert DisputeGate.is_blocked(order.id) is False

    def test_gate_agrees_with_return_is_open(self, order):
        request = ReturnRequestFactory(order=order, status=ReturnStatus.REVIEWING)
        assert request.is_open is True
        assert DisputeGate.is_blocked(order.id) is True

        request.status = ReturnStatus.REJECTED
        request.save()
        assert request.is_open is False
        assert DisputeGate.is_blocked(order.id) is False

    def test_disputed_since_is_oldest_open_return(self, order):
        assert DisputeGate.disputed_since(order.id) is None

        ReturnRequestFactory(order=order, status=ReturnStatus.REJECTED)
        oldest_open = ReturnRequestFactory(order=order, status=ReturnStatus.REQUESTED)
        ReturnRequestFactory(order=order, status=ReturnStatus.REVIEWING)

        assert DisputeGate.disputed_since(order.id) == oldest_open.created_at
