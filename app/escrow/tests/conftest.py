"""
Pytest fixtures for escrow tests.

Usage:
    def test_release(held_escrow):
        assert EscrowLedgerService.release(held_escrow.id) is True

    def test_issue(member_client, order):
        response = member_client.post(url, {...}, format="json")
"""

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from authentication.tests.factories import UserFactory
from escrow.tests.factories import EscrowRecordFactory
from stores.tests.factories import OrderFactory, StoreFactory, StoreMembershipFactory


@pytest.fixture(autouse=True)
def clear_cache():
    """Throttle counters live in the cache; start every test from zero."""
    cache.clear()
    yield
    cache.clear()


# =============================================================================
# Store Fixtures
# =============================================================================


@pytest.fixture
def store(db):
    return StoreFactory()


@pytest.fixture
def staff_user(db, store):
    """A non-owner member of the store."""
    return StoreMembershipFactory(store=store).user


@pytest.fixture
def outsider(db):
    return UserFactory()


@pytest.fixture
def order(db, store):
    return OrderFactory(store=store)


@pytest.fixture
def held_escrow(db, order):
    return EscrowRecordFactory(order=order)


# =============================================================================
# API Client Fixtures
# =============================================================================


def _client_for(user) -> APIClient:
    client = APIClient()
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {refresh.access_token}")
    return client


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def member_client(staff_user):
    return _client_for(staff_user)


@pytest.fixture
def outsider_client(outsider):
    return _client_for(outsider)
