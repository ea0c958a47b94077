"""
Factory Boy factories for store models.

Usage:
    from stores.tests.factories import OrderFactory, ReturnRequestFactory

    order = OrderFactory(shipping_phone="+22370000000")
    ReturnRequestFactory(order=order)  # opens a dispute
"""

import factory

from authentication.tests.factories import UserFactory
from stores.models import (
    MembershipRole,
    Order,
    OrderStatus,
    ReturnRequest,
    ReturnStatus,
    Store,
    StoreMembership,
)


class StoreFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Store

    name = factory.Sequence(lambda n: f"Store {n}")
    slug = factory.Sequence(lambda n: f"store-{n}")
    owner = factory.SubFactory(UserFactory)


class StoreMembershipFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = StoreMembership

    store = factory.SubFactory(StoreFactory)
    user = factory.SubFactory(UserFactory)
    role = MembershipRole.STAFF


class OrderFactory(factory.django.DjangoModelFactory):
    """
    Factory for Order model.

    Orders default to SHIPPED, the usual state when a delivery credential
    is issued.
    """

    class Meta:
        model = Order

    store = factory.SubFactory(StoreFactory)
    order_number = factory.Sequence(lambda n: f"ORD-{10000 + n}")
    shipping_phone = "+22370000000"
    status = OrderStatus.SHIPPED
    total = 25000
    currency = "xof"


class ReturnRequestFactory(factory.django.DjangoModelFactory):
    """Factory for ReturnRequest. The default status keeps the dispute open."""

    class Meta:
        model = ReturnRequest

    order = factory.SubFactory(OrderFactory)
    store = factory.SelfAttribute("order.store")
    status = ReturnStatus.REQUESTED
    reason = "Item damaged"
