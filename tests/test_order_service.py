from decimal import Decimal

import pytest

from storefront.domain.errors import NotFound, RemoteFailure, Unauthenticated
from storefront.domain.schemas import ShippingAddress

from tests.conftest import USER_1, USER_2

ADDRESS = ShippingAddress(
    name="Ada Lovelace",
    street="12 St James's Square",
    city="London",
    state="",
    zip="SW1Y 4JH",
    country="UK",
)


def test_checkout_places_order_and_empties_cart(cart, orders, identity, make_product, remote_cart_rows):
    monitor = make_product(price=Decimal("19.99"))
    keyboard = make_product(price=Decimal("89.50"))
    identity.set_session(USER_1)
    cart.add_to_cart(monitor)
    cart.add_to_cart(monitor)
    cart.add_to_cart(keyboard)

    order = orders.checkout(ADDRESS)

    assert order.user_id == USER_1.id
    assert order.status == "pending"
    assert order.total_amount == Decimal("129.48")
    assert order.shipping_address == ADDRESS
    bought = {i.product_id: (i.quantity, i.price_at_purchase) for i in order.items}
    assert bought == {monitor.id: (2, Decimal("19.99")), keyboard.id: (1, Decimal("89.50"))}

    assert cart.items == []
    assert remote_cart_rows(USER_1.id) == []


def test_checkout_requires_identity(orders):
    with pytest.raises(Unauthenticated):
        orders.checkout(ADDRESS)


def test_empty_cart_cannot_be_checked_out(orders, identity):
    identity.set_session(USER_1)
    with pytest.raises(ValueError, match="empty cart"):
        orders.checkout(ADDRESS)


def test_failed_item_write_rolls_back_order(cart, orders, identity, store, sql_store, make_product):
    identity.set_session(USER_1)
    cart.add_to_cart(make_product())

    real_insert = store.inner.insert

    def insert(table, row):
        if table == "order_items":
            raise RemoteFailure("order_items unavailable")
        return real_insert(table, row)

    store.inner.insert = insert

    with pytest.raises(RemoteFailure):
        orders.checkout(ADDRESS)

    assert sql_store.query("orders") == []
    # the cart survives a failed checkout
    assert len(cart.items) == 1


def test_orders_listed_newest_first_and_scoped_to_user(cart, orders, identity, make_product):
    product = make_product()
    identity.set_session(USER_1)
    cart.add_to_cart(product)
    first = orders.checkout(ADDRESS)
    cart.add_to_cart(product)
    second = orders.checkout(ADDRESS)

    assert [o.id for o in orders.list_orders()] == [second.id, first.id]
    assert orders.get_order(first.id).items[0].product.id == product.id

    identity.set_session(USER_2)
    assert orders.list_orders() == []
    with pytest.raises(NotFound):
        orders.get_order(first.id)
