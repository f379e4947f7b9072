# storefront/services/order_service.py
from typing import List

from pydantic import ValidationError

from storefront.data.store import DataStore, NEWEST_FIRST, PRODUCT_EMBED, Row
from storefront.domain.errors import NotFound, RemoteFailure, Unauthenticated
from storefront.domain.schemas import Identity, Order, ShippingAddress
from storefront.services.cart_service import CartService, cart_total
from storefront.services.identity import SessionIdentity
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class OrderService:
    """
    Checkout and order history of the signed-in user.
    Kept apart from CartService, which only owns the cart rows.
    """

    def __init__(self, store: DataStore, identity: SessionIdentity, cart: CartService):
        self.store = store
        self.identity = identity
        self.cart = cart

    def _require_user(self) -> Identity:
        user = self.identity.current_user()
        if user is None:
            raise Unauthenticated("Please sign in to view or place orders")
        return user

    def checkout(self, shipping_address: ShippingAddress) -> Order:
        """
        Place an order for the current cart.

        1. Re-reads the cart so the order matches the remote rows
        2. Writes the order and one order item per cart item, at today's price
        3. Empties the cart

        Raises Unauthenticated, ValueError for an unusable cart, RemoteFailure.
        """
        with self.cart.exclusive() as user:
            if not self.cart.reload():
                raise RemoteFailure("Could not refresh the cart before checkout")

            items = self.cart.items
            if not items:
                raise ValueError("Cannot check out an empty cart")
            if any(i.product is None for i in items):
                raise ValueError("Cart contains products that are no longer available")

            total = cart_total(items)
            order = self.store.insert(
                "orders",
                {
                    "user_id": user.id,
                    "total_amount": total,
                    "status": "pending",
                    "shipping_address": shipping_address.model_dump(),
                },
            )
            order_id = order["id"]

            try:
                for item in items:
                    self.store.insert(
                        "order_items",
                        {
                            "order_id": order_id,
                            "product_id": item.product_id,
                            "quantity": item.quantity,
                            "price_at_purchase": item.product.price,
                        },
                    )
            except RemoteFailure:
                logger.error(f"Order {order_id} incomplete, rolling it back")
                self.store.delete("order_items", {"order_id": order_id})
                self.store.delete("orders", {"id": order_id})
                raise

            logger.info(f"Order {order_id} placed by user {user.id}, total {total}")
            self.cart.purge(user)

        return self.get_order(order_id)

    def _build(self, row: Row) -> Order:
        items = self.store.query("order_items", filters={"order_id": row["id"]}, embed=PRODUCT_EMBED)
        try:
            return Order.model_validate({**row, "items": items})
        except ValidationError as e:
            raise RemoteFailure(f"Malformed order {row.get('id')}: {e}") from e

    def get_order(self, order_id: str) -> Order:
        user = self._require_user()
        rows = self.store.query("orders", filters={"id": order_id, "user_id": user.id})
        if not rows:
            raise NotFound("Order not found")
        return self._build(rows[0])

    def list_orders(self) -> List[Order]:
        user = self._require_user()
        rows = self.store.query("orders", filters={"user_id": user.id}, order=NEWEST_FIRST)
        return [self._build(r) for r in rows]
