import threading
from contextlib import contextmanager
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List

from pydantic import ValidationError

from storefront.data.store import DataStore, PRODUCT_EMBED, Row
from storefront.domain.errors import MutationBusy, NotFound, RemoteFailure, Unauthenticated
from storefront.domain.schemas import CartItem, Identity, Product
from storefront.services.identity import SessionIdentity
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

ADD_FAILED = "Failed to add item to cart"
UPDATE_FAILED = "Failed to update item quantity"
REMOVE_FAILED = "Failed to remove item from cart"
CLEAR_FAILED = "Failed to clear cart"
OUT_OF_DATE = "Change saved, but the cart could not be refreshed and may be out of date"


class CartState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    LOADING = "loading"
    READY = "ready"


def cart_total(items: Iterable[CartItem]) -> Decimal:
    # an item whose product is gone has no price
    return sum(
        (i.product.price * i.quantity for i in items if i.product is not None),
        Decimal("0.00"),
    )


def cart_count(items: Iterable[CartItem]) -> int:
    return sum(i.quantity for i in items)


def parse_items(rows: List[Row]) -> List[CartItem]:
    try:
        return [CartItem.model_validate(r) for r in rows]
    except ValidationError as e:
        raise RemoteFailure(f"Malformed cart rows: {e}") from e


class CartService:
    """
    Cart of the signed-in user, kept as a snapshot of the remote cart_items rows.

    Every successful write is followed by a full reload, the snapshot is never
    patched locally (clear_cart is the exception, its result is known).
    Mutations of one user run one at a time under lock_service, so the
    lookup-then-insert in add_to_cart cannot create a second row for a product.

    Remote failures never escape: the previous snapshot stays and the returned
    cart view carries ok=False and a notice.
    """

    def __init__(self, store: DataStore, identity: SessionIdentity, lock_service):
        self.store = store
        self.identity = identity
        self.lock_service = lock_service

        self._items: List[CartItem] = []
        self._state = CartState.UNAUTHENTICATED
        # bumped on identity change, reloads started before it are dropped
        self._generation = 0
        self._state_lock = threading.Lock()

        identity.subscribe(self._on_identity_change)

    # query

    @property
    def items(self) -> List[CartItem]:
        with self._state_lock:
            return list(self._items)

    @property
    def state(self) -> CartState:
        return self._state

    @property
    def cart_total(self) -> Decimal:
        return cart_total(self.items)

    @property
    def cart_count(self) -> int:
        return cart_count(self.items)

    def get_cart(self, ok: bool = True, notice: str | None = None) -> Dict[str, Any]:
        with self._state_lock:
            items = list(self._items)
            state = self._state
        user = self.identity.current_user()

        return {
            "user_id": user.id if user else None,
            "state": state.value,
            "items": items,
            "total": cart_total(items),
            "count": cart_count(items),
            "ok": ok,
            "notice": notice,
        }

    # synchronization

    def _is_current(self, user: Identity) -> bool:
        current = self.identity.current_user()
        return current is not None and current.id == user.id

    def _on_identity_change(self, user: Identity | None) -> None:
        with self._state_lock:
            self._generation += 1
            # never show the previous user's items, not even while loading
            self._items = []
            self._state = CartState.LOADING if user else CartState.UNAUTHENTICATED
        self.reload()

    def reload(self) -> bool:
        """Replace the snapshot with the user's remote rows. Returns False if nothing was replaced."""
        with self._state_lock:
            user = self.identity.current_user()
            generation = self._generation
            if user is None:
                self._items = []
                self._state = CartState.UNAUTHENTICATED
                return True
            self._state = CartState.LOADING

        try:
            rows = self.store.query("cart_items", filters={"user_id": user.id}, embed=PRODUCT_EMBED)
            items = parse_items(rows)
        except RemoteFailure as e:
            logger.error(f"Error fetching cart for user {user.id}: {e}")
            with self._state_lock:
                if generation == self._generation:
                    self._state = CartState.READY
            return False

        with self._state_lock:
            if generation != self._generation or not self._is_current(user):
                logger.info(f"Dropping cart of user {user.id}, identity changed during reload")
                return False
            self._items = items
            self._state = CartState.READY
        return True

    # commands

    def _require_user(self, message: str = "Please sign in to manage your cart") -> Identity:
        user = self.identity.current_user()
        if user is None:
            raise Unauthenticated(message)
        return user

    @contextmanager
    def exclusive(self) -> Iterator[Identity]:
        """Hold the current user's cart mutation lock. Raises Unauthenticated, MutationBusy."""
        user = self._require_user()
        with self.lock_service.hold(user.id):
            yield user

    def _find_item(self, user: Identity, product_id: str) -> CartItem | None:
        # always the remote row, the snapshot can be behind (failed reload, another tab)
        rows = self.store.query("cart_items", filters={"user_id": user.id, "product_id": product_id})
        items = parse_items(rows)
        return items[0] if items else None

    def _write_quantity(self, user: Identity, cart_item_id: str, quantity: int) -> None:
        self.store.update(
            "cart_items",
            {"quantity": quantity},
            {"id": cart_item_id, "user_id": user.id},
        )

    def _written(self, reloaded: bool) -> Dict[str, Any]:
        if not reloaded:
            return self.get_cart(ok=False, notice=OUT_OF_DATE)
        return self.get_cart()

    def add_to_cart(self, product: Product) -> Dict[str, Any]:
        user = self._require_user("Please sign in to add items to cart")

        if product.stock <= 0:
            logger.info(f"Product {product.id} is out of stock, not adding")
            return self.get_cart(ok=False, notice=f"{product.name} is out of stock")

        try:
            with self.lock_service.hold(user.id):
                existing = self._find_item(user, product.id)

                if existing:
                    logger.info(
                        f"Product {product.id} already in cart, raising quantity "
                        f"from {existing.quantity} to {existing.quantity + 1}"
                    )
                    self._write_quantity(user, existing.id, existing.quantity + 1)
                else:
                    logger.info(f"Adding product {product.id} to cart of user {user.id}")
                    self.store.insert(
                        "cart_items",
                        {"user_id": user.id, "product_id": product.id, "quantity": 1},
                    )

                reloaded = self.reload()
        except (RemoteFailure, MutationBusy) as e:
            logger.error(f"Error adding to cart: {e}")
            return self.get_cart(ok=False, notice=ADD_FAILED)

        return self._written(reloaded)

    def update_quantity(self, cart_item_id: str, quantity: int) -> Dict[str, Any]:
        if quantity < 1:
            return self.remove_from_cart(cart_item_id)

        user = self._require_user()
        try:
            with self.lock_service.hold(user.id):
                self._write_quantity(user, cart_item_id, quantity)
                reloaded = self.reload()
        except (RemoteFailure, MutationBusy) as e:
            logger.error(f"Error updating quantity of {cart_item_id}: {e}")
            return self.get_cart(ok=False, notice=UPDATE_FAILED)

        return self._written(reloaded)

    def remove_from_cart(self, cart_item_id: str) -> Dict[str, Any]:
        user = self._require_user()
        try:
            with self.lock_service.hold(user.id):
                try:
                    self.store.delete("cart_items", {"id": cart_item_id, "user_id": user.id})
                except NotFound:
                    logger.info(f"Cart item {cart_item_id} already removed")
                reloaded = self.reload()
        except (RemoteFailure, MutationBusy) as e:
            logger.error(f"Error removing {cart_item_id} from cart: {e}")
            return self.get_cart(ok=False, notice=REMOVE_FAILED)

        return self._written(reloaded)

    def purge(self, user: Identity) -> None:
        """Delete all of the user's rows and empty the snapshot. Caller holds exclusive()."""
        try:
            self.store.delete("cart_items", {"user_id": user.id})
        except NotFound:
            pass

        with self._state_lock:
            if self._is_current(user):
                self._items = []
                self._state = CartState.READY
        logger.info(f"Cleared cart of user {user.id}")

    def clear_cart(self) -> Dict[str, Any]:
        try:
            with self.exclusive() as user:
                self.purge(user)
        except (RemoteFailure, MutationBusy) as e:
            logger.error(f"Error clearing cart: {e}")
            return self.get_cart(ok=False, notice=CLEAR_FAILED)

        return self.get_cart()
