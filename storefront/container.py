# storefront/container.py
from dataclasses import dataclass

from storefront.data.database import make_session_factory, init_db
from storefront.data.rest_store import RestDataStore
from storefront.data.seed import seed
from storefront.data.sql_store import SqlDataStore
from storefront.data.store import DataStore
from storefront.services.auth_client import AuthClient, DevAuthClient
from storefront.services.cart_service import CartService
from storefront.services.catalog import CatalogService
from storefront.services.identity import SessionIdentity
from storefront.services.lock_service import LocalLockService, RedisLockService
from storefront.services.order_service import OrderService
from storefront.utils.settings import DATA_BACKEND, DATABASE_URL, REDIS_URL, SEED_CATALOG
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class Storefront:
    """Everything one client session needs, wired once and handed to the API."""

    backend: str
    store: DataStore
    identity: SessionIdentity
    auth: AuthClient | DevAuthClient
    catalog: CatalogService
    cart: CartService
    orders: OrderService


def assemble_storefront(store: DataStore, identity: SessionIdentity, auth, lock_service, backend: str) -> Storefront:
    cart = CartService(store, identity, lock_service)
    return Storefront(
        backend=backend,
        store=store,
        identity=identity,
        auth=auth,
        catalog=CatalogService(store),
        cart=cart,
        orders=OrderService(store, identity, cart),
    )


def build_storefront(backend: str | None = None) -> Storefront:
    backend = backend or DATA_BACKEND
    identity = SessionIdentity()

    if backend == "rest":
        store = RestDataStore(token_provider=identity.access_token)
        auth = AuthClient(identity)
    elif backend == "sql":
        engine, session_factory = make_session_factory(DATABASE_URL)
        init_db(engine)
        store = SqlDataStore(session_factory)
        if SEED_CATALOG:
            seed(store)
        auth = DevAuthClient(identity)
    else:
        raise ValueError(f"Unknown DATA_BACKEND {backend!r}, expected 'rest' or 'sql'")

    lock_service = RedisLockService() if REDIS_URL else LocalLockService()
    logger.info(f"Storefront using {backend} backend, {type(lock_service).__name__} for cart mutations")
    return assemble_storefront(store, identity, auth, lock_service, backend)
