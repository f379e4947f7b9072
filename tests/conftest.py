# tests/conftest.py
import itertools
import time
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from storefront.container import assemble_storefront
from storefront.data.database import make_session_factory, init_db
from storefront.data.sql_store import SqlDataStore
from storefront.data.store import DataStore
from storefront.domain.errors import RemoteFailure
from storefront.domain.schemas import Identity, Product
from storefront.main import create_app
from storefront.services.auth_client import DevAuthClient
from storefront.services.cart_service import CartService
from storefront.services.identity import SessionIdentity
from storefront.services.lock_service import LocalLockService
from storefront.services.order_service import OrderService

USER_1 = Identity(id="user-1", email="one@example.com")
USER_2 = Identity(id="user-2", email="two@example.com")

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


class RecordingStore(DataStore):
    """
    Wraps a real store, records every call and can be told to fail.

    failing: method names ("query", "insert", "update", "delete") that raise RemoteFailure
    query_delay: seconds to sleep after each query, widens race windows
    before_query: callable(table, filters) run before each query
    """

    def __init__(self, inner: DataStore):
        self.inner = inner
        self.calls = []
        self.failing = set()
        self.query_delay = 0.0
        self.before_query = None

    def _record(self, method, table):
        self.calls.append((method, table))
        if method in self.failing:
            raise RemoteFailure(f"{method} on {table} failed")

    def query(self, table, filters=None, order=None, embed=None):
        self._record("query", table)
        if self.before_query:
            self.before_query(table, filters)
        rows = self.inner.query(table, filters, order, embed)
        if self.query_delay:
            time.sleep(self.query_delay)
        return rows

    def insert(self, table, row):
        self._record("insert", table)
        return self.inner.insert(table, row)

    def update(self, table, patch, filters):
        self._record("update", table)
        return self.inner.update(table, patch, filters)

    def delete(self, table, filters):
        self._record("delete", table)
        return self.inner.delete(table, filters)


@pytest.fixture
def session_factory(tmp_path):
    engine, factory = make_session_factory(f"sqlite:///{tmp_path / 'store.db'}")
    init_db(engine)
    yield factory
    engine.dispose()


@pytest.fixture
def sql_store(session_factory):
    return SqlDataStore(session_factory)


@pytest.fixture
def store(sql_store):
    return RecordingStore(sql_store)


@pytest.fixture
def identity():
    return SessionIdentity()


@pytest.fixture
def cart(store, identity):
    return CartService(store, identity, LocalLockService(wait_timeout=5))


@pytest.fixture
def orders(store, identity, cart):
    return OrderService(store, identity, cart)


@pytest.fixture
def make_product(sql_store):
    """
    Insert a product straight into the database (not recorded).
    Usage: product = make_product(name="Monitor", price=Decimal("19.99"))
    """
    counter = itertools.count()

    def _fn(**overrides):
        n = next(counter)
        row = {
            "name": f"Product {n}",
            "description": "",
            "price": Decimal("10.00"),
            "category": "monitors",
            "brand": "Acme",
            "image_url": "",
            "stock": 10,
            "specs": {},
            "rating": 4.0,
            "created_at": BASE_TIME + timedelta(minutes=n),
        }
        row.update(overrides)
        return Product.model_validate(sql_store.insert("products", row))

    return _fn


@pytest.fixture
def remote_cart_rows(sql_store):
    """Rows actually stored for a user, bypassing the cart snapshot."""

    def _fn(user_id):
        return sql_store.query("cart_items", filters={"user_id": user_id})

    return _fn


@pytest.fixture
def storefront(sql_store):
    identity = SessionIdentity()
    return assemble_storefront(
        sql_store,
        identity,
        DevAuthClient(identity),
        LocalLockService(wait_timeout=5),
        backend="sql",
    )


@pytest.fixture
def client(storefront):
    return TestClient(create_app(storefront))
