"""
Pytest fixtures and configuration for Storefront Backend tests

This file provides shared fixtures that can be used across all test modules.
Tenant databases are replaced by an in-memory fake of the psycopg pool API
(pool.connection() -> conn.cursor() / conn.transaction()), so no test needs
a running PostgreSQL.

Author: TM3
Date: 2026-10-19
"""
from contextlib import asynccontextmanager
from decimal import Decimal

import pytest

from app.core.cache import QueryCache
from app.core.database import DatabaseService, TenantConnectionRegistry


class FakeClock:
    """Manually advanced clock for TTL tests"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeCursor:
    def __init__(self, conn):
        self.conn = conn
        self.description = None
        self._rows = []

    async def execute(self, query, params=None):
        self.conn.pool.queries.append((query, params))
        rows = self.conn.pool.responder(query, params)
        self.conn.record(query, params)
        self.description = None if rows is None else [("column",)]
        self._rows = rows or []

    async def fetchall(self):
        return list(self._rows)


class FakeConnection:
    """
    Write statements run inside transaction() only reach pool.committed
    when the block exits without an error.
    """

    def __init__(self, pool):
        self.pool = pool
        self._buffer = None

    def record(self, query, params):
        if query.strip().upper().startswith("SELECT"):
            return
        if self._buffer is not None:
            self._buffer.append((query, params))
        else:
            self.pool.committed.append((query, params))

    @asynccontextmanager
    async def cursor(self):
        yield FakeCursor(self)

    @asynccontextmanager
    async def transaction(self):
        self._buffer = []
        try:
            yield
        except Exception:
            self.pool.rollbacks += 1
            raise
        else:
            self.pool.committed.extend(self._buffer)
        finally:
            self._buffer = None


class FakePool:
    """Stands in for psycopg_pool.AsyncConnectionPool"""

    def __init__(self, responder=None):
        self.responder = responder or (lambda query, params: [])
        self.queries = []
        self.committed = []
        self.rollbacks = 0
        self.closed = False

    @asynccontextmanager
    async def connection(self):
        yield FakeConnection(self)

    async def close(self):
        self.closed = True

    def written(self, table):
        """Committed INSERT statements for a table"""
        return [(q, p) for q, p in self.committed if q.startswith(f"INSERT INTO {table} ")]


class StorefrontResponder:
    """
    Answers the queries the storefront repositories issue against a tenant
    database holding the given products.
    """

    def __init__(self, products=None, shop_exists=True):
        self.products = {p['id']: p for p in (products or [])}
        self.shop_exists = shop_exists
        self.order_ids = set()
        self.order_codes = set()

    def __call__(self, query, params):
        if "FROM shops WHERE id" in query:
            return [{'exists': 1}] if self.shop_exists else []
        if "INSERT INTO shops" in query:
            self.shop_exists = True
            return [{'id': params[0]}]
        if "FROM products WHERE id = ANY" in query:
            return [dict(self.products[i]) for i in params[0] if i in self.products]
        if "FROM orders WHERE order_code" in query:
            return [{'exists': 1}] if params[0] in self.order_codes else []
        if "FROM orders WHERE id" in query:
            return [{'exists': 1}] if params[0] in self.order_ids else []
        if query.startswith("INSERT INTO orders "):
            self.order_ids.add(params[0])
            self.order_codes.add(params[1])
            return None
        if query.startswith("INSERT INTO"):
            return None
        return []


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def query_cache(clock):
    return QueryCache(default_ttl=300, clock=clock)


@pytest.fixture
def fake_pool():
    return FakePool()


@pytest.fixture
def registry(fake_pool):
    """Registry whose every tenant resolves to fake_pool"""
    async def connect(database_url):
        return fake_pool

    return TenantConnectionRegistry(connect=connect, url_template="postgresql://{tenant_id}-db.test/storefront")


@pytest.fixture
def db(registry, query_cache):
    return DatabaseService(registry, query_cache)


@pytest.fixture
def sample_products():
    """
    Provides sample catalog rows for tests
    """
    return [
        {'id': 'p1', 'title': 'Áo thun basic', 'price': Decimal('100000')},
        {'id': 'p2', 'title': 'Quần jean slim', 'price': Decimal('350000')},
    ]


@pytest.fixture
def storefront(fake_pool, sample_products):
    """fake_pool answering like a tenant database with sample_products"""
    responder = StorefrontResponder(sample_products)
    fake_pool.responder = responder
    return responder


@pytest.fixture
def sample_checkout_payload():
    """
    Provides a valid checkout payload (camelCase, as the storefront sends it)
    """
    return {
        "buyerName": "Nguyen Van A",
        "buyerEmail": "a@example.com",
        "buyerAddress": "12 Le Loi, District 1, HCMC",
        "buyerPhone": "0901234567",
        "buyerNotes": "Call before delivery",
        "paymentMethod": "COD",
        "shippingFee": 15000,
        "products": [{"id": "p1", "quantity": 2, "variant": "M / White"}],
    }
