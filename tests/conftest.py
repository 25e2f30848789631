import asyncio
import sqlite3

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from httpsql.main import app
from httpsql.core.catalog import get_catalog
from httpsql.core.database import ConnectionManager, get_connection_manager
from httpsql.core import drivers
from httpsql.core.schemas import Catalog


# =========================
# Fake backend
# =========================
class FakeConnection:
    def __init__(self, driver):
        self.driver = driver
        self.closed = False
        self.alive = True

    async def ping(self):
        if not self.alive:
            raise OSError("connection reset by peer")

    async def query(self, statement, params):
        self.driver.statements.append((statement, list(params)))
        if self.driver.query_error:
            raise RuntimeError(self.driver.query_error)
        return self.driver.columns, self.driver.rows

    async def close(self):
        self.closed = True


class FakeDriver:
    """Records what it is asked to run and answers with canned rows."""

    def __init__(self, name="fake"):
        self.name = name
        self.opened = []
        self.statements = []
        self.fail_open = False
        self.query_error = None
        self.columns = ["n"]
        self.rows = [(7,)]

    def placeholder(self, position):
        return "?"

    async def open(self, connection_string):
        # Yield once so concurrent opens can interleave
        await asyncio.sleep(0)
        if self.fail_open:
            raise OSError("connection refused")
        connection = FakeConnection(self)
        self.opened.append(connection)
        return connection


@pytest.fixture
def fake_driver(monkeypatch):
    driver = FakeDriver("fake")
    # Removed from the registry again on teardown
    monkeypatch.setitem(drivers._DRIVERS, driver.name, driver)
    return driver


# =========================
# SQLite catalog
# =========================
@pytest.fixture
def sales_db(tmp_path):
    path = tmp_path / "sales.db"
    conn = sqlite3.connect(path)
    conn.executescript(
        """
        CREATE TABLE orders (id INTEGER PRIMARY KEY, customer TEXT, amount REAL, note BLOB);
        INSERT INTO orders VALUES (1, 'alice', 10.5, NULL);
        INSERT INTO orders VALUES (2, 'bob', 20, x'6869');
        INSERT INTO orders VALUES (42, 'alice', 7.25, NULL);
        """
    )
    conn.commit()
    conn.close()
    return path


@pytest.fixture
def catalog(sales_db):
    return Catalog.model_validate(
        {
            "Databases": {
                "sales": {
                    "Driver": "sqlite3",
                    "Dns": str(sales_db),
                    "Metrics": ["count", "orders", "add", "broken", "dangling"],
                },
                "docs": {
                    "Driver": "sqlite3",
                    "Dns": str(sales_db),
                    "Metrics": ["count"],
                },
                "stub": {
                    "Driver": "fake",
                    "Dns": "fake://stub",
                    "Metrics": ["count"],
                },
                "offline": {
                    "Driver": "nosuchdriver",
                    "Dns": "nowhere",
                    "Metrics": ["count"],
                },
            },
            "Metrics": {
                "count": {
                    "Query": "SELECT COUNT(*) AS n FROM #table WHERE id=$id",
                    "Description": "Rows matching an id",
                },
                "orders": {
                    "Query": "SELECT id, customer, amount, note FROM orders WHERE customer=$customer ORDER BY id",
                    "Description": "Orders of one customer",
                },
                "add": {
                    "Query": "INSERT INTO orders (id, customer, amount) VALUES ($id, $customer, 1)",
                    "Description": "Record an order",
                },
                "broken": {
                    "Query": "SELECT * FROM no_such_table",
                    "Description": "Always fails",
                },
                "secret": {
                    "Query": "SELECT 1 AS one",
                    "Description": "Not allowed anywhere",
                },
            },
        }
    )


@pytest_asyncio.fixture(scope="function")
async def connections():
    manager = ConnectionManager()
    yield manager
    await manager.close()


# Client
@pytest_asyncio.fixture(scope="function")
async def client(catalog, connections):
    app.dependency_overrides[get_catalog] = lambda: catalog
    app.dependency_overrides[get_connection_manager] = lambda: connections

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
