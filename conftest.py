"""Shared fixtures for the data client tests.

The catalog fixture is the reference hierarchy used across the tests:

    R (root)
    ├── A (seq 1, has sub-categories)
    │   └── L (leaf) ── p1
    └── B (seq 2, leaf) ── p2
"""

from contextlib import contextmanager

import pytest


class RecordingTelemetry:
    """Telemetry sink that remembers what it was told."""

    def __init__(self):
        self.timed = []
        self.errors = []

    @contextmanager
    def track_time(self, name):
        self.timed.append(name)
        yield

    def report_error(self, error, severity=None):
        self.errors.append((error, severity))

    def error_types(self):
        return [type(e).__name__ for e, _ in self.errors]


def category(id, parent, name, sequence=0, has_sub=False):
    return {
        "id": id,
        "parentCategoryId": parent,
        "name": name,
        "sequence": sequence,
        "hasSubCategories": has_sub,
    }


def product(id, category_id, name, description=None, price="10.00"):
    return {
        "id": id,
        "categoryId": category_id,
        "name": name,
        "description": description,
        "price": price,
    }


@pytest.fixture
def catalog_tables():
    """Remote rows for every table, keyed by remote table name."""
    return {
        "CatalogCategory": [
            category("R", None, "Root", 0, True),
            # Inserted out of sequence order on purpose
            category("B", "R", "Bikes", 2, False),
            category("A", "R", "Accessories", 1, True),
            category("L", "A", "Lights", 1, False),
        ],
        "CatalogProduct": [
            product("p1", "L", "widget-9000", "Front light"),
            product("p2", "B", "Roadster", "A fast Widget-compatible bike"),
            product("p3", "B", "Saddle", "Leather seat"),
        ],
        "Account": [
            {"id": "a1", "company": "Fabrikam", "isLead": False},
            {"id": "a2", "company": "Contoso", "isLead": False},
            {"id": "a3", "company": "Northwind", "isLead": True},
        ],
        "Order": [
            {"id": "o1", "accountId": "a1", "isOpen": True,
             "dueDate": "2024-05-01T00:00:00Z", "closedDate": "", "item": "Roadster"},
            {"id": "o2", "accountId": "a1", "isOpen": True,
             "dueDate": "2024-04-01T00:00:00Z", "closedDate": "", "item": "Saddle"},
            {"id": "o3", "accountId": "a1", "isOpen": False,
             "dueDate": "2024-01-01T00:00:00Z", "closedDate": "2024-01-10T00:00:00Z", "item": "Light"},
            {"id": "o4", "accountId": "a1", "isOpen": False,
             "dueDate": "2024-02-01T00:00:00Z", "closedDate": "2024-02-20T00:00:00Z", "item": "Bell"},
            {"id": "o5", "accountId": "a2", "isOpen": True,
             "dueDate": "2024-03-01T00:00:00Z", "item": "Pump"},
        ],
    }


@pytest.fixture
def store_path(tmp_path):
    return str(tmp_path / "syncstore.db")


@pytest.fixture
def telemetry():
    return RecordingTelemetry()


@pytest.fixture
def remote(catalog_tables):
    from connectors.memory import InMemoryConnector
    return InMemoryConnector(tables=catalog_tables)


@pytest.fixture
def make_client(store_path, remote, telemetry):
    """Factory for DataClients over the in-memory remote and a temp store."""
    from data_client import DataClient
    from local_store import SQLiteStore

    def factory(**kwargs):
        return DataClient(remote, SQLiteStore(store_path), telemetry, **kwargs)

    return factory
