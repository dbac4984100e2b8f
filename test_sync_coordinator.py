"""
Sync Coordinator Tests

Validates pull-only synchronization:
1. Each synchronize_* pulls exactly its own table
2. seed_local_data pulls every table in order as one timed operation
3. A failing pull is reported, never raised, and leaves cached rows intact
"""

import asyncio

from connectors.remote_base import RemoteServiceError


class RecordingRemote:
    """Wraps a connector and records which tables were read, in order."""

    def __init__(self, inner, fail_on=None):
        self.inner = inner
        self.reads = []
        self.fail_on = fail_on or set()

    async def read_table(self, table_name):
        self.reads.append(table_name)
        if table_name in self.fail_on:
            raise RemoteServiceError(f"{table_name} unavailable", 503)
        return await self.inner.read_table(table_name)


class TestSynchronize:

    def test_each_sync_pulls_its_own_table(self, make_client, remote):
        client = make_client()

        asyncio.run(client.synchronize_orders())
        asyncio.run(client.synchronize_accounts())
        asyncio.run(client.synchronize_categories())
        asyncio.run(client.synchronize_products())

        assert dict(remote.read_counts) == {
            "Order": 1,
            "Account": 1,
            "CatalogCategory": 1,
            "CatalogProduct": 1,
        }
        assert client.store.count("Order") == 5
        assert client.store.count("CatalogProduct") == 3

    def test_operations_are_named(self, make_client, telemetry):
        client = make_client()

        asyncio.run(client.synchronize_orders())
        asyncio.run(client.synchronize_accounts())
        asyncio.run(client.synchronize_categories())
        asyncio.run(client.synchronize_products())

        assert telemetry.timed == [
            "TimeToSynchronizeOrders",
            "TimeToSynchronizeAccounts",
            "TimeToSynchronizeCategories",
            "TimeToSynchronizeProducts",
        ]

    def test_seed_pulls_all_tables_in_order(self, make_client, remote, telemetry):
        client = make_client()
        recorder = RecordingRemote(remote)
        client.sync_client.remote = recorder

        asyncio.run(client.seed_local_data())

        assert recorder.reads == ["Order", "Account", "CatalogCategory", "CatalogProduct"]
        assert telemetry.timed == ["TimeToSyncDB"]
        assert telemetry.errors == []


class TestPullFailures:

    def test_failed_pull_keeps_cached_rows(self, make_client, remote, telemetry):
        """A remote failure returns normally and leaves the cache as it was."""
        client = make_client()
        asyncio.run(client.seed_local_data())
        accounts_before = asyncio.run(client.get_accounts())

        client.cache.accounts.remote = RecordingRemote(remote, fail_on={"Account"})
        asyncio.run(client.synchronize_accounts())

        assert asyncio.run(client.get_accounts()) == accounts_before
        assert telemetry.error_types() == ["RemoteServiceError"]

    def test_seed_stops_at_first_failure(self, make_client, remote, telemetry):
        client = make_client()
        recorder = RecordingRemote(remote, fail_on={"CatalogCategory"})
        client.sync_client.remote = recorder

        asyncio.run(client.seed_local_data())

        assert recorder.reads == ["Order", "Account", "CatalogCategory"]
        assert client.store.count("Order") == 5
        assert client.store.count("CatalogCategory") == 0
        assert telemetry.error_types() == ["RemoteServiceError"]

    def test_invalid_remote_row_leaves_table_unchanged(self, make_client, remote, catalog_tables, telemetry):
        client = make_client()
        asyncio.run(client.synchronize_categories())

        rows = catalog_tables["CatalogCategory"] + [
            {"id": "bad", "parentCategoryId": "R", "sequence": "not-a-number"}
        ]
        remote.set_rows("CatalogCategory", rows)
        asyncio.run(client.synchronize_categories())

        assert client.store.count("CatalogCategory") == 4
        assert telemetry.error_types() == ["ValidationError"]

    def test_soft_deleted_rows_are_removed(self, make_client, remote, catalog_tables):
        client = make_client()
        asyncio.run(client.synchronize_products())

        rows = catalog_tables["CatalogProduct"]
        rows[2]["deleted"] = True
        remote.set_rows("CatalogProduct", rows)
        asyncio.run(client.synchronize_products())

        assert sorted(p.id for p in asyncio.run(client.get_products("B"))) == ["p2"]
