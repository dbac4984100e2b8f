"""
Query Facade Tests

Validates typed reads and local saves over a seeded cache:
1. Account and order filters and orderings
2. Category listing by parent (root resolution for a blank parent)
3. Product lookups and case-insensitive search
4. Save routes to insert or update; delete removes locally
5. Failures fall back to the declared defaults
"""

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from core.models.entities import Account, Order
from data_client.errors import (
    AmbiguousProductNameError,
    MultipleRootCategoriesError,
    NoRootCategoryError,
)
from local_store import LocalStoreError


@pytest.fixture
def seeded(make_client):
    client = make_client()
    asyncio.run(client.seed_local_data())
    return client


class TestAccountsAndOrders:

    def test_accounts_ordered_by_company(self, seeded):
        accounts = asyncio.run(seeded.get_accounts())
        assert [a.company for a in accounts] == ["Contoso", "Fabrikam"]

    def test_leads(self, seeded):
        leads = asyncio.run(seeded.get_accounts(leads=True))
        assert [a.id for a in leads] == ["a3"]

    def test_open_orders_soonest_due_first(self, seeded):
        orders = asyncio.run(seeded.get_open_orders_for_account("a1"))
        assert [o.id for o in orders] == ["o2", "o1"]
        assert all(o.is_open for o in orders)

    def test_closed_orders_latest_first(self, seeded):
        orders = asyncio.run(seeded.get_closed_orders_for_account("a1"))
        assert [o.id for o in orders] == ["o4", "o3"]

    def test_order_dates_sort_by_instant_across_offsets(self, seeded):
        """10:00+05:00 is 05:00 UTC, so it falls due before 06:00Z."""
        plus_five = timezone(timedelta(hours=5))
        for order in [
            Order(item="late", account_id="a9", is_open=True,
                  due_date="2024-06-01T06:00:00Z"),
            Order(item="early", account_id="a9", is_open=True,
                  due_date=datetime(2024, 6, 1, 10, 0, tzinfo=plus_five)),
            Order(item="closed-late", account_id="a9", is_open=False,
                  closed_date="2024-06-01T23:30:00Z"),
            Order(item="closed-early", account_id="a9", is_open=False,
                  closed_date=datetime(2024, 6, 2, 1, 0, tzinfo=plus_five)),
        ]:
            asyncio.run(seeded.save_order(order))

        open_orders = asyncio.run(seeded.get_open_orders_for_account("a9"))
        closed_orders = asyncio.run(seeded.get_closed_orders_for_account("a9"))

        assert [o.item for o in open_orders] == ["early", "late"]
        assert open_orders[0].due_date == datetime(2024, 6, 1, 5, 0, tzinfo=timezone.utc)
        assert [o.item for o in closed_orders] == ["closed-late", "closed-early"]

    def test_all_orders(self, seeded):
        orders = asyncio.run(seeded.get_all_orders())
        assert sorted(o.id for o in orders) == ["o1", "o2", "o3", "o4", "o5"]


class TestCategories:

    def test_top_level_categories_in_sequence_order(self, seeded):
        """No parent means the children of the root."""
        assert [c.id for c in asyncio.run(seeded.get_categories(None))] == ["A", "B"]
        assert [c.id for c in asyncio.run(seeded.get_categories(""))] == ["A", "B"]

    def test_children_of_a_category(self, seeded):
        assert [c.id for c in asyncio.run(seeded.get_categories("A"))] == ["L"]
        assert asyncio.run(seeded.get_categories("L")) == []

    def test_every_child_listed_once_under_its_parent(self, seeded, catalog_tables):
        for row in catalog_tables["CatalogCategory"]:
            parent = row["parentCategoryId"]
            if parent is None:
                continue
            ids = [c.id for c in asyncio.run(seeded.get_categories(parent))]
            assert ids.count(row["id"]) == 1

    def test_missing_root_is_a_consistency_error(self, make_client, remote, catalog_tables, telemetry):
        rows = [r for r in catalog_tables["CatalogCategory"] if r["id"] != "R"]
        remote.set_rows("CatalogCategory", rows)
        client = make_client()
        asyncio.run(client.synchronize_categories())

        with pytest.raises(NoRootCategoryError):
            asyncio.run(client.get_categories())
        assert "NoRootCategoryError" in telemetry.error_types()

    def test_multiple_roots_is_a_consistency_error(self, make_client, remote, catalog_tables):
        rows = catalog_tables["CatalogCategory"] + [
            {"id": "R2", "parentCategoryId": None, "name": "Second root", "sequence": 0}
        ]
        remote.set_rows("CatalogCategory", rows)
        client = make_client()
        asyncio.run(client.synchronize_categories())

        with pytest.raises(MultipleRootCategoriesError):
            asyncio.run(client.get_categories())

    def test_consistency_error_degrades_when_configured(self, make_client, remote, catalog_tables):
        remote.set_rows("CatalogCategory", [])
        client = make_client(propagate_consistency_errors=False)
        asyncio.run(client.synchronize_categories())

        assert asyncio.run(client.get_categories()) == []


class TestProducts:

    def test_products_of_category(self, seeded):
        assert [p.id for p in asyncio.run(seeded.get_products("L"))] == ["p1"]
        assert sorted(p.id for p in asyncio.run(seeded.get_products("B"))) == ["p2", "p3"]

    def test_product_by_name(self, seeded):
        product = asyncio.run(seeded.get_product_by_name("Saddle"))
        assert product.id == "p3"
        assert asyncio.run(seeded.get_product_by_name("Unicycle")) is None

    def test_ambiguous_product_name(self, make_client, remote, catalog_tables):
        rows = catalog_tables["CatalogProduct"] + [
            {"id": "p4", "categoryId": "L", "name": "Saddle"}
        ]
        remote.set_rows("CatalogProduct", rows)
        client = make_client()
        asyncio.run(client.synchronize_products())

        with pytest.raises(AmbiguousProductNameError):
            asyncio.run(client.get_product_by_name("Saddle"))

    def test_search_matches_name_or_description_any_case(self, seeded):
        """Upper-case term matches a lower-case name and a mixed-case description."""
        found = asyncio.run(seeded.search("WIDGET"))

        ids = [p.id for p in found]
        assert sorted(ids) == ["p1", "p2"]
        assert len(ids) == len(set(ids))

    def test_search_matching_both_fields_returns_product_once(self, seeded):
        found = asyncio.run(seeded.search("e"))
        ids = [p.id for p in found]
        assert len(ids) == len(set(ids))
        assert "p3" in ids


class TestSaveAndDelete:

    def test_save_without_id_inserts(self, seeded):
        """A new entity goes to insert() on the table."""
        accounts = MagicMock()
        accounts.insert = AsyncMock()
        accounts.update = AsyncMock()
        seeded.cache.accounts = accounts

        account = Account(company="Tailspin")
        asyncio.run(seeded.save_account(account))

        accounts.insert.assert_awaited_once_with(account)
        accounts.update.assert_not_called()

    def test_save_with_id_updates(self, seeded):
        orders = MagicMock()
        orders.insert = AsyncMock()
        orders.update = AsyncMock()
        seeded.cache.orders = orders

        order = Order(id="o1", account_id="a1", is_open=False)
        asyncio.run(seeded.save_order(order))

        orders.update.assert_awaited_once_with(order)
        orders.insert.assert_not_called()

    def test_saved_account_is_readable(self, seeded, telemetry):
        account = Account(company="Adventure Works")
        asyncio.run(seeded.save_account(account))

        assert account.id is not None
        companies = [a.company for a in asyncio.run(seeded.get_accounts())]
        assert companies == ["Adventure Works", "Contoso", "Fabrikam"]
        assert "TimeToSaveAccount" in telemetry.timed

    def test_update_changes_stored_order(self, seeded):
        order = asyncio.run(seeded.get_open_orders_for_account("a2"))[0]
        order.is_open = False
        asyncio.run(seeded.save_order(order))

        assert asyncio.run(seeded.get_open_orders_for_account("a2")) == []

    def test_delete_removes_locally(self, seeded):
        account = asyncio.run(seeded.get_accounts())[0]
        asyncio.run(seeded.delete_account(account))
        assert [a.id for a in asyncio.run(seeded.get_accounts())] == ["a1"]

        order = asyncio.run(seeded.get_all_orders())[0]
        asyncio.run(seeded.delete_order(order))
        assert len(asyncio.run(seeded.get_all_orders())) == 4

    def test_update_of_missing_row_is_reported(self, seeded, telemetry):
        asyncio.run(seeded.save_account(Account(id="ghost", company="Nobody")))
        assert telemetry.error_types() == ["LocalStoreError"]


class TestDefaults:

    def test_read_failure_returns_empty_list(self, seeded, telemetry):
        failing = MagicMock()
        failing.where.side_effect = LocalStoreError("database is locked")
        seeded.cache.accounts = failing

        assert asyncio.run(seeded.get_accounts()) == []
        assert telemetry.error_types() == ["LocalStoreError"]

    def test_product_by_name_failure_returns_none(self, seeded):
        failing = MagicMock()
        failing.where.side_effect = LocalStoreError("database is locked")
        seeded.cache.products = failing

        assert asyncio.run(seeded.get_product_by_name("Saddle")) is None
