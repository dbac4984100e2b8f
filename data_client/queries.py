"""Query facade - typed reads and local saves over the cached tables.

Every public method ensures the local cache is initialized, then runs its
table operation inside the fault boundary. Reads fall back to an empty
list (or None for single results) when the operation fails.

find_root_category(), find_category() and child_categories() are
unwrapped primitives for callers that are already inside a boundary,
such as the catalog hierarchy resolver.
"""

from typing import List, Optional

from core.models.entities import Account, Category, Order, Product
from data_client.cache_manager import LocalCacheManager
from data_client.errors import (
    AmbiguousProductNameError,
    MultipleRootCategoriesError,
    NoRootCategoryError,
)
from data_client.fault_boundary import FaultBoundary


class QueryFacade:
    """Filtered, ordered reads plus account/order saves and deletes."""

    def __init__(self, cache: LocalCacheManager, boundary: FaultBoundary):
        self.cache = cache
        self.boundary = boundary

    # =========================================================================
    # Accounts and Orders
    # =========================================================================

    async def get_accounts(self, leads: bool = False) -> List[Account]:
        """Accounts (or leads), ordered by company name."""
        async def work():
            await self.cache.ensure_initialized()
            return await self.cache.accounts.where(is_lead=leads).order_by("company").to_list()
        return await self.boundary.execute("TimeToGetAccountList", work, [])

    async def get_open_orders_for_account(self, account_id: str) -> List[Order]:
        """Open orders of an account, soonest due first."""
        async def work():
            await self.cache.ensure_initialized()
            return await (
                self.cache.orders.where(account_id=account_id, is_open=True)
                .order_by("due_date")
                .to_list()
            )
        return await self.boundary.execute("TimeToGetOrders", work, [])

    async def get_closed_orders_for_account(self, account_id: str) -> List[Order]:
        """Closed orders of an account, most recently closed first."""
        async def work():
            await self.cache.ensure_initialized()
            return await (
                self.cache.orders.where(account_id=account_id, is_open=False)
                .order_by_descending("closed_date")
                .to_list()
            )
        return await self.boundary.execute("TimeToGetAccountHistory", work, [])

    async def get_all_orders(self) -> List[Order]:
        async def work():
            await self.cache.ensure_initialized()
            return await self.cache.orders.to_list()
        return await self.boundary.execute("TimeToGetAllOrders", work, [])

    # =========================================================================
    # Catalog
    # =========================================================================

    async def get_categories(self, parent_category_id: Optional[str] = None) -> List[Category]:
        """Child categories of a parent, ordered by sequence.

        With no parent (None or blank) the children of the root category
        are returned, i.e. the top-level categories.
        """
        async def work():
            await self.cache.ensure_initialized()
            parent_id = parent_category_id
            if parent_id is None or parent_id.strip() == "":
                parent_id = (await self.find_root_category()).id
            return await self.child_categories(parent_id)
        return await self.boundary.execute("TimeToGetCategories", work, [])

    async def get_products(self, category_id: str) -> List[Product]:
        """Products owned by a category."""
        async def work():
            await self.cache.ensure_initialized()
            return await self.cache.products.where(category_id=category_id).to_list()
        return await self.boundary.execute("TimeToGetProducts", work, [])

    async def get_product_by_name(self, name: str) -> Optional[Product]:
        """The product with exactly this name, or None.

        Raises:
            AmbiguousProductNameError: More than one product has the name
        """
        async def work():
            await self.cache.ensure_initialized()
            matches = await self.cache.products.where(name=name).to_list()
            if len(matches) > 1:
                raise AmbiguousProductNameError(name, len(matches))
            return matches[0] if matches else None
        return await self.boundary.execute("TimeToGetProductByName", work, None)

    async def search(self, term: str) -> List[Product]:
        """Products whose name or description contains the term, any case."""
        async def work():
            await self.cache.ensure_initialized()
            matches = await self.cache.products.search(term, "name", "description").to_list()
            seen = set()
            unique = []
            for product in matches:
                if product.id not in seen:
                    seen.add(product.id)
                    unique.append(product)
            return unique
        return await self.boundary.execute("TimeToSearchProducts", work, [])

    # =========================================================================
    # Local saves and deletes
    # =========================================================================

    async def save_order(self, order: Order) -> None:
        """Insert a new order (no id yet) or update an existing one."""
        async def work():
            await self.cache.ensure_initialized()
            if order.id is None:
                await self.cache.orders.insert(order)
            else:
                await self.cache.orders.update(order)
        await self.boundary.run("TimeToSaveOrder", work)

    async def delete_order(self, order: Order) -> None:
        async def work():
            await self.cache.ensure_initialized()
            await self.cache.orders.delete(order)
        await self.boundary.run("TimeToDeleteOrder", work)

    async def save_account(self, account: Account) -> None:
        """Insert a new account (no id yet) or update an existing one."""
        async def work():
            await self.cache.ensure_initialized()
            if account.id is None:
                await self.cache.accounts.insert(account)
            else:
                await self.cache.accounts.update(account)
        await self.boundary.run("TimeToSaveAccount", work)

    async def delete_account(self, account: Account) -> None:
        async def work():
            await self.cache.ensure_initialized()
            await self.cache.accounts.delete(account)
        await self.boundary.run("TimeToDeleteAccount", work)

    # =========================================================================
    # Unwrapped catalog primitives
    # =========================================================================

    async def find_root_category(self) -> Category:
        """The unique category without a parent.

        Raises:
            NoRootCategoryError: No category lacks a parent
            MultipleRootCategoriesError: More than one does
        """
        roots = await self.cache.categories.where(parent_category_id=None).to_list()
        if not roots:
            raise NoRootCategoryError()
        if len(roots) > 1:
            raise MultipleRootCategoriesError(len(roots))
        return roots[0]

    async def find_category(self, category_id: str) -> Optional[Category]:
        return await self.cache.categories.lookup(category_id)

    async def child_categories(self, parent_id: str) -> List[Category]:
        """Direct children of a category, ordered by sequence."""
        return await (
            self.cache.categories.where(parent_category_id=parent_id)
            .order_by("sequence")
            .to_list()
        )
