"""Sync coordinator - pull-only refresh of the local tables.

Each table is refreshed with a full, unfiltered pull from the remote data
source. Nothing is ever pushed back: local saves and deletes stay local
until the next pull overwrites them.
"""

from core.observability.logging import get_logger
from data_client.cache_manager import LocalCacheManager
from data_client.fault_boundary import FaultBoundary
from local_store.sync_table import SyncTable

logger = get_logger(__name__)


class SyncCoordinator:
    """Per-table pull operations, each isolated by the fault boundary."""

    def __init__(self, cache: LocalCacheManager, boundary: FaultBoundary):
        self.cache = cache
        self.boundary = boundary

    async def synchronize_orders(self) -> None:
        async def work():
            await self.cache.ensure_initialized()
            await self.cache.orders.pull()
        await self.boundary.run("TimeToSynchronizeOrders", work)

    async def synchronize_accounts(self) -> None:
        async def work():
            await self.cache.ensure_initialized()
            await self.cache.accounts.pull()
        await self.boundary.run("TimeToSynchronizeAccounts", work)

    async def synchronize_categories(self) -> None:
        async def work():
            await self.cache.ensure_initialized()
            await self.cache.categories.pull()
        await self.boundary.run("TimeToSynchronizeCategories", work)

    async def synchronize_products(self) -> None:
        async def work():
            await self.cache.ensure_initialized()
            await self.cache.products.pull()
        await self.boundary.run("TimeToSynchronizeProducts", work)

    async def seed_local_data(self) -> None:
        """Pull every table, one after another, as a single operation.

        A failure stops the remaining pulls; tables already pulled keep
        their new contents.
        """
        async def work():
            await self.cache.ensure_initialized()
            for table in (
                self.cache.orders,
                self.cache.accounts,
                self.cache.categories,
                self.cache.products,
            ):
                await table.pull()
                await self._log_count(table)

        await self.boundary.run("TimeToSyncDB", work)

    async def _log_count(self, table: SyncTable) -> None:
        count = await table.count()
        logger.debug(f"Local table {table.table_name} now holds {count} rows")
