"""Local cache manager - lazy, idempotent setup of the local store.

ensure_initialized() is called at the top of every public data client
operation. The first call defines the four tables, initializes the sync
context and acquires the table handles; later calls return immediately.

A failed initialization is logged and reported but not raised. The
handles are still acquired, and any operation on them then fails with
LocalStoreError inside the caller's fault boundary.
"""

from typing import Optional

from core.models.entities import ALL_ENTITIES, Account, Category, Order, Product
from core.observability.logging import get_logger, with_correlation
from core.observability.metrics import Severity, TelemetrySink
from local_store.client import SyncClient
from local_store.store import SQLiteStore
from local_store.sync_table import SyncTable

logger = get_logger(__name__)


class LocalCacheManager:
    """Owns the local store and the sync table handles."""

    def __init__(self, sync_client: SyncClient, store: SQLiteStore, telemetry: TelemetrySink):
        self.sync_client = sync_client
        self.store = store
        self.telemetry = telemetry

        self.orders: Optional[SyncTable[Order]] = None
        self.accounts: Optional[SyncTable[Account]] = None
        self.categories: Optional[SyncTable[Category]] = None
        self.products: Optional[SyncTable[Product]] = None

    @property
    def local_db_exists(self) -> bool:
        """True once the sync context has been initialized."""
        return self.sync_client.sync_context.is_initialized

    async def ensure_initialized(self) -> None:
        """Initialize the local store on first use."""
        if self.local_db_exists:
            return

        with with_correlation(store_path=str(self.store.db_path)):
            for model_cls in ALL_ENTITIES:
                self.store.define_table(model_cls)

            try:
                await self.sync_client.sync_context.initialize(self.store)
                logger.info(f"Local cache initialized at {self.store.db_path}")
            except Exception as e:
                logger.error(f"Failed to initialize local cache: {e}", exc_info=True)
                try:
                    self.telemetry.report_error(e, Severity.ERROR)
                except Exception as report_error:
                    logger.warning(f"Telemetry report failed: {report_error}")

        self.orders = self.sync_client.get_sync_table(Order)
        self.accounts = self.sync_client.get_sync_table(Account)
        self.categories = self.sync_client.get_sync_table(Category)
        self.products = self.sync_client.get_sync_table(Product)
