"""Data client facade.

Composes the local cache, the sync coordinator, the query facade and the
catalog hierarchy resolver behind one object. Collaborators are injected:

    remote = InMemoryConnector(tables=fixture)
    client = DataClient(remote, SQLiteStore("syncstore.db"))
    await client.seed_local_data()
    categories = await client.get_categories()

or built from configuration:

    client = DataClient.from_config(SyncClientConfig.from_env())
"""

from typing import List, Optional

from connectors.remote_base import RemoteConfig, RemoteDataSource, create_connector
from core.config import SyncClientConfig
from core.models.entities import Account, Category, Order, Product
from core.observability.logging import configure_logging, get_logger
from core.observability.metrics import MetricsCollector, TelemetrySink, get_metrics
from data_client.cache_manager import LocalCacheManager
from data_client.fault_boundary import FaultBoundary
from data_client.hierarchy import DEFAULT_MAX_DEPTH, CatalogHierarchyResolver
from data_client.queries import QueryFacade
from data_client.sync_coordinator import SyncCoordinator
from local_store.client import SyncClient
from local_store.store import SQLiteStore

logger = get_logger(__name__)


class DataClient:
    """Local-first access to accounts, orders and the product catalog."""

    def __init__(
        self,
        remote: RemoteDataSource,
        store: SQLiteStore,
        telemetry: Optional[TelemetrySink] = None,
        operation_timeout_seconds: Optional[float] = None,
        max_category_depth: int = DEFAULT_MAX_DEPTH,
        propagate_consistency_errors: bool = True,
    ):
        self.remote = remote
        self.store = store
        self.telemetry = telemetry if telemetry is not None else get_metrics()

        self.sync_client = SyncClient(remote)
        self.boundary = FaultBoundary(
            self.telemetry,
            timeout_seconds=operation_timeout_seconds,
            propagate_consistency_errors=propagate_consistency_errors,
        )
        self.cache = LocalCacheManager(self.sync_client, store, self.telemetry)
        self.sync = SyncCoordinator(self.cache, self.boundary)
        self.queries = QueryFacade(self.cache, self.boundary)
        self.catalog = CatalogHierarchyResolver(self.queries, self.boundary, max_category_depth)

    @classmethod
    def from_config(cls, config: Optional[SyncClientConfig] = None) -> "DataClient":
        """Build a client, its connector, store and telemetry from configuration.

        Also configures logging once for the process.
        """
        config = config or SyncClientConfig.from_env()
        configure_logging(
            level=config.log_level,
            json_format=config.json_logs,
        )

        custom_settings = {}
        if config.fixture_path:
            custom_settings["fixture_path"] = config.fixture_path

        remote = create_connector(RemoteConfig(
            connector_type=config.connector_type,
            base_url=config.remote_url,
            api_version=config.api_version,
            timeout_seconds=config.request_timeout_seconds,
            page_size=config.page_size,
            max_retries=config.max_retries,
            custom_settings=custom_settings,
        ))
        telemetry = MetricsCollector(config.metrics_db_path) if config.metrics_db_path else get_metrics()

        logger.info(
            f"Data client using {remote.get_connector_name()} connector, cache at {config.store_path}"
        )
        return cls(
            remote,
            SQLiteStore(config.store_path),
            telemetry,
            operation_timeout_seconds=config.operation_timeout_seconds,
            max_category_depth=config.max_category_depth,
            propagate_consistency_errors=config.propagate_consistency_errors,
        )

    async def close(self) -> None:
        """Release the remote connection."""
        await self.remote.disconnect()

    async def __aenter__(self) -> "DataClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # =========================================================================
    # Cache
    # =========================================================================

    @property
    def local_db_exists(self) -> bool:
        return self.cache.local_db_exists

    async def ensure_initialized(self) -> None:
        await self.cache.ensure_initialized()

    # =========================================================================
    # Sync
    # =========================================================================

    async def synchronize_orders(self) -> None:
        await self.sync.synchronize_orders()

    async def synchronize_accounts(self) -> None:
        await self.sync.synchronize_accounts()

    async def synchronize_categories(self) -> None:
        await self.sync.synchronize_categories()

    async def synchronize_products(self) -> None:
        await self.sync.synchronize_products()

    async def seed_local_data(self) -> None:
        await self.sync.seed_local_data()

    # =========================================================================
    # Queries
    # =========================================================================

    async def get_accounts(self, leads: bool = False) -> List[Account]:
        return await self.queries.get_accounts(leads)

    async def get_open_orders_for_account(self, account_id: str) -> List[Order]:
        return await self.queries.get_open_orders_for_account(account_id)

    async def get_closed_orders_for_account(self, account_id: str) -> List[Order]:
        return await self.queries.get_closed_orders_for_account(account_id)

    async def get_all_orders(self) -> List[Order]:
        return await self.queries.get_all_orders()

    async def get_categories(self, parent_category_id: Optional[str] = None) -> List[Category]:
        return await self.queries.get_categories(parent_category_id)

    async def get_products(self, category_id: str) -> List[Product]:
        return await self.queries.get_products(category_id)

    async def get_product_by_name(self, name: str) -> Optional[Product]:
        return await self.queries.get_product_by_name(name)

    async def search(self, term: str) -> List[Product]:
        return await self.queries.search(term)

    async def get_all_child_products(self, top_level_category_id: str) -> List[Product]:
        return await self.catalog.get_all_child_products(top_level_category_id)

    # =========================================================================
    # Local saves and deletes
    # =========================================================================

    async def save_order(self, order: Order) -> None:
        await self.queries.save_order(order)

    async def delete_order(self, order: Order) -> None:
        await self.queries.delete_order(order)

    async def save_account(self, account: Account) -> None:
        await self.queries.save_account(account)

    async def delete_account(self, account: Account) -> None:
        await self.queries.delete_account(account)
