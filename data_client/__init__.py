"""CRM data client.

Local-first access to CRM data: a SQLite cache lazily initialized on
first use, pull-only synchronization from the remote service, and
fault-isolated, timed queries over the cached tables.
"""

from data_client.errors import (
    CatalogConsistencyError,
    NoRootCategoryError,
    MultipleRootCategoriesError,
    CategoryNotFoundError,
    NotTopLevelCategoryError,
    AmbiguousProductNameError,
    CategoryDepthExceededError,
)
from data_client.fault_boundary import FaultBoundary
from data_client.cache_manager import LocalCacheManager
from data_client.sync_coordinator import SyncCoordinator
from data_client.queries import QueryFacade
from data_client.hierarchy import CatalogHierarchyResolver
from data_client.client import DataClient

__all__ = [
    "DataClient",
    "FaultBoundary",
    "LocalCacheManager",
    "SyncCoordinator",
    "QueryFacade",
    "CatalogHierarchyResolver",
    # Errors
    "CatalogConsistencyError",
    "NoRootCategoryError",
    "MultipleRootCategoriesError",
    "CategoryNotFoundError",
    "NotTopLevelCategoryError",
    "AmbiguousProductNameError",
    "CategoryDepthExceededError",
]
