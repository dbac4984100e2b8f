"""Remote Connectors - Pluggable remote data sources.

This package contains the abstract remote interface and concrete
implementations (mobile service HTTP API, in-memory fixtures).

Core models and the local store are service-neutral. This package handles:
- Remote communication (paging, retries, error mapping)
- Returning rows in the remote shape for the local store to validate

Key Design Principle:
- The data client depends ONLY on the RemoteDataSource interface
- There is no push path: remotes are read, never written

To add a new remote:
1. Create a new folder (e.g., rest_api/)
2. Implement RemoteDataSource
3. Register using @register_connector decorator
"""

from connectors.remote_base import (
    # Core interface
    RemoteDataSource,
    RemoteConfig,
    RemoteConnectionStatus,

    # Errors
    RemoteServiceError,
    RemoteOperationRejectedError,
    RemoteRateLimitError,

    # Factory functions
    create_connector,
    register_connector,
    list_available_connectors,
)

# Importing the implementations registers them
from connectors.mobile_service import MobileServiceConnector
from connectors.memory import InMemoryConnector

__all__ = [
    # Core interface
    "RemoteDataSource",
    "RemoteConfig",
    "RemoteConnectionStatus",

    # Errors
    "RemoteServiceError",
    "RemoteOperationRejectedError",
    "RemoteRateLimitError",

    # Implementations
    "MobileServiceConnector",
    "InMemoryConnector",

    # Factory
    "create_connector",
    "register_connector",
    "list_available_connectors",
]
