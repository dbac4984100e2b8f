"""Abstract Remote Data Source Interface.

This module defines the interface every remote connector implements.
It is intentionally service-agnostic - no mobile service specifics here.

Connectors implement this interface to:
1. Connect to their remote service
2. Read the full contents of a logical table (following paging)

Key Design Principles:
- read_table returns plain dicts in the remote (camelCase) shape;
  the local store validates them into core.models entities
- There is NO push/write method: the local cache is a pull-only mirror
  and local edits are never sent back
- Connector instances are created explicitly and injected; there is no
  process-wide client singleton
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


# =============================================================================
# Enums
# =============================================================================

class RemoteConnectionStatus(str, Enum):
    """Connection status to the remote service."""
    CONNECTED = "CONNECTED"
    DISCONNECTED = "DISCONNECTED"
    FAILED = "FAILED"
    RATE_LIMITED = "RATE_LIMITED"


# =============================================================================
# Errors
# =============================================================================

class RemoteServiceError(Exception):
    """Base exception for remote service failures."""
    def __init__(self, message: str, status_code: int = 0, response_body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class RemoteOperationRejectedError(RemoteServiceError):
    """The remote service rejected the operation (4xx)."""
    pass


class RemoteRateLimitError(RemoteServiceError):
    """Rate limit exceeded (429) after all retries."""
    def __init__(self, message: str, retry_after: int = 60):
        super().__init__(message, 429)
        self.retry_after = retry_after


# =============================================================================
# Configuration
# =============================================================================

@dataclass
class RemoteConfig:
    """Configuration for a remote connector.

    Generic configuration that can be extended by specific connectors.
    """
    connector_type: str                     # "mobile_service", "memory"
    base_url: Optional[str] = None          # Service endpoint
    api_version: str = "2.0.0"
    timeout_seconds: int = 30
    page_size: int = 50
    max_retries: int = 3

    # Connector-specific settings
    custom_settings: Dict[str, Any] = field(default_factory=dict)


# =============================================================================
# Abstract Connector Interface
# =============================================================================

class RemoteDataSource(ABC):
    """Abstract base class for remote connectors.

    Implementations:
    - connectors/mobile_service/ms_connector.py
    - connectors/memory/memory_connector.py
    """

    def __init__(self, config: RemoteConfig):
        self.config = config
        self._connection_status = RemoteConnectionStatus.DISCONNECTED

    # -------------------------------------------------------------------------
    # Connection Management
    # -------------------------------------------------------------------------

    @abstractmethod
    async def connect(self) -> bool:
        """Establish a connection to the remote service.

        Returns:
            True if the connection is usable
        """
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Release the connection."""
        pass

    @property
    def connection_status(self) -> RemoteConnectionStatus:
        """Current connection status."""
        return self._connection_status

    # -------------------------------------------------------------------------
    # Table Reads
    # -------------------------------------------------------------------------

    @abstractmethod
    async def read_table(self, table_name: str) -> List[Dict[str, Any]]:
        """Read every row of a remote table, including soft-deleted rows.

        Args:
            table_name: Remote table name (e.g., "CatalogCategory")

        Returns:
            Rows as dicts in the remote shape

        Raises:
            RemoteOperationRejectedError: The service rejected the read
            RemoteServiceError: Network or server failure after retries
        """
        pass

    def get_connector_name(self) -> str:
        """Get the name of this connector."""
        return self.config.connector_type


# =============================================================================
# Connector Factory
# =============================================================================

_connector_registry: Dict[str, type] = {}


def register_connector(connector_type: str):
    """Decorator to register a connector implementation."""
    def decorator(cls):
        _connector_registry[connector_type] = cls
        return cls
    return decorator


def create_connector(config: RemoteConfig) -> RemoteDataSource:
    """Create a connector instance from configuration.

    Args:
        config: RemoteConfig with connector_type specified

    Returns:
        Configured connector instance

    Raises:
        ValueError: If connector_type is not registered
    """
    connector_type = config.connector_type.lower()

    if connector_type not in _connector_registry:
        available = list(_connector_registry.keys())
        raise ValueError(
            f"Unknown connector type: {connector_type}. "
            f"Available: {available}"
        )

    connector_class = _connector_registry[connector_type]
    return connector_class(config)


def list_available_connectors() -> List[str]:
    """List all registered connector types."""
    return list(_connector_registry.keys())
