"""Mobile Service Connector.

Implements the RemoteDataSource interface for a mobile service table API.
"""

import logging
from typing import Any, Dict, List

from connectors.remote_base import (
    RemoteDataSource,
    RemoteConfig,
    RemoteConnectionStatus,
    RemoteRateLimitError,
    register_connector,
)
from connectors.mobile_service.ms_client import (
    MobileServiceApiConfig,
    MobileServiceHttpClient,
    RetryConfig,
)

logger = logging.getLogger(__name__)


@register_connector("mobile_service")
class MobileServiceConnector(RemoteDataSource):
    """Mobile service connector implementation.

    Required configuration:
    - base_url: Service root (tables are served under {base_url}/tables/)

    Optional configuration:
    - api_version: ZUMO-API-VERSION header (default: "2.0.0")
    - page_size, timeout_seconds, max_retries
    - custom_settings.retry_base_delay: First backoff delay in seconds
    """

    def __init__(self, config: RemoteConfig):
        super().__init__(config)

        if not config.base_url:
            raise ValueError("mobile_service connector requires base_url")

        api_config = MobileServiceApiConfig(
            base_url=config.base_url,
            api_version=config.api_version,
            timeout_seconds=config.timeout_seconds,
            page_size=config.page_size,
            retry_config=RetryConfig(
                max_retries=config.max_retries,
                base_delay=config.custom_settings.get("retry_base_delay", 1.0),
            ),
        )
        self._api_client = MobileServiceHttpClient(api_config)

    # =========================================================================
    # Connection Management
    # =========================================================================

    async def connect(self) -> bool:
        """Open the HTTP session to the mobile service."""
        success = await self._api_client.connect()
        self._connection_status = (
            RemoteConnectionStatus.CONNECTED if success else RemoteConnectionStatus.FAILED
        )
        return success

    async def disconnect(self) -> None:
        """Close the HTTP session."""
        await self._api_client.disconnect()
        self._connection_status = RemoteConnectionStatus.DISCONNECTED

    # =========================================================================
    # Table Reads
    # =========================================================================

    async def read_table(self, table_name: str) -> List[Dict[str, Any]]:
        """Read every row of a remote table, connecting on first use."""
        if not self._api_client.is_connected:
            await self.connect()

        try:
            rows = await self._api_client.list_all(table_name)
        except RemoteRateLimitError:
            self._connection_status = RemoteConnectionStatus.RATE_LIMITED
            raise

        logger.debug(f"Read {len(rows)} rows from remote table {table_name}")
        return rows
