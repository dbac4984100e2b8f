"""Mobile Service Connector Package.

Implements the RemoteDataSource interface for a mobile service table API.
"""

from connectors.mobile_service.ms_connector import MobileServiceConnector
from connectors.mobile_service.ms_client import (
    MobileServiceHttpClient,
    MobileServiceApiConfig,
    RetryConfig,
)

__all__ = [
    "MobileServiceConnector",
    "MobileServiceHttpClient",
    "MobileServiceApiConfig",
    "RetryConfig",
]
