"""Mobile Service HTTP Client.

Low-level HTTP client for the mobile service table API.
Handles version headers, paging, retries, and error mapping.

Table API:
    GET {base_url}/tables/{table}?$top=50&$skip=0&__includeDeleted=true
    Header: ZUMO-API-VERSION: 2.0.0

The response body is either a JSON array of rows or an object with the
rows under "results" (when $inlinecount is used) or "value".
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import aiohttp

from connectors.remote_base import (
    RemoteServiceError,
    RemoteOperationRejectedError,
    RemoteRateLimitError,
)

logger = logging.getLogger(__name__)


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""
    max_retries: int = 3
    base_delay: float = 1.0  # seconds
    max_delay: float = 60.0  # seconds
    exponential_base: float = 2.0
    retry_on_status: Tuple[int, ...] = (429, 500, 502, 503, 504)

    def get_delay(self, attempt: int) -> float:
        """Calculate delay for retry attempt (exponential backoff)."""
        delay = self.base_delay * (self.exponential_base ** attempt)
        return min(delay, self.max_delay)


@dataclass
class MobileServiceApiConfig:
    """Configuration for the mobile service API client."""
    base_url: str
    api_version: str = "2.0.0"
    retry_config: RetryConfig = field(default_factory=RetryConfig)
    timeout_seconds: int = 30
    page_size: int = 50

    def get_table_url(self, table_name: str) -> str:
        """Get the URL for a table endpoint."""
        return f"{self.base_url.rstrip('/')}/tables/{table_name}"


def _extract_rows(payload: Any) -> List[Dict[str, Any]]:
    """Pull the row list out of a table response body."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in ("results", "value"):
            if key in payload:
                return payload[key] or []
    raise RemoteServiceError(f"Unexpected table response shape: {type(payload).__name__}")


class MobileServiceHttpClient:
    """HTTP client for the mobile service table API.

    Provides:
    - Version-header requests
    - Automatic paging
    - Error mapping and retries

    Usage:
        client = MobileServiceHttpClient(api_config)
        await client.connect()
        rows = await client.list_all("CatalogCategory")
    """

    def __init__(self, api_config: MobileServiceApiConfig):
        self.api_config = api_config
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def is_connected(self) -> bool:
        return self._session is not None

    async def connect(self) -> bool:
        """Open the HTTP session."""
        if self._session is None:
            self._session = aiohttp.ClientSession()
        return True

    async def disconnect(self) -> None:
        """Close HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None

    def _get_headers(self) -> Dict[str, str]:
        """Get headers for API requests."""
        return {
            "ZUMO-API-VERSION": self.api_config.api_version,
            "Accept": "application/json",
        }

    async def _request(
        self,
        method: str,
        url: str,
        params: Optional[Dict[str, str]] = None,
    ) -> Any:
        """Make an API request with automatic retries.

        Args:
            method: HTTP method
            url: Full request URL
            params: Query parameters

        Returns:
            Decoded JSON body (None for empty bodies)

        Raises:
            RemoteOperationRejectedError: The service rejected the request (4xx)
            RemoteRateLimitError: Rate limit exceeded after retries
            RemoteServiceError: Other API or network errors
        """
        if not self._session:
            raise RemoteServiceError("Not connected. Call connect() first.")

        retry_config = self.api_config.retry_config
        last_error: Optional[Exception] = None

        for attempt in range(retry_config.max_retries + 1):
            try:
                timeout = aiohttp.ClientTimeout(total=self.api_config.timeout_seconds)

                async with self._session.request(
                    method,
                    url,
                    headers=self._get_headers(),
                    params=params,
                    timeout=timeout,
                ) as response:
                    response_text = await response.text()

                    if response.status < 400:
                        return json.loads(response_text) if response_text else None

                    if response.status == 429:
                        retry_after = int(response.headers.get("Retry-After", 60))
                        if attempt < retry_config.max_retries:
                            logger.warning(f"Rate limited, waiting {retry_after}s...")
                            await asyncio.sleep(retry_after)
                            continue
                        raise RemoteRateLimitError("Rate limit exceeded", retry_after)

                    if response.status in retry_config.retry_on_status:
                        if attempt < retry_config.max_retries:
                            delay = retry_config.get_delay(attempt)
                            logger.warning(
                                f"Request failed with {response.status}, "
                                f"retrying in {delay:.1f}s (attempt {attempt + 1}/{retry_config.max_retries})"
                            )
                            await asyncio.sleep(delay)
                            continue
                        raise RemoteServiceError(
                            f"API error {response.status}: {response_text}",
                            response.status,
                            response_text,
                        )

                    if 400 <= response.status < 500:
                        raise RemoteOperationRejectedError(
                            f"Operation rejected ({response.status}): {response_text}",
                            response.status,
                            response_text,
                        )

                    raise RemoteServiceError(
                        f"API error {response.status}: {response_text}",
                        response.status,
                        response_text,
                    )

            except RemoteServiceError:
                raise  # Don't retry our own exceptions
            except (asyncio.TimeoutError, aiohttp.ClientError, json.JSONDecodeError) as e:
                last_error = e
                if attempt < retry_config.max_retries:
                    delay = retry_config.get_delay(attempt)
                    logger.warning(
                        f"Request failed with {type(e).__name__}: {e}, "
                        f"retrying in {delay:.1f}s"
                    )
                    await asyncio.sleep(delay)
                    continue
                raise RemoteServiceError(f"Request failed after {retry_config.max_retries} retries: {e}")

        raise RemoteServiceError(f"Request failed: {last_error}")

    async def list(
        self,
        table_name: str,
        top: Optional[int] = None,
        skip: Optional[int] = None,
        include_deleted: bool = True,
    ) -> List[Dict[str, Any]]:
        """List one page of table rows.

        Args:
            table_name: Remote table name
            top: Maximum number to return
            skip: Number to skip (paging)
            include_deleted: Include soft-deleted rows so they can be purged locally

        Returns:
            Rows in the remote shape
        """
        params = {}

        if top:
            params["$top"] = str(top)
        if skip:
            params["$skip"] = str(skip)
        if include_deleted:
            params["__includeDeleted"] = "true"

        payload = await self._request("GET", self.api_config.get_table_url(table_name), params=params)
        return _extract_rows(payload) if payload is not None else []

    async def list_all(
        self,
        table_name: str,
        page_size: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """List every row of a table with automatic paging.

        Paging stops only on an empty page. The service may cap pages
        below the requested size, so a short page is not taken as the
        last one; the next request skips past the rows actually received.

        Args:
            table_name: Remote table name
            page_size: Page size (defaults to the configured page size)

        Returns:
            All rows
        """
        page_size = page_size or self.api_config.page_size
        all_results = []
        skip = 0

        while True:
            results = await self.list(table_name, top=page_size, skip=skip)

            if not results:
                break

            all_results.extend(results)
            skip += len(results)

        return all_results
