"""
Mobile Service Connector Tests

Validates the HTTP table client against a fake aiohttp session:
1. Version header and paging parameters
2. Paging continues through short pages and stops on an empty page
3. 5xx and 429 responses are retried; 4xx are rejected immediately
4. Connector registry and factory
"""

import asyncio
import json

import pytest

from connectors import create_connector, list_available_connectors
from connectors.memory import InMemoryConnector
from connectors.mobile_service import (
    MobileServiceApiConfig,
    MobileServiceConnector,
    MobileServiceHttpClient,
    RetryConfig,
)
from connectors.remote_base import (
    RemoteConfig,
    RemoteConnectionStatus,
    RemoteOperationRejectedError,
    RemoteRateLimitError,
    RemoteServiceError,
)


class FakeResponse:
    def __init__(self, status=200, body=None, headers=None):
        self.status = status
        self._text = body if isinstance(body, str) else json.dumps(body) if body is not None else ""
        self.headers = headers or {}

    async def text(self):
        return self._text

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """Replays queued responses and records requests."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.requests = []
        self.closed = False

    def request(self, method, url, headers=None, params=None, timeout=None):
        self.requests.append({"method": method, "url": url, "headers": headers, "params": params})
        return self.responses.pop(0)

    async def close(self):
        self.closed = True


def make_client(responses, page_size=2, max_retries=2):
    config = MobileServiceApiConfig(
        base_url="https://crm.example.net/",
        page_size=page_size,
        retry_config=RetryConfig(max_retries=max_retries, base_delay=0),
    )
    client = MobileServiceHttpClient(config)
    client._session = FakeSession(responses)
    return client


def rows(*ids):
    return [{"id": i} for i in ids]


class TestRequests:

    def test_table_url_and_headers(self):
        client = make_client([FakeResponse(200, rows("a"))])

        asyncio.run(client.list("Account", top=2))

        request = client._session.requests[0]
        assert request["method"] == "GET"
        assert request["url"] == "https://crm.example.net/tables/Account"
        assert request["headers"]["ZUMO-API-VERSION"] == "2.0.0"
        assert request["params"] == {"$top": "2", "__includeDeleted": "true"}

    def test_results_envelope(self):
        client = make_client([FakeResponse(200, {"results": rows("a", "b"), "count": 2})])
        assert asyncio.run(client.list("Account")) == rows("a", "b")

    def test_unexpected_body_shape(self):
        client = make_client([FakeResponse(200, "42")])
        with pytest.raises(RemoteServiceError):
            asyncio.run(client.list("Account"))

    def test_not_connected(self):
        client = MobileServiceHttpClient(MobileServiceApiConfig(base_url="https://crm.example.net"))
        with pytest.raises(RemoteServiceError):
            asyncio.run(client.list("Account"))


class TestPaging:

    def test_pages_until_empty_page(self):
        client = make_client([
            FakeResponse(200, rows("1", "2")),
            FakeResponse(200, rows("3", "4")),
            FakeResponse(200, rows("5")),
            FakeResponse(200, []),
        ])

        result = asyncio.run(client.list_all("Order"))

        assert [r["id"] for r in result] == ["1", "2", "3", "4", "5"]
        skips = [r["params"].get("$skip") for r in client._session.requests]
        assert skips == [None, "2", "4", "5"]

    def test_server_page_cap_below_page_size(self):
        """A service returning fewer rows than asked for is paged to the end."""
        client = make_client([
            FakeResponse(200, rows("1")),
            FakeResponse(200, rows("2")),
            FakeResponse(200, rows("3")),
            FakeResponse(200, []),
        ], page_size=2)

        result = asyncio.run(client.list_all("Order"))

        assert [r["id"] for r in result] == ["1", "2", "3"]
        skips = [r["params"].get("$skip") for r in client._session.requests]
        assert skips == [None, "1", "2", "3"]

    def test_stops_on_empty_page(self):
        client = make_client([
            FakeResponse(200, rows("1", "2")),
            FakeResponse(200, []),
        ])
        assert len(asyncio.run(client.list_all("Order"))) == 2
        assert len(client._session.requests) == 2


class TestRetries:

    def test_server_error_is_retried(self):
        client = make_client([
            FakeResponse(503, "busy"),
            FakeResponse(200, rows("a")),
        ])
        assert asyncio.run(client.list("Account")) == rows("a")
        assert len(client._session.requests) == 2

    def test_server_error_after_retries(self):
        client = make_client([FakeResponse(500, "down")] * 3, max_retries=2)
        with pytest.raises(RemoteServiceError) as exc_info:
            asyncio.run(client.list("Account"))
        assert exc_info.value.status_code == 500
        assert len(client._session.requests) == 3

    def test_client_error_is_rejected_without_retry(self):
        client = make_client([FakeResponse(404, "no such table")])
        with pytest.raises(RemoteOperationRejectedError) as exc_info:
            asyncio.run(client.list("Invoice"))
        assert exc_info.value.status_code == 404
        assert len(client._session.requests) == 1

    def test_rate_limit_waits_and_retries(self):
        client = make_client([
            FakeResponse(429, "slow down", headers={"Retry-After": "0"}),
            FakeResponse(200, rows("a")),
        ])
        assert asyncio.run(client.list("Account")) == rows("a")

    def test_rate_limit_exhausted(self):
        client = make_client(
            [FakeResponse(429, "slow down", headers={"Retry-After": "0"})] * 2,
            max_retries=1,
        )
        with pytest.raises(RemoteRateLimitError):
            asyncio.run(client.list("Account"))


class TestConnector:

    def test_registered_connectors(self):
        assert {"mobile_service", "memory"} <= set(list_available_connectors())

    def test_factory_builds_memory_connector(self):
        connector = create_connector(RemoteConfig(connector_type="memory"))
        assert isinstance(connector, InMemoryConnector)

    def test_factory_rejects_unknown_type(self):
        with pytest.raises(ValueError):
            create_connector(RemoteConfig(connector_type="ftp"))

    def test_mobile_service_requires_url(self):
        with pytest.raises(ValueError):
            create_connector(RemoteConfig(connector_type="mobile_service"))

    def test_read_table_through_connector(self):
        connector = create_connector(RemoteConfig(
            connector_type="mobile_service",
            base_url="https://crm.example.net",
            page_size=50,
        ))
        assert isinstance(connector, MobileServiceConnector)
        session = FakeSession([FakeResponse(200, rows("c1", "c2")), FakeResponse(200, [])])
        connector._api_client._session = session

        result = asyncio.run(connector.read_table("CatalogCategory"))

        assert [r["id"] for r in result] == ["c1", "c2"]
        asyncio.run(connector.disconnect())
        assert session.closed
        assert connector.connection_status == RemoteConnectionStatus.DISCONNECTED

    def test_rate_limit_marks_connector(self):
        connector = create_connector(RemoteConfig(
            connector_type="mobile_service",
            base_url="https://crm.example.net",
            max_retries=0,
        ))
        connector._api_client._session = FakeSession([
            FakeResponse(429, "slow down", headers={"Retry-After": "0"}),
        ])

        with pytest.raises(RemoteRateLimitError):
            asyncio.run(connector.read_table("Account"))
        assert connector.connection_status == RemoteConnectionStatus.RATE_LIMITED

    def test_memory_connector_fixture(self, tmp_path):
        fixture = tmp_path / "tables.json"
        fixture.write_text(json.dumps({"Account": rows("a1")}))
        connector = create_connector(RemoteConfig(
            connector_type="memory",
            custom_settings={"fixture_path": str(fixture)},
        ))
        assert asyncio.run(connector.read_table("Account")) == rows("a1")
        assert asyncio.run(connector.read_table("Order")) == []
