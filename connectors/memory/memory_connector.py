"""In-Memory Connector.

Implements the RemoteDataSource interface over rows held in memory.
Used for offline demos (seeded from a JSON fixture file) and tests.

Fixture format:
    {
        "Account": [{"id": "a1", "company": "Contoso", "isLead": false}],
        "CatalogCategory": [...],
        "CatalogProduct": [...],
        "Order": [...]
    }
"""

import copy
import json
from collections import defaultdict
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from connectors.remote_base import (
    RemoteDataSource,
    RemoteConfig,
    RemoteConnectionStatus,
    register_connector,
)


@register_connector("memory")
class InMemoryConnector(RemoteDataSource):
    """Serves remote table rows from memory.

    Optional configuration:
    - custom_settings.fixture_path: JSON fixture loaded at construction
    """

    def __init__(
        self,
        config: Optional[RemoteConfig] = None,
        tables: Optional[Dict[str, List[Dict[str, Any]]]] = None,
    ):
        super().__init__(config or RemoteConfig(connector_type="memory"))
        self._tables: Dict[str, List[Dict[str, Any]]] = {}
        self.read_counts: Dict[str, int] = defaultdict(int)

        fixture_path = self.config.custom_settings.get("fixture_path")
        if fixture_path:
            self.load_fixture(fixture_path)
        for table_name, rows in (tables or {}).items():
            self.set_rows(table_name, rows)

    async def connect(self) -> bool:
        self._connection_status = RemoteConnectionStatus.CONNECTED
        return True

    async def disconnect(self) -> None:
        self._connection_status = RemoteConnectionStatus.DISCONNECTED

    def set_rows(self, table_name: str, rows: List[Dict[str, Any]]) -> None:
        """Replace the remote contents of a table."""
        self._tables[table_name] = copy.deepcopy(list(rows))

    def load_fixture(self, path: Union[str, Path]) -> None:
        """Load table contents from a JSON fixture file."""
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Fixture {path} must be an object keyed by table name")
        for table_name, rows in data.items():
            self.set_rows(table_name, rows)

    async def read_table(self, table_name: str) -> List[Dict[str, Any]]:
        if self._connection_status != RemoteConnectionStatus.CONNECTED:
            await self.connect()
        self.read_counts[table_name] += 1
        return copy.deepcopy(self._tables.get(table_name, []))
