"""Local cache storage.

SQLite-backed tables mirroring the remote service, with a sync context
tracking one-time initialization and typed table handles.
"""

from local_store.store import SQLiteStore, LocalStoreError, DEFAULT_DB_PATH
from local_store.sync_context import SyncContext
from local_store.sync_table import SyncTable, TableQuery
from local_store.client import SyncClient

__all__ = [
    "SQLiteStore",
    "LocalStoreError",
    "DEFAULT_DB_PATH",
    "SyncContext",
    "SyncTable",
    "TableQuery",
    "SyncClient",
]
