"""Sync context - tracks whether the local store has been initialized."""

from typing import Optional

from local_store.store import LocalStoreError, SQLiteStore


class SyncContext:
    """Holds the initialized local store for a SyncClient.

    initialize() is idempotent: once a store has been initialized, further
    calls return without touching it.
    """

    def __init__(self):
        self._store: Optional[SQLiteStore] = None
        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def store(self) -> SQLiteStore:
        if not self._initialized or self._store is None:
            raise LocalStoreError("Sync context is not initialized")
        return self._store

    async def initialize(self, store: SQLiteStore) -> None:
        """Create the store's tables and bind it to this context.

        Raises:
            LocalStoreError: If the store cannot be initialized
        """
        if self._initialized:
            return
        store.initialize()
        self._store = store
        self._initialized = True
