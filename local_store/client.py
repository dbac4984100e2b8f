"""Sync client - pairs a remote data source with the local sync context."""

from typing import Type, TypeVar

from connectors.remote_base import RemoteDataSource
from core.models.entities import SyncEntity
from local_store.sync_context import SyncContext
from local_store.sync_table import SyncTable

T = TypeVar("T", bound=SyncEntity)


class SyncClient:
    """Entry point to the local tables.

    The remote data source is injected; tables obtained from the client
    read from the local store and pull from the remote.

    Usage:
        client = SyncClient(remote)
        await client.sync_context.initialize(store)
        accounts = client.get_sync_table(Account)
    """

    def __init__(self, remote: RemoteDataSource):
        self.remote = remote
        self.sync_context = SyncContext()

    def get_sync_table(self, model_cls: Type[T]) -> SyncTable[T]:
        """Get a handle on the local table for an entity model."""
        return SyncTable(model_cls, self.sync_context, self.remote)
