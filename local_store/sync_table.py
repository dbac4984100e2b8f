"""Sync tables - typed handles on the local cache tables.

A SyncTable reads and writes one local table and refreshes it from the
remote data source with pull(). TableQuery builds filtered, ordered and
searched reads:

    orders = client.get_sync_table(Order)
    open_orders = await (
        orders.where(account_id="a1", is_open=True)
        .order_by("due_date")
        .to_list()
    )

Column names are checked against the entity model before any SQL is
built, so only known, quoted identifiers reach the store.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Generic, List, Optional, Tuple, Type, TypeVar

from connectors.remote_base import RemoteDataSource
from core.models.entities import SyncEntity, format_datetime
from core.observability.logging import get_logger, with_correlation
from local_store.store import LocalStoreError, SQLiteStore, quote_identifier
from local_store.sync_context import SyncContext

logger = get_logger(__name__)

T = TypeVar("T", bound=SyncEntity)

# Remote rows carry one of these when soft-deleted
_DELETED_FLAGS = ("deleted", "__deleted")


def _to_sql_value(value: Any) -> Any:
    """Convert a filter value to what the store keeps in the column."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return format_datetime(value)
    return value


def _is_deleted(row: Dict[str, Any]) -> bool:
    return any(bool(row.get(flag)) for flag in _DELETED_FLAGS)


class TableQuery(Generic[T]):
    """An immutable read query over one sync table."""

    def __init__(
        self,
        table: "SyncTable[T]",
        clauses: Tuple[str, ...] = (),
        params: Tuple[Any, ...] = (),
        ordering: Tuple[str, ...] = (),
    ):
        self._table = table
        self._clauses = clauses
        self._params = params
        self._ordering = ordering

    def _derive(self, clauses=(), params=(), ordering=()) -> "TableQuery[T]":
        return TableQuery(
            self._table,
            self._clauses + tuple(clauses),
            self._params + tuple(params),
            self._ordering + tuple(ordering),
        )

    def where(self, **conditions: Any) -> "TableQuery[T]":
        """Add equality conditions. A None value matches NULL."""
        clauses = []
        params = []
        for column, value in conditions.items():
            column_sql = self._table.column_sql(column)
            if value is None:
                clauses.append(f"{column_sql} IS NULL")
            else:
                clauses.append(f"{column_sql} = ?")
                params.append(_to_sql_value(value))
        return self._derive(clauses, params)

    def search(self, term: str, *columns: str) -> "TableQuery[T]":
        """Case-insensitive substring match on any of the given columns."""
        if not columns:
            raise ValueError("search() needs at least one column")
        folded = term.casefold()
        parts = [f"instr(casefold({self._table.column_sql(c)}), ?) > 0" for c in columns]
        return self._derive(["(" + " OR ".join(parts) + ")"], [folded] * len(columns))

    def order_by(self, column: str) -> "TableQuery[T]":
        return self._derive(ordering=[f"{self._table.column_sql(column)} ASC"])

    def order_by_descending(self, column: str) -> "TableQuery[T]":
        return self._derive(ordering=[f"{self._table.column_sql(column)} DESC"])

    async def to_list(self) -> List[T]:
        """Run the query against the local store."""
        rows = self._table.store.read(
            self._table.table_name,
            where=" AND ".join(self._clauses),
            params=self._params,
            order_by=", ".join(self._ordering),
        )
        return [self._table.model_cls.from_row(row) for row in rows]


class SyncTable(Generic[T]):
    """Handle on one local table, bound to a sync context and a remote.

    Every operation requires an initialized sync context; otherwise
    LocalStoreError is raised.
    """

    def __init__(self, model_cls: Type[T], sync_context: SyncContext, remote: RemoteDataSource):
        self.model_cls = model_cls
        self.sync_context = sync_context
        self.remote = remote

    @property
    def table_name(self) -> str:
        return self.model_cls.table_name

    @property
    def store(self) -> SQLiteStore:
        if not self.sync_context.is_initialized:
            raise LocalStoreError(f"Cannot use table {self.table_name}: local store is not initialized")
        return self.sync_context.store

    def column_sql(self, column: str) -> str:
        """Quoted SQL identifier for a model column."""
        if column not in self.model_cls.model_fields:
            raise ValueError(f"{self.model_cls.__name__} has no column {column!r}")
        return quote_identifier(column)

    # =========================================================================
    # Reads
    # =========================================================================

    def create_query(self) -> TableQuery[T]:
        return TableQuery(self)

    def where(self, **conditions: Any) -> TableQuery[T]:
        return self.create_query().where(**conditions)

    def search(self, term: str, *columns: str) -> TableQuery[T]:
        return self.create_query().search(term, *columns)

    def order_by(self, column: str) -> TableQuery[T]:
        return self.create_query().order_by(column)

    def order_by_descending(self, column: str) -> TableQuery[T]:
        return self.create_query().order_by_descending(column)

    async def to_list(self) -> List[T]:
        return await self.create_query().to_list()

    async def lookup(self, entity_id: str) -> Optional[T]:
        row = self.store.get(self.table_name, entity_id)
        return self.model_cls.from_row(row) if row else None

    async def count(self) -> int:
        return self.store.count(self.table_name)

    # =========================================================================
    # Local writes
    # =========================================================================

    async def insert(self, item: T) -> T:
        """Insert an entity, assigning a new id when it has none."""
        if item.id is None:
            item.id = str(uuid.uuid4())
        self.store.insert(self.table_name, item.to_row())
        return item

    async def update(self, item: T) -> T:
        """Update an existing entity by id."""
        if item.id is None:
            raise LocalStoreError(f"Cannot update a {self.model_cls.__name__} without an id")
        self.store.update(self.table_name, item.to_row())
        return item

    async def delete(self, item: T) -> None:
        """Delete an entity by id."""
        if item.id is None:
            raise LocalStoreError(f"Cannot delete a {self.model_cls.__name__} without an id")
        self.store.delete(self.table_name, item.id)

    # =========================================================================
    # Pull
    # =========================================================================

    async def pull(self) -> int:
        """Refresh the local table from the remote data source.

        All remote rows are read and validated before anything is written.
        Rows are then upserted and soft-deleted rows removed in one
        transaction, so a failure leaves the local table unchanged.

        Returns:
            Number of rows upserted
        """
        store = self.store
        with with_correlation(table_name=self.table_name):
            remote_rows = await self.remote.read_table(self.table_name)

            rows: List[Dict[str, Any]] = []
            deleted_ids: List[str] = []
            for remote_row in remote_rows:
                entity = self.model_cls.from_row(remote_row)
                if entity.id is None:
                    raise LocalStoreError(f"Remote row in {self.table_name} has no id")
                if _is_deleted(remote_row):
                    deleted_ids.append(entity.id)
                else:
                    rows.append(entity.to_row())

            upserted, deleted = store.apply_pull(self.table_name, rows, deleted_ids)
            logger.debug(
                f"Pulled {self.table_name}: {upserted} upserted, {deleted} deleted",
                extra_fields={"upserted": upserted, "deleted": deleted},
            )
            return upserted
