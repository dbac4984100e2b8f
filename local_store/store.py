"""Local SQLite Store.

This module handles all database operations for the local cache:
- Schema definition per entity model
- One-time table creation
- Row-level read/insert/update/delete
- Applying a pulled table in a single transaction

Tables are named after the remote tables they mirror and have one column
per model field. Every table has a TEXT primary key `id`.
"""

import sqlite3
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Type, Union, get_args, get_origin

from core.models.entities import SyncEntity


# Default cache file, relative to the working directory
DEFAULT_DB_PATH = Path("syncstore.db")


class LocalStoreError(Exception):
    """A local cache operation failed."""
    pass


def _sqlite_type(annotation: Any) -> str:
    """Map a model field annotation to a SQLite column type."""
    if get_origin(annotation) is Union:
        args = [a for a in get_args(annotation) if a is not type(None)]
        annotation = args[0] if args else str
    if annotation is bool or annotation is int:
        return "INTEGER"
    if annotation is float:
        return "REAL"
    return "TEXT"


def quote_identifier(identifier: str) -> str:
    """Quote a table/column name ("Order" is a keyword)."""
    return '"' + identifier.replace('"', '""') + '"'


def _casefold(value):
    return value.casefold() if isinstance(value, str) else value


class SQLiteStore:
    """SQLite-backed local cache.

    Usage:
        store = SQLiteStore("syncstore.db")
        store.define_table(Account)
        store.initialize()
        rows = store.read("Account", where='"is_lead" = ?', params=(0,))
    """

    def __init__(self, db_path: Union[str, Path] = DEFAULT_DB_PATH):
        self.db_path = Path(db_path)
        self._tables: Dict[str, Type[SyncEntity]] = {}
        self._initialized = False

    # =========================================================================
    # Schema
    # =========================================================================

    def define_table(self, model_cls: Type[SyncEntity]) -> None:
        """Register an entity model as a local table.

        Redefining a known table is allowed; adding a new table after
        initialize() is not.
        """
        if not model_cls.table_name:
            raise LocalStoreError(f"{model_cls.__name__} does not declare a table_name")
        if self._initialized and model_cls.table_name not in self._tables:
            raise LocalStoreError(
                f"Cannot define table {model_cls.table_name} after the store is initialized"
            )
        self._tables[model_cls.table_name] = model_cls

    @property
    def defined_tables(self) -> List[str]:
        return list(self._tables.keys())

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def columns(self, table_name: str) -> List[str]:
        """Column names of a defined table."""
        return self._model(table_name).column_names()

    def _model(self, table_name: str) -> Type[SyncEntity]:
        if table_name not in self._tables:
            raise LocalStoreError(f"Table {table_name} is not defined in the local store")
        return self._tables[table_name]

    def initialize(self) -> None:
        """Create the cache file and every defined table."""
        if not self._tables:
            raise LocalStoreError("No tables defined; call define_table() before initialize()")

        if self.db_path.parent and not self.db_path.parent.exists():
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

        conn = self._connect()
        try:
            cursor = conn.cursor()
            for table_name, model_cls in self._tables.items():
                column_defs = []
                for name in model_cls.column_names():
                    if name == "id":
                        column_defs.append(f"{quote_identifier(name)} TEXT PRIMARY KEY")
                    else:
                        annotation = model_cls.model_fields[name].annotation
                        column_defs.append(f"{quote_identifier(name)} {_sqlite_type(annotation)}")
                cursor.execute(
                    f"CREATE TABLE IF NOT EXISTS {quote_identifier(table_name)} ({', '.join(column_defs)})"
                )
            conn.commit()
        except sqlite3.Error as e:
            raise LocalStoreError(f"Failed to initialize local store {self.db_path}: {e}") from e
        finally:
            conn.close()

        self._initialized = True

    # =========================================================================
    # Connections
    # =========================================================================

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        # Unicode-aware lowering for case-insensitive search
        conn.create_function("casefold", 1, _casefold, deterministic=True)
        return conn

    def _require_initialized(self):
        if not self._initialized:
            raise LocalStoreError("Local store is not initialized")

    # =========================================================================
    # Reads
    # =========================================================================

    def read(
        self,
        table_name: str,
        where: str = "",
        params: Sequence[Any] = (),
        order_by: str = "",
    ) -> List[Dict[str, Any]]:
        """Read rows from a table.

        Args:
            table_name: Local table name
            where: SQL condition built from quoted, known columns
            params: Values for the condition placeholders
            order_by: SQL ORDER BY expression built from quoted, known columns

        Returns:
            Rows as dicts keyed by column name
        """
        self._require_initialized()
        self._model(table_name)

        query = f"SELECT * FROM {quote_identifier(table_name)}"
        if where:
            query += f" WHERE {where}"
        if order_by:
            query += f" ORDER BY {order_by}"

        conn = self._connect()
        try:
            cursor = conn.execute(query, tuple(params))
            return [dict(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def get(self, table_name: str, row_id: str) -> Optional[Dict[str, Any]]:
        """Read a single row by id."""
        rows = self.read(table_name, where='"id" = ?', params=(row_id,))
        return rows[0] if rows else None

    def count(self, table_name: str) -> int:
        """Number of rows in a table."""
        self._require_initialized()
        self._model(table_name)
        conn = self._connect()
        try:
            return conn.execute(f"SELECT COUNT(*) FROM {quote_identifier(table_name)}").fetchone()[0]
        finally:
            conn.close()

    # =========================================================================
    # Writes
    # =========================================================================

    def _row_values(self, table_name: str, row: Dict[str, Any]) -> Tuple[List[str], List[Any]]:
        columns = self.columns(table_name)
        return columns, [row.get(c) for c in columns]

    def insert(self, table_name: str, row: Dict[str, Any]) -> None:
        """Insert a new row. Fails if the id already exists."""
        self._require_initialized()
        columns, values = self._row_values(table_name, row)
        placeholders = ", ".join("?" for _ in columns)

        conn = self._connect()
        try:
            conn.execute(
                f"INSERT INTO {quote_identifier(table_name)} ({', '.join(quote_identifier(c) for c in columns)}) "
                f"VALUES ({placeholders})",
                values,
            )
            conn.commit()
        except sqlite3.IntegrityError as e:
            raise LocalStoreError(f"Row {row.get('id')} already exists in {table_name}") from e
        finally:
            conn.close()

    def update(self, table_name: str, row: Dict[str, Any]) -> None:
        """Update an existing row. Fails if the id is unknown."""
        self._require_initialized()
        columns, values = self._row_values(table_name, row)
        assignments = ", ".join(f"{quote_identifier(c)} = ?" for c in columns if c != "id")
        params = [v for c, v in zip(columns, values) if c != "id"] + [row.get("id")]

        conn = self._connect()
        try:
            cursor = conn.execute(
                f'UPDATE {quote_identifier(table_name)} SET {assignments} WHERE "id" = ?',
                params,
            )
            conn.commit()
            if cursor.rowcount == 0:
                raise LocalStoreError(f"Row {row.get('id')} not found in {table_name}")
        finally:
            conn.close()

    def delete(self, table_name: str, row_id: str) -> None:
        """Delete a row by id. Fails if the id is unknown."""
        self._require_initialized()
        self._model(table_name)

        conn = self._connect()
        try:
            cursor = conn.execute(f'DELETE FROM {quote_identifier(table_name)} WHERE "id" = ?', (row_id,))
            conn.commit()
            if cursor.rowcount == 0:
                raise LocalStoreError(f"Row {row_id} not found in {table_name}")
        finally:
            conn.close()

    def apply_pull(
        self,
        table_name: str,
        rows: Iterable[Dict[str, Any]],
        deleted_ids: Iterable[str] = (),
    ) -> Tuple[int, int]:
        """Apply the result of a pull in one transaction.

        Rows are inserted or replaced by id; deleted_ids are removed.
        Either everything is applied or nothing is.

        Returns:
            (rows upserted, rows deleted)
        """
        self._require_initialized()
        columns = self.columns(table_name)
        placeholders = ", ".join("?" for _ in columns)
        upsert_sql = (
            f"INSERT OR REPLACE INTO {quote_identifier(table_name)} ({', '.join(quote_identifier(c) for c in columns)}) "
            f"VALUES ({placeholders})"
        )
        delete_sql = f'DELETE FROM {quote_identifier(table_name)} WHERE "id" = ?'

        conn = self._connect()
        try:
            upserted = 0
            deleted = 0
            for row in rows:
                conn.execute(upsert_sql, [row.get(c) for c in columns])
                upserted += 1
            for row_id in deleted_ids:
                deleted += conn.execute(delete_sql, (row_id,)).rowcount
            conn.commit()
            return upserted, deleted
        except sqlite3.Error as e:
            conn.rollback()
            raise LocalStoreError(f"Failed to apply pull to {table_name}: {e}") from e
        finally:
            conn.close()
