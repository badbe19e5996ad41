"""
Model: the per-table entry point for creating, querying and changing rows.

A model binds a database handle, a table name and a column schema. Creating
one issues CREATE TABLE IF NOT EXISTS with an implicit auto-incrementing
`id INTEGER PRIMARY KEY`. Query methods take condition mappings compiled by
`rowkit.sql.conditions.build_where` and return `Record` objects.

Usage:
    from rowkit import Model, open_database

    db = open_database("app.db")
    users = Model(db, "users", {"name": "text", "age": "integer"})

    alice = users.insert({"name": "Alice", "age": 30})
    adults = users.where({"age >=": 18})
    users.update_all({"name": "Alice"}, {"age": 31})
    users.tally()            # 1
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple, TypeVar

from rowkit.config import get_settings
from rowkit.domain.record import Record
from rowkit.exceptions import InvalidIdentifier, ReservedColumn, RowkitError, SearchNotEnabled
from rowkit.infrastructure.database import Database, Row
from rowkit.search import (
    ANNOTATION_PREFIX,
    SearchOptions,
    coerce_options,
    create_index_statements,
    drop_index_statements,
    index_table,
    search_statement,
    split_hit,
)
from rowkit.sql import statements
from rowkit.sql.conditions import Conditions
from rowkit.sql.statements import PRIMARY_KEY, Statement
from rowkit.sql.validation import validate_identifier
from rowkit.utils.logging import get_logger

log = get_logger(__name__)

T = TypeVar("T")


class Model:
    """
    CRUD and aggregate operations for one table.

    Attributes
    ----------
    table : str
        Validated table name.
    schema : Mapping[str, str]
        Read-only column name to declared type mapping (without `id`).
    """

    def __init__(self, db: Database, table: str, schema: Mapping[str, str]) -> None:
        self._db = db
        self.table = validate_identifier(table, "table")
        stmt = statements.create_table(self.table, schema)
        for column in schema:
            if Record.shadows_attribute(column):
                raise ReservedColumn(f"Column {column!r} of {self.table} would shadow a Record attribute")
            if column.startswith(ANNOTATION_PREFIX):
                raise ReservedColumn(f"Column {column!r} of {self.table} uses the reserved {ANNOTATION_PREFIX!r} prefix")
        self.schema: Mapping[str, str] = MappingProxyType(dict(schema))
        self._search_columns: Optional[Tuple[str, ...]] = None
        created = not db.has_table(self.table)
        self._execute(stmt)
        if created:
            log.info("Created table", extra={"table": self.table, "columns": list(self.schema)})

    def __repr__(self) -> str:
        return f"Model(table={self.table!r}, columns={list(self.schema)})"

    @property
    def db(self) -> Database:
        return self._db

    @property
    def columns(self) -> Tuple[str, ...]:
        """All column names including the primary key."""
        return (PRIMARY_KEY,) + tuple(self.schema)

    # -- helpers -----------------------------------------------------------

    def _execute(self, stmt: Statement) -> int:
        return self._db.execute(stmt.sql, stmt.params)

    def _wrap(self, row: Optional[Row]) -> Optional[Record]:
        return Record(self._db, self.table, row) if row is not None else None

    def _wrap_all(self, rows: List[Row]) -> List[Record]:
        return [Record(self._db, self.table, row) for row in rows]

    # -- create ------------------------------------------------------------

    def insert(self, attrs: Mapping[str, Any]) -> Record:
        """Insert a row and return it as stored (with its assigned id)."""
        stmt = statements.insert(self.table, attrs)
        self._execute(stmt)
        record_id = self._db.last_insert_id()
        record = self.get(record_id)
        if record is None:
            raise RowkitError(f"Inserted row {record_id} of {self.table} could not be read back")
        return record

    # -- read --------------------------------------------------------------

    def get(self, record_id: Any) -> Optional[Record]:
        """The record with primary key `record_id`, or None."""
        stmt = statements.select_by_id(self.table, record_id)
        return self._wrap(self._db.query_row(stmt.sql, stmt.params))

    def list(self) -> List[Record]:
        """Every row in the store's natural order."""
        stmt = statements.select(self.table)
        return self._wrap_all(self._db.query(stmt.sql, stmt.params))

    def where(self, conditions: Optional[Conditions] = None) -> List[Record]:
        """Rows matching every condition. No conditions selects all rows."""
        stmt = statements.select(self.table, conditions)
        return self._wrap_all(self._db.query(stmt.sql, stmt.params))

    def first(self, conditions: Optional[Conditions] = None) -> Optional[Record]:
        """The first matching row, or None."""
        stmt = statements.select(self.table, conditions, limit=1)
        return self._wrap(self._db.query_row(stmt.sql, stmt.params))

    def tally(self, conditions: Optional[Conditions] = None) -> int:
        """COUNT(*) of matching rows; all rows when `conditions` is None."""
        stmt = statements.count(self.table, conditions)
        return int(self._db.query_scalar(stmt.sql, stmt.params) or 0)

    def exists(self, conditions: Optional[Conditions] = None) -> bool:
        return self.tally(conditions) > 0

    def pluck(self, column: str) -> List[Any]:
        """Values of one column for every row, in natural order."""
        stmt = statements.select(self.table, columns=[column])
        return [row[column] for row in self._db.query(stmt.sql, stmt.params)]

    def for_each(self, fn: Callable[[Record], Any]) -> None:
        """Call `fn` with every record from list(). Exceptions propagate."""
        for record in self.list():
            fn(record)

    def collect(self, fn: Callable[[Record], T]) -> List[T]:
        """Map every record from list() through `fn`."""
        return [fn(record) for record in self.list()]

    # -- bulk changes ------------------------------------------------------

    def destroy(self, conditions: Optional[Conditions] = None) -> int:
        """Delete matching rows and return how many were removed."""
        stmt = statements.delete(self.table, conditions)
        affected = self._execute(stmt)
        log.debug("Destroyed rows", extra={"table": self.table, "affected": affected})
        return affected

    def update_all(self, conditions: Optional[Conditions], attrs: Mapping[str, Any]) -> int:
        """Set `attrs` on matching rows and return how many were changed."""
        if not attrs:
            return 0
        stmt = statements.update(self.table, attrs, conditions)
        affected = self._execute(stmt)
        log.debug("Updated rows", extra={"table": self.table, "affected": affected})
        return affected

    # -- search ------------------------------------------------------------

    @property
    def search_columns(self) -> Optional[Tuple[str, ...]]:
        return self._search_columns

    def searchable(self, columns: Sequence[str]) -> "Model":
        """
        Build (or rebuild) a full-text index over `columns`.

        The index is kept in sync with inserts, updates and deletes by
        triggers. Calling again with the same columns is a no-op; different
        columns replace the index.
        """
        cols = tuple(validate_identifier(column, "column") for column in columns)
        for column in cols:
            if column not in self.schema:
                raise InvalidIdentifier(column, f"column of {self.table}")
        fts = index_table(self.table)
        existing = tuple(row["name"] for row in self._db.query(f"PRAGMA table_info({fts})"))
        if existing != cols:

            def _build(db: Database) -> None:
                for stmt in drop_index_statements(self.table) + create_index_statements(self.table, cols):
                    db.execute(stmt.sql, stmt.params)

            self._db.transaction(_build)
            log.info("Built search index", extra={"table": self.table, "columns": list(cols)})
        self._search_columns = cols
        return self

    def search(self, query: str, options: Optional[Any] = None) -> List[Record]:
        """
        Full-text search, best match first.

        `options` is a SearchOptions or a mapping of its fields. Each hit's
        rank, snippet and highlights are available on `record.annotations`.
        """
        if self._search_columns is None:
            raise SearchNotEnabled(f"Call searchable() on {self.table} before search()")
        opts: SearchOptions = coerce_options(options)
        if not query or not query.strip():
            return []
        limit = opts.limit or get_settings().search_limit
        stmt = search_statement(self.table, self._search_columns, query, opts, limit)
        log.debug("Searching", extra={"table": self.table, "query": query, "limit": limit})
        hits = []
        for row in self._db.query(stmt.sql, stmt.params):
            fields, annotations = split_hit(row)
            hits.append(Record(self._db, self.table, fields, annotations))
        return hits


__all__ = ["Model"]
