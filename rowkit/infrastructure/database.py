"""
Connection handling for the embedded SQLite store.

`open_database` opens a file (or `:memory:`) with retry logic for transient
lock errors using tenacity, applies the journal/foreign-key/busy-timeout
pragmas from settings, and returns a `Database` wrapper. The wrapper is the
only component that talks to the driver: it executes statements, returns
rows as plain dicts, and runs callbacks inside transactions.

The driver runs in autocommit mode (`isolation_level=None`); statements
outside `transaction()` are committed as they execute.
"""

from __future__ import annotations

import sqlite3
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from rowkit.config import Settings, get_settings
from rowkit.exceptions import TransactionFailed
from rowkit.utils.logging import get_logger

log = get_logger(__name__)

Row = Dict[str, Any]
Params = Sequence[Any]
T = TypeVar("T")


class Database:
    """
    A single connection to the store.

    Example
    -------
        db = open_database("app.db")
        db.execute("CREATE TABLE t (id INTEGER PRIMARY KEY, name TEXT)")
        db.execute("INSERT INTO t (name) VALUES (?)", ["Alice"])
        rows = db.query("SELECT * FROM t")
        db.close()
    """

    def __init__(self, connection: sqlite3.Connection, path: str = ":memory:") -> None:
        self._conn = connection
        self._conn.row_factory = sqlite3.Row
        self.path = path

    def __repr__(self) -> str:
        return f"Database(path={self.path!r})"

    # -- statements --------------------------------------------------------

    def _run(self, sql: str, params: Params) -> sqlite3.Cursor:
        log.debug("Executing statement", extra={"sql": sql, "param_count": len(params)})
        return self._conn.execute(sql, tuple(params))

    def execute(self, sql: str, params: Params = ()) -> int:
        """Execute a statement and return the number of affected rows."""
        cursor = self._run(sql, params)
        # DDL and pragmas report -1
        return max(cursor.rowcount, 0)

    def query(self, sql: str, params: Params = ()) -> List[Row]:
        """Execute a query and return every row as a dict."""
        return [dict(row) for row in self._run(sql, params).fetchall()]

    def query_row(self, sql: str, params: Params = ()) -> Optional[Row]:
        """Execute a query and return the first row, or None."""
        row = self._run(sql, params).fetchone()
        return dict(row) if row is not None else None

    def query_scalar(self, sql: str, params: Params = ()) -> Any:
        """Execute a query and return the first column of the first row, or None."""
        row = self._run(sql, params).fetchone()
        return row[0] if row is not None else None

    def last_insert_id(self) -> int:
        return self.query_scalar("SELECT last_insert_rowid()")

    def has_table(self, name: str) -> bool:
        return (
            self.query_scalar(
                "SELECT COUNT(*) FROM sqlite_master WHERE type = 'table' AND name = ?", [name]
            )
            > 0
        )

    # -- transactions ------------------------------------------------------

    @property
    def in_transaction(self) -> bool:
        return self._conn.in_transaction

    def transaction(self, callback: Callable[["Database"], T]) -> T:
        """
        Run `callback(self)` between BEGIN and COMMIT and return its result.

        If the callback raises, the transaction is rolled back and
        TransactionFailed is raised with the original error as its cause.
        When a transaction is already open the callback joins it: no new
        BEGIN is issued and the outer transaction decides the outcome.
        """
        if self.in_transaction:
            return callback(self)

        self._run("BEGIN", ())
        try:
            result = callback(self)
        except Exception as exc:
            self._rollback()
            log.warning(
                "Transaction rolled back",
                extra={"error": type(exc).__name__, "path": self.path},
            )
            raise TransactionFailed(exc) from exc
        except BaseException:
            self._rollback()
            raise
        try:
            self._run("COMMIT", ())
        except sqlite3.Error:
            self._rollback()
            raise
        return result

    def _rollback(self) -> None:
        if self.in_transaction:
            self._run("ROLLBACK", ())

    # -- lifecycle ---------------------------------------------------------

    def close(self) -> None:
        """Close the underlying connection."""
        self._conn.close()

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


def _apply_pragmas(conn: sqlite3.Connection, settings: Settings) -> None:
    """Apply journal mode, foreign keys and busy timeout from settings."""
    conn.execute(f"PRAGMA busy_timeout = {int(settings.busy_timeout_ms)}")
    conn.execute(f"PRAGMA foreign_keys = {'ON' if settings.foreign_keys else 'OFF'}")
    mode = conn.execute(f"PRAGMA journal_mode = {settings.journal_mode}").fetchone()[0]
    if mode.upper() != settings.journal_mode:
        # in-memory databases always report "memory"
        log.debug(
            "Journal mode not applied",
            extra={"requested": settings.journal_mode, "effective": mode},
        )


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.1, min=0.1, max=2),
    retry=retry_if_exception_type(sqlite3.OperationalError),
    reraise=True,
)
def _connect(path: str, settings: Settings) -> sqlite3.Connection:
    """
    Open a connection and apply pragmas, retrying transient lock errors.

    Retries up to 3 times with exponential backoff on
    sqlite3.OperationalError (e.g. "database is locked" while another
    process switches the journal mode).
    """
    conn = sqlite3.connect(
        path,
        timeout=settings.busy_timeout_ms / 1000,
        isolation_level=None,
    )
    try:
        _apply_pragmas(conn, settings)
    except sqlite3.Error:
        conn.close()
        raise
    return conn


def open_database(path: Optional[str] = None, settings: Optional[Settings] = None) -> Database:
    """
    Open the store at `path` (default: `Settings.db_path`).

    Parameters
    ----------
    path : str, optional
        Database file, or ":memory:".
    settings : Settings, optional
        Overrides the cached settings (pragmas, default path).

    Returns
    -------
    Database
        A connected wrapper.

    Raises
    ------
    sqlite3.OperationalError
        If the store cannot be opened after all retry attempts.
    """
    settings = settings or get_settings()
    target = path or settings.db_path
    conn = _connect(target, settings)
    log.debug("Opened database", extra={"path": target, "journal_mode": settings.journal_mode})
    return Database(conn, path=target)


__all__ = ["Database", "Row", "open_database"]
