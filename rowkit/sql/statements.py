"""
Statement builder for INSERT / SELECT / UPDATE / DELETE text.

Every builder validates the table and column names it embeds and returns a
`Statement` pairing SQL text with the parameters to bind. Values are bound
as `?` parameters; only WHERE clauses compiled from condition mappings carry
inlined, quoted literals.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Sequence, Tuple

from rowkit.exceptions import ReservedColumn
from rowkit.sql.conditions import Conditions, build_where
from rowkit.sql.quoting import bindable
from rowkit.sql.validation import validate_identifier

PRIMARY_KEY = "id"


@dataclass(frozen=True)
class Statement:
    """SQL text plus the positional parameters to bind."""

    sql: str
    params: Tuple[Any, ...] = ()


def _where_suffix(conditions: Optional[Conditions]) -> str:
    clause = build_where(conditions)
    return f" WHERE {clause}" if clause else ""


def _columns(names: Iterable[str]) -> Tuple[str, ...]:
    return tuple(validate_identifier(name, "column") for name in names)


def _values(attrs: Mapping[str, Any]) -> Tuple[Any, ...]:
    return tuple(bindable(value) for value in attrs.values())


def create_table(table: str, schema: Mapping[str, str]) -> Statement:
    """
    CREATE TABLE IF NOT EXISTS with an implicit `id INTEGER PRIMARY KEY`.

    Column types are upper-cased and otherwise passed through unchecked.
    """
    validate_identifier(table, "table")
    definitions = [f"{PRIMARY_KEY} INTEGER PRIMARY KEY"]
    for name, declared_type in schema.items():
        validate_identifier(name, "column")
        if name == PRIMARY_KEY:
            raise ReservedColumn(f"'{PRIMARY_KEY}' is created automatically on {table}")
        definitions.append(f"{name} {str(declared_type).upper()}")
    return Statement(f"CREATE TABLE IF NOT EXISTS {table} ({', '.join(definitions)})")


def insert(table: str, attrs: Mapping[str, Any]) -> Statement:
    validate_identifier(table, "table")
    if not attrs:
        return Statement(f"INSERT INTO {table} DEFAULT VALUES")
    columns = _columns(attrs.keys())
    placeholders = ", ".join("?" for _ in columns)
    return Statement(
        f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})",
        _values(attrs),
    )


def select(
    table: str,
    conditions: Optional[Conditions] = None,
    columns: Optional[Sequence[str]] = None,
    limit: Optional[int] = None,
) -> Statement:
    validate_identifier(table, "table")
    projection = ", ".join(_columns(columns)) if columns else "*"
    sql = f"SELECT {projection} FROM {table}{_where_suffix(conditions)}"
    if limit is not None:
        sql += f" LIMIT {int(limit)}"
    return Statement(sql)


def select_by_id(table: str, record_id: Any) -> Statement:
    validate_identifier(table, "table")
    return Statement(f"SELECT * FROM {table} WHERE {PRIMARY_KEY} = ?", (record_id,))


def count(table: str, conditions: Optional[Conditions] = None) -> Statement:
    validate_identifier(table, "table")
    return Statement(f"SELECT COUNT(*) FROM {table}{_where_suffix(conditions)}")


def _assignments(attrs: Mapping[str, Any]) -> str:
    return ", ".join(f"{column} = ?" for column in _columns(attrs.keys()))


def update(table: str, attrs: Mapping[str, Any], conditions: Optional[Conditions] = None) -> Statement:
    """UPDATE ... SET col = ?, ... with an optional compiled WHERE clause."""
    validate_identifier(table, "table")
    set_clause = _assignments(attrs)
    return Statement(
        f"UPDATE {table} SET {set_clause}{_where_suffix(conditions)}",
        _values(attrs),
    )


def update_by_id(table: str, attrs: Mapping[str, Any], record_id: Any) -> Statement:
    validate_identifier(table, "table")
    set_clause = _assignments(attrs)
    return Statement(
        f"UPDATE {table} SET {set_clause} WHERE {PRIMARY_KEY} = ?",
        _values(attrs) + (record_id,),
    )


def delete(table: str, conditions: Optional[Conditions] = None) -> Statement:
    validate_identifier(table, "table")
    return Statement(f"DELETE FROM {table}{_where_suffix(conditions)}")


def delete_by_id(table: str, record_id: Any) -> Statement:
    validate_identifier(table, "table")
    return Statement(f"DELETE FROM {table} WHERE {PRIMARY_KEY} = ?", (record_id,))


__all__ = [
    "PRIMARY_KEY",
    "Statement",
    "count",
    "create_table",
    "delete",
    "delete_by_id",
    "insert",
    "select",
    "select_by_id",
    "update",
    "update_by_id",
]
