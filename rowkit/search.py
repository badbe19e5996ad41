"""
Full-text search over a model's table using an FTS5 external-content index.

The index table `<table>_fts` mirrors the chosen text columns and is kept in
sync by triggers on the base table. Queries join hits back to the base table
and return the rank, optional snippet, and optional highlighted columns under
prefixed aliases so they can be split off from the row's own columns.

Identifiers go through `validate_identifier` and every literal embedded in
the query text (the MATCH argument and the highlight marks) through the
same quoting helpers the condition compiler uses.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

from rowkit.domain.record import SearchAnnotations
from rowkit.exceptions import InvalidIdentifier
from rowkit.sql.conditions import Conditions, build_where
from rowkit.sql.quoting import escape_string, quote
from rowkit.sql.statements import PRIMARY_KEY, Statement
from rowkit.sql.validation import validate_identifier

# Prefix for computed columns in a search row; never a base-table column.
ANNOTATION_PREFIX = "_fts_"
RANK_ALIAS = f"{ANNOTATION_PREFIX}rank"
SNIPPET_ALIAS = f"{ANNOTATION_PREFIX}snippet"
HIGHLIGHT_PREFIX = f"{ANNOTATION_PREFIX}hl_"


class SearchOptions(BaseModel):
    """
    Per-call options for `Model.search`.
    """

    limit: Optional[int] = Field(None, ge=1, description="Page size; defaults to Settings.search_limit.")
    offset: int = Field(0, ge=0)
    snippet: bool = Field(False, description="Return an excerpt around the match.")
    snippet_column: Optional[str] = Field(None, description="Column to excerpt; best match if unset.")
    snippet_tokens: int = Field(16, ge=1, le=64)
    highlight: bool = Field(False, description="Return every indexed column with matches marked.")
    open_mark: str = "<b>"
    close_mark: str = "</b>"
    ellipsis: str = "..."
    literal: bool = Field(
        False, description="Treat the query as plain words instead of FTS5 query syntax."
    )
    conditions: Optional[Dict[str, Any]] = Field(
        None, description="Extra condition mapping applied to the base table."
    )

    model_config = {
        "frozen": True,
        "extra": "forbid",
    }


def index_table(table: str) -> str:
    return f"{validate_identifier(table, 'table')}_fts"


def _validate_columns(columns: Sequence[str]) -> Tuple[str, ...]:
    if not columns:
        raise ValueError("At least one column is required for a search index")
    return tuple(validate_identifier(column, "column") for column in columns)


def create_index_statements(table: str, columns: Sequence[str]) -> List[Statement]:
    """
    Statements creating the FTS5 table, its sync triggers, and filling it.
    """
    fts = index_table(table)
    cols = _validate_columns(columns)
    col_list = ", ".join(cols)
    new_values = ", ".join(f"new.{c}" for c in cols)
    old_values = ", ".join(f"old.{c}" for c in cols)
    pk = PRIMARY_KEY
    return [
        Statement(
            f"CREATE VIRTUAL TABLE IF NOT EXISTS {fts} USING fts5("
            f"{col_list}, content='{table}', content_rowid='{pk}')"
        ),
        Statement(
            f"CREATE TRIGGER IF NOT EXISTS {fts}_ai AFTER INSERT ON {table} BEGIN "
            f"INSERT INTO {fts}(rowid, {col_list}) VALUES (new.{pk}, {new_values}); END"
        ),
        Statement(
            f"CREATE TRIGGER IF NOT EXISTS {fts}_ad AFTER DELETE ON {table} BEGIN "
            f"INSERT INTO {fts}({fts}, rowid, {col_list}) VALUES ('delete', old.{pk}, {old_values}); END"
        ),
        Statement(
            f"CREATE TRIGGER IF NOT EXISTS {fts}_au AFTER UPDATE ON {table} BEGIN "
            f"INSERT INTO {fts}({fts}, rowid, {col_list}) VALUES ('delete', old.{pk}, {old_values}); "
            f"INSERT INTO {fts}(rowid, {col_list}) VALUES (new.{pk}, {new_values}); END"
        ),
        Statement(f"INSERT INTO {fts}({fts}) VALUES ('rebuild')"),
    ]


def drop_index_statements(table: str) -> List[Statement]:
    fts = index_table(table)
    return [
        Statement(f"DROP TRIGGER IF EXISTS {fts}_ai"),
        Statement(f"DROP TRIGGER IF EXISTS {fts}_ad"),
        Statement(f"DROP TRIGGER IF EXISTS {fts}_au"),
        Statement(f"DROP TABLE IF EXISTS {fts}"),
    ]


def literal_query(text: str) -> str:
    """Quote each whitespace-separated word as an FTS5 string (implicit AND)."""
    words = text.split()
    return " ".join('"' + word.replace('"', '""') + '"' for word in words)


def search_statement(
    table: str,
    columns: Sequence[str],
    query: str,
    options: SearchOptions,
    limit: int,
) -> Statement:
    """
    Build the SELECT returning base-table rows for `query`, best match first.
    """
    fts = index_table(table)
    cols = _validate_columns(columns)
    match = literal_query(query) if options.literal else query
    open_mark, close_mark = quote(options.open_mark), quote(options.close_mark)

    projection = ["base.*", f"bm25({fts}) AS {RANK_ALIAS}"]
    if options.snippet:
        if options.snippet_column is None:
            index = -1
        elif options.snippet_column in cols:
            index = cols.index(options.snippet_column)
        else:
            raise InvalidIdentifier(options.snippet_column, "search column")
        projection.append(
            f"snippet({fts}, {index}, {open_mark}, {close_mark}, "
            f"{quote(options.ellipsis)}, {options.snippet_tokens}) AS {SNIPPET_ALIAS}"
        )
    if options.highlight:
        for index, column in enumerate(cols):
            projection.append(
                f"highlight({fts}, {index}, {open_mark}, {close_mark}) AS {HIGHLIGHT_PREFIX}{column}"
            )

    clause = build_where(options.conditions)
    source = f"(SELECT * FROM {table} WHERE {clause})" if clause else table
    sql = (
        f"SELECT {', '.join(projection)} FROM {fts} "
        f"JOIN {source} AS base ON base.{PRIMARY_KEY} = {fts}.rowid "
        f"WHERE {fts} MATCH '{escape_string(match)}' "
        f"ORDER BY bm25({fts}) LIMIT ? OFFSET ?"
    )
    return Statement(sql, (limit, options.offset))


def split_hit(row: Mapping[str, Any]) -> Tuple[Dict[str, Any], SearchAnnotations]:
    """Separate base-table fields from computed search columns."""
    fields: Dict[str, Any] = {}
    highlights: Dict[str, str] = {}
    for key, value in row.items():
        if key.startswith(HIGHLIGHT_PREFIX):
            highlights[key[len(HIGHLIGHT_PREFIX):]] = value
        elif not key.startswith(ANNOTATION_PREFIX):
            fields[key] = value
    annotations = SearchAnnotations(
        rank=row[RANK_ALIAS],
        snippet=row.get(SNIPPET_ALIAS),
        highlights=highlights,
    )
    return fields, annotations


def coerce_options(options: Optional[Any]) -> SearchOptions:
    if options is None:
        return SearchOptions()
    if isinstance(options, SearchOptions):
        return options
    return SearchOptions.model_validate(options)


__all__ = [
    "ANNOTATION_PREFIX",
    "SearchOptions",
    "coerce_options",
    "create_index_statements",
    "drop_index_statements",
    "index_table",
    "literal_query",
    "search_statement",
    "split_hit",
]
