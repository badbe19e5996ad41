"""
rowkit - a lightweight relational-mapping layer over SQLite.

Declare a table as a column schema, filter with condition mappings, and get
back records that can save and delete themselves:

    from rowkit import Model, open_database

    db = open_database(":memory:")
    users = Model(db, "users", {"name": "text", "age": "integer"})
    users.insert({"name": "Alice", "age": 30})

    adult = users.first({"age >=": 18})
    adult.age += 1
    adult.save()

Condition keys are a column name (implicit `=`) or a column name, a space,
and one of `= != <> < > <= >= LIKE NOT LIKE IS IS NOT`. Every table and
column name is checked against a strict identifier pattern before any SQL
is sent.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from rowkit.config import Settings, get_settings
from rowkit.domain.record import Record, SearchAnnotations
from rowkit.exceptions import (
    InvalidIdentifier,
    InvalidOperator,
    RecordDeleted,
    ReservedColumn,
    RowkitError,
    SearchNotEnabled,
    TransactionFailed,
)
from rowkit.infrastructure.database import Database, open_database
from rowkit.model import Model
from rowkit.search import SearchOptions
from rowkit.sql import build_where, escape_string, quote, validate_identifier, validate_operator
from rowkit.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Store
    "Database",
    "open_database",
    # Models and records
    "Model",
    "Record",
    "SearchAnnotations",
    "SearchOptions",
    # SQL helpers
    "build_where",
    "escape_string",
    "quote",
    "validate_identifier",
    "validate_operator",
    # Errors
    "RowkitError",
    "InvalidIdentifier",
    "InvalidOperator",
    "ReservedColumn",
    "RecordDeleted",
    "SearchNotEnabled",
    "TransactionFailed",
    # Logging
    "configure_logging",
    "get_logger",
]
