"""
Pytest configuration for rowkit.

Provides fixtures for:
- Settings with test-specific overrides
- A fresh in-memory database per test
- A `users` model with a small schema
- Skipping full-text tests when SQLite lacks FTS5
"""

from __future__ import annotations

import sqlite3
from typing import Generator

import pytest

from rowkit.config import Settings
from rowkit.infrastructure.database import Database, open_database
from rowkit.model import Model

USERS_SCHEMA = {"name": "text", "age": "integer", "active": "integer"}


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.
    """
    return Settings(
        db_path=":memory:",
        busy_timeout_ms=1000,
        search_limit=10,
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def fts5_available() -> bool:
    """
    Check whether the linked SQLite library was built with FTS5.
    """
    conn = sqlite3.connect(":memory:")
    try:
        conn.execute("CREATE VIRTUAL TABLE fts_check USING fts5(body)")
        return True
    except sqlite3.OperationalError:
        return False
    finally:
        conn.close()


@pytest.fixture(scope="function")
def db(test_settings: Settings) -> Generator[Database, None, None]:
    """
    Provide an isolated in-memory database for each test.
    """
    database = open_database(":memory:", settings=test_settings)
    try:
        yield database
    finally:
        database.close()


@pytest.fixture(scope="function")
def users(db: Database) -> Model:
    """
    A `users` model: name TEXT, age INTEGER, active INTEGER.
    """
    return Model(db, "users", USERS_SCHEMA)


@pytest.fixture(scope="function")
def seeded_users(users: Model) -> Model:
    """
    The `users` model with three rows inserted.
    """
    users.insert({"name": "Alice", "age": 30, "active": True})
    users.insert({"name": "Bob", "age": 17, "active": False})
    users.insert({"name": "Carol", "age": 45, "active": True})
    return users


@pytest.fixture(scope="function")
def requires_fts5(fts5_available: bool) -> None:
    if not fts5_available:
        pytest.skip("SQLite was built without FTS5")
