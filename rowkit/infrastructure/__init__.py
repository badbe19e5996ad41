"""
Infrastructure package for rowkit.

Centralizes store connectivity (opening, pragmas, statement execution,
transactions). Keep this layer focused on I/O, decoupled from SQL text
generation and model logic.
"""

from rowkit.infrastructure.database import Database, Row, open_database

__all__ = [
    "Database",
    "Row",
    "open_database",
]
