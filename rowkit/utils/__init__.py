"""
Utilities package for rowkit.

Exports shared helpers for logging and other cross-cutting concerns.
Keep this package lightweight and free of SQL or model logic.
"""

from rowkit.utils.logging import configure_from_settings, configure_logging, get_logger

__all__ = [
    "configure_logging",
    "configure_from_settings",
    "get_logger",
]
