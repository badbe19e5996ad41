"""
Domain package for rowkit.

Exports the row-level types returned by models. Keep this package focused
on data definitions; statement text lives in `rowkit.sql`.
"""

from rowkit.domain.record import Record, SearchAnnotations

__all__ = [
    "Record",
    "SearchAnnotations",
]
