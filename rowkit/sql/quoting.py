"""
Literal quoting for values that must be inlined into SQL text.

Statement values are bound as parameters wherever the statement shape is
fixed; `quote` is reserved for dynamically shaped clauses (conditions) and
`escape_string` for literals embedded in other constructs such as an FTS
MATCH argument.
"""

from __future__ import annotations

import math
from typing import Any

NULL = "NULL"

# SQLite INTEGER storage is a signed 64-bit value
INT64_MIN, INT64_MAX = -(2**63), 2**63 - 1


def escape_string(value: Any) -> str:
    """Stringify `value` and double every single quote. No surrounding quotes."""
    return str(value).replace("'", "''")


def bindable(value: Any) -> Any:
    """
    Adapt a value for parameter binding.

    Integers outside the 64-bit range become floats, which is how SQLite
    reads the same number written as a literal.
    """
    if isinstance(value, int) and not isinstance(value, bool) and not INT64_MIN <= value <= INT64_MAX:
        try:
            return float(value)
        except OverflowError:
            return math.inf if value > 0 else -math.inf
    return value


def _quote_text(text: str) -> str:
    # the driver refuses SQL text containing NUL, so spell it as a blob
    if "\x00" in text:
        return f"CAST(X'{text.encode('utf-8').hex().upper()}' AS TEXT)"
    return "'" + text.replace("'", "''") + "'"


def _quote_float(value: float) -> str:
    # SQLite has no literal for these; it stores NaN as NULL and reads
    # out-of-range literals as +/-Inf.
    if math.isnan(value):
        return NULL
    if math.isinf(value):
        return "9e999" if value > 0 else "-9e999"
    return repr(value)


def quote(value: Any) -> str:
    """
    Convert a scalar into SQL literal text.

    None becomes NULL, numbers their decimal text, booleans 1/0, and anything
    else a single-quoted string with embedded quotes doubled. Text containing
    NUL characters is written as a blob literal cast to TEXT.
    """
    if value is None:
        return NULL
    # bool is an int subclass and must be caught first
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, int):
        value = bindable(value)
        return str(value) if isinstance(value, int) else _quote_float(value)
    if isinstance(value, float):
        return _quote_float(value)
    return _quote_text(str(value))


__all__ = ["INT64_MAX", "INT64_MIN", "NULL", "bindable", "escape_string", "quote"]
