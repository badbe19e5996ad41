"""
Condition compiler: turns a condition mapping into a WHERE clause.

A condition key is either a bare column name (implicit `=`) or a column name,
one space, and an operator:

    build_where({"name": "Alice", "age >=": 18})
    # "name = 'Alice' AND age >= 18"

Entries are AND-joined in insertion order.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Tuple

from rowkit.sql.quoting import quote
from rowkit.sql.validation import validate_identifier, validate_operator

Conditions = Mapping[str, Any]


def parse_condition_key(key: str) -> Tuple[str, str]:
    """Split a condition key into a validated (column, operator) pair."""
    if isinstance(key, str) and " " in key:
        column, operator = key.split(" ", 1)
        return validate_identifier(column, "column"), validate_operator(operator)
    return validate_identifier(key, "column"), "="


def build_where(conditions: Optional[Conditions]) -> str:
    """
    Compile `conditions` into an AND-joined clause (without the WHERE keyword).

    Returns an empty string for None or an empty mapping. Raises
    InvalidIdentifier / InvalidOperator on the first offending key.
    """
    if not conditions:
        return ""
    fragments = []
    for key, value in conditions.items():
        column, operator = parse_condition_key(key)
        fragments.append(f"{column} {operator} {quote(value)}")
    return " AND ".join(fragments)


__all__ = ["Conditions", "build_where", "parse_condition_key"]
