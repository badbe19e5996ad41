"""
Identifier and operator validation.

Identifiers (table and column names) cannot be bound as statement parameters,
so every name that reaches SQL text goes through `validate_identifier` first.
Comparison operators are restricted to a fixed allow-list.
"""

from __future__ import annotations

import re
from typing import FrozenSet

from rowkit.exceptions import InvalidIdentifier, InvalidOperator

IDENTIFIER_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_]*", re.ASCII)

ALLOWED_OPERATORS: FrozenSet[str] = frozenset(
    {"=", "!=", "<>", "<", ">", "<=", ">=", "LIKE", "NOT LIKE", "IS", "IS NOT"}
)


def is_identifier(name: object) -> bool:
    """Return True when `name` is a string matching the identifier pattern."""
    return isinstance(name, str) and IDENTIFIER_PATTERN.fullmatch(name) is not None


def validate_identifier(name: str, context: str = "identifier") -> str:
    """
    Return `name` unchanged if it is a safe identifier.

    Parameters
    ----------
    name : str
        Candidate table or column name.
    context : str
        What the name is used as ("table", "column", ...); only used in the
        error message.

    Raises
    ------
    InvalidIdentifier
        If `name` is not a string of ASCII letters, digits and underscores
        starting with a letter or underscore.
    """
    if not is_identifier(name):
        raise InvalidIdentifier(name, context)
    return name


def validate_operator(op: str) -> str:
    """
    Return `op` with its original casing if it is an allowed operator.

    The comparison is case-insensitive: "like" and "Is Not" are accepted.

    Raises
    ------
    InvalidOperator
        If `op` is not on the allow-list.
    """
    if not isinstance(op, str) or op.upper() not in ALLOWED_OPERATORS:
        raise InvalidOperator(op)
    return op


__all__ = [
    "ALLOWED_OPERATORS",
    "IDENTIFIER_PATTERN",
    "is_identifier",
    "validate_identifier",
    "validate_operator",
]
