"""
SQL text generation for rowkit.

Validation of identifiers and operators, literal quoting, condition
compilation, and statement building. Nothing in this package touches a
connection, so it can be used from inside or outside a transaction.
"""

from rowkit.sql import statements
from rowkit.sql.conditions import Conditions, build_where, parse_condition_key
from rowkit.sql.quoting import escape_string, quote
from rowkit.sql.statements import PRIMARY_KEY, Statement
from rowkit.sql.validation import (
    ALLOWED_OPERATORS,
    is_identifier,
    validate_identifier,
    validate_operator,
)

__all__ = [
    # Validation
    "ALLOWED_OPERATORS",
    "is_identifier",
    "validate_identifier",
    "validate_operator",
    # Quoting
    "escape_string",
    "quote",
    # Conditions
    "Conditions",
    "build_where",
    "parse_condition_key",
    # Statements
    "PRIMARY_KEY",
    "Statement",
    "statements",
]
