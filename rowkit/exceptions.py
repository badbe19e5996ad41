"""rowkit exceptions"""

from typing import Optional


class RowkitError(Exception):
    """Base exception for all rowkit errors"""
    pass


class InvalidIdentifier(RowkitError, ValueError):
    """A table or column name does not match the safe identifier pattern"""

    def __init__(self, name: object, context: str = "identifier"):
        self.name = name
        self.context = context
        super().__init__(f"Invalid {context}: {name!r}")


class InvalidOperator(RowkitError, ValueError):
    """A comparison operator is not on the allow-list"""

    def __init__(self, operator: object):
        self.operator = operator
        super().__init__(f"Invalid operator: {operator!r}")


class ReservedColumn(RowkitError, ValueError):
    """The primary key column was declared or assigned by the caller"""
    pass


class RecordDeleted(RowkitError):
    """Operation attempted on a record that was already deleted"""
    pass


class SearchNotEnabled(RowkitError):
    """search() called on a model without a full-text index"""
    pass


class TransactionFailed(RowkitError):
    """A transaction callback raised; the transaction was rolled back"""

    def __init__(self, original: BaseException, message: Optional[str] = None):
        self.original = original
        super().__init__(message or f"Transaction rolled back: {original}")
