from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Categories of store failures surfaced by the gateway."""
    UNIQUE_VIOLATION = "UniqueViolation"
    FOREIGN_KEY_VIOLATION = "ForeignKeyViolation"
    INVALID_INPUT_FORMAT = "InvalidInputFormat"
    SCHEMA_MISMATCH = "SchemaMismatch"
    UNKNOWN = "Unknown"


class StoreError(Exception):
    """
    Store-level failure translated out of the database driver.

    Attributes:
        kind: Domain category of the failure
        message: Driver message, kept for logs
        constraint: Violated constraint (e.g. 'categories.name'), if known
        table: Table the failure refers to, if known
    """

    def __init__(self, kind: ErrorKind, message: str,
                 constraint: Optional[str] = None, table: Optional[str] = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.constraint = constraint
        self.table = table

    def __repr__(self):
        return f"StoreError(kind={self.kind.value!r}, message={self.message!r}, constraint={self.constraint!r})"


class ValidationError(ValueError):
    """A request payload failed validation before reaching the store."""


class BridgeNotReadyError(RuntimeError):
    """An operation was invoked before the bridge registered its handlers."""
