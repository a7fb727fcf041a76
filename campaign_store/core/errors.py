"""Store error taxonomy.

Every error raised by a store operation derives from ``StoreError``. The
failing operation's transaction is always rolled back before the error
reaches the caller.
"""


class StoreError(Exception):
    """Base exception for store errors."""

    pass


class ValidationError(StoreError):
    """A required field is missing, empty or malformed."""

    def __init__(self, field: str, message: str | None = None):
        self.field = field
        super().__init__(message or f"{field} must not be empty")


class MissingReferenceError(StoreError):
    """A foreign key points at a row that does not exist."""

    def __init__(self, table: str, key: object):
        self.table = table
        self.key = key
        super().__init__(f"{table} row {key!r} does not exist")


class ConflictError(StoreError):
    """Primary-key collision, or a write that kept losing to concurrent writers."""

    def __init__(self, message: str, *, table: str | None = None, key: object = None):
        self.table = table
        self.key = key
        super().__init__(message)


__all__ = ["StoreError", "ValidationError", "MissingReferenceError", "ConflictError"]
