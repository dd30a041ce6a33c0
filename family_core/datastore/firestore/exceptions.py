from typing import Optional


class DatastoreError(Exception):
    """
    Raised when a datastore read or write fails for infrastructure reasons.

    Callable endpoints turn it into an `internal` error; notifiers log it and move on.
    The underlying client exception is kept in `cause` for server-side logs only.
    """

    def __init__(self, message: str, *, operation: Optional[str] = None, cause: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.cause = cause

    def __str__(self):
        prefix = f"[{self.operation}] " if self.operation else ""
        if self.cause:
            return f"{prefix}{self.message} (caused by {self.cause!r})"
        return f"{prefix}{self.message}"
