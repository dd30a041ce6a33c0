"""
functions/errors.py: Error codes of the callable protocol.
"""
from enum import Enum


class FunctionsErrorCode(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    INVALID_ARGUMENT = "invalid-argument"
    PERMISSION_DENIED = "permission-denied"
    NOT_FOUND = "not-found"
    INTERNAL = "internal"

    @property
    def http_status(self) -> int:
        return HTTP_STATUS[self]

    @property
    def status(self) -> str:
        """Canonical status name used in the error body, e.g. "INVALID_ARGUMENT"."""
        return self.value.replace("-", "_").upper()


HTTP_STATUS = {
    FunctionsErrorCode.UNAUTHENTICATED: 401,
    FunctionsErrorCode.INVALID_ARGUMENT: 400,
    FunctionsErrorCode.PERMISSION_DENIED: 403,
    FunctionsErrorCode.NOT_FOUND: 404,
    FunctionsErrorCode.INTERNAL: 500,
}


class CallableError(Exception):
    """Error returned to the caller of a callable endpoint."""

    def __init__(self, code: FunctionsErrorCode, message: str):
        super().__init__(message)
        self.code = FunctionsErrorCode(code)
        self.message = message

    def to_dict(self):
        return {"error": {"status": self.code.status, "message": self.message}}

    def __str__(self):
        return f"CallableError[{self.code.value}]: {self.message}"
