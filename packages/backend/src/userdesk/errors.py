"""Typed failures raised by the procedure layer.

Learn: every procedure either returns a payload or raises an AccountError.
The kind maps 1:1 to an HTTP status in main.py, so services never import
FastAPI and routes never build error responses by hand.
"""

import enum
from typing import Optional


class ErrorKind(str, enum.Enum):
    INVALID_ARGUMENT = "invalid_argument"
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    INTERNAL = "internal"


HTTP_STATUS = {
    ErrorKind.INVALID_ARGUMENT: 400,
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INTERNAL: 500,
}


class AccountError(Exception):
    """Base class: a kind plus a human-readable message."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

    @property
    def status_code(self) -> int:
        return HTTP_STATUS[self.kind]

    def to_dict(self) -> dict:
        return {"detail": self.message, "kind": self.kind.value, "field": self.field}


class InvalidArgument(AccountError):
    """Malformed or missing input, caught before any store access."""

    kind = ErrorKind.INVALID_ARGUMENT


class Unauthenticated(AccountError):
    """No resolved identity, or a credential check failed."""

    kind = ErrorKind.UNAUTHENTICATED


class Forbidden(AccountError):
    """Identity resolved but its role or status disallows the action."""

    kind = ErrorKind.FORBIDDEN


class Conflict(AccountError):
    kind = ErrorKind.CONFLICT


class NotFound(AccountError):
    kind = ErrorKind.NOT_FOUND


class Internal(AccountError):
    kind = ErrorKind.INTERNAL
