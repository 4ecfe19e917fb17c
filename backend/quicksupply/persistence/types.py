"""
Persistence types, outcomes, and exceptions.

WHAT: Error taxonomy and explicit result type for store calls
WHY: Callers decide on fallback by error kind instead of catching broad exceptions
HOW: Exceptions raised inside stores, converted to Outcome at the boundary
"""

import enum
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(str, enum.Enum):
    """Why a store call failed."""
    CONNECTIVITY = "connectivity"
    CONFLICT = "conflict"
    UNAUTHORIZED = "unauthorized"
    INVALID_RESPONSE = "invalid_response"


class StoreError(Exception):
    """Base class for persistence failures."""
    kind: ErrorKind = ErrorKind.INVALID_RESPONSE


class StoreUnavailableError(StoreError):
    """Store is not reachable or down."""
    kind = ErrorKind.CONNECTIVITY


class StoreTimeoutError(StoreError):
    """Store call exceeded STORE_TIMEOUT."""
    kind = ErrorKind.CONNECTIVITY


class StoreConflictError(StoreError):
    """Store rejected a write (constraint violation, row-level policy, bad foreign key)."""
    kind = ErrorKind.CONFLICT


class StoreAuthError(StoreError):
    """Identity provider rejected credentials or token."""
    kind = ErrorKind.UNAUTHORIZED


class StoreResponseError(StoreError):
    """Store returned an unexpected or malformed response."""
    kind = ErrorKind.INVALID_RESPONSE


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Value of a store call, or the kind of failure that replaced it."""
    value: Optional[T] = None
    error: Optional[ErrorKind] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> "Outcome[T]":
        return cls(error=kind, message=message)
