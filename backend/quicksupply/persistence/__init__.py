"""Persistence collaborator layer."""

from .types import (
    ErrorKind,
    Outcome,
    StoreError,
    StoreUnavailableError,
    StoreTimeoutError,
    StoreConflictError,
    StoreAuthError,
    StoreResponseError,
)
from .store import DirectoryStore
from .gateway import attempt
from .store_factory import get_store, set_store, reset_store

__all__ = [
    "ErrorKind",
    "Outcome",
    "StoreError",
    "StoreUnavailableError",
    "StoreTimeoutError",
    "StoreConflictError",
    "StoreAuthError",
    "StoreResponseError",
    "DirectoryStore",
    "attempt",
    "get_store",
    "set_store",
    "reset_store",
]
