"""
Field Service Manager - Service Error Types
Version: 1.0.0

Changelog:
v1.0.0 (2026-10-05): Typed errors raised by the counter and job lifecycle
"""

import aiosqlite


class FieldServiceError(Exception):
    """Base class for errors raised by the service layer"""


class TransientStoreError(FieldServiceError):
    """The store could not commit after retries. Safe to retry later."""


class StoreWriteError(FieldServiceError):
    """The store rejected a write (permissions, constraint, I/O)"""

    def __init__(self, message: str, cause: Exception = None):
        super().__init__(message)
        self.cause = cause


class InvalidStatusError(FieldServiceError, ValueError):
    """Requested job status is outside the closed set"""


class InvalidPartQuantityError(FieldServiceError, ValueError):
    """Part quantity would be negative"""


class NotFoundError(FieldServiceError, LookupError):
    """Target record does not exist"""


_BUSY_MARKERS = ("locked", "busy")


def is_busy(exc: Exception) -> bool:
    """True when SQLite refused the operation only because another writer held the lock"""
    return isinstance(exc, aiosqlite.OperationalError) and any(
        marker in str(exc).lower() for marker in _BUSY_MARKERS
    )


def is_rejection(exc: Exception) -> bool:
    """True for constraint and permission failures (the soft-delete fallback set)"""
    if isinstance(exc, aiosqlite.IntegrityError):
        return True
    if isinstance(exc, aiosqlite.OperationalError):
        message = str(exc).lower()
        return "readonly" in message or "permission" in message or "not authorized" in message
    return False


def store_error(exc: Exception, action: str) -> FieldServiceError:
    """Map an aiosqlite exception to the service error taxonomy"""
    if is_busy(exc):
        return TransientStoreError(f"{action}: store busy ({exc})")
    return StoreWriteError(f"{action}: {exc}", cause=exc)
