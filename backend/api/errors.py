"""
Field Service Manager - API Error Mapping
Version: 1.0.0

Changelog:
v1.0.0 (2026-10-05): Map service errors to HTTP status codes
"""

from fastapi import HTTPException
import logging

from services.errors import (
    NotFoundError, InvalidStatusError, InvalidPartQuantityError,
    TransientStoreError, StoreWriteError
)

logger = logging.getLogger(__name__)


def http_error(e: Exception) -> HTTPException:
    """Translate a service-layer exception into an HTTPException"""
    if isinstance(e, (NotFoundError, IndexError)):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, (InvalidStatusError, InvalidPartQuantityError)):
        return HTTPException(status_code=422, detail=str(e))
    if isinstance(e, TransientStoreError):
        logger.warning(f"Transient store failure: {e}")
        return HTTPException(status_code=503, detail=str(e))
    if isinstance(e, StoreWriteError):
        logger.error(f"Store write failure: {e} (cause: {e.cause!r})")
        return HTTPException(status_code=500, detail=str(e))
    if isinstance(e, ValueError):
        return HTTPException(status_code=400, detail=str(e))
    logger.error(f"Unhandled error: {e}")
    return HTTPException(status_code=500, detail=f"Internal error: {e}")
