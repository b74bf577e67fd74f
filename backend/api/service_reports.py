"""
Field Service Manager - Service Report Number API
Version: 1.0.0

Changelog:
v1.0.0 (2026-10-12): Read the counter; move it forward when importing
                      legacy report numbers
"""

from fastapi import APIRouter
from pydantic import BaseModel, Field
import logging

from services import counter_service
from services.errors import FieldServiceError
from api.errors import http_error

router = APIRouter(prefix="/service-report-number", tags=["service-report-number"])
logger = logging.getLogger(__name__)


class CounterAdvance(BaseModel):
    next: int = Field(..., ge=1, description="Number the next job will receive")


@router.get("/")
async def get_next_number():
    """Number the next created job will receive (nothing is reserved)"""
    try:
        return {"next": await counter_service.peek_next()}
    except FieldServiceError as e:
        raise http_error(e)


@router.put("/")
async def advance_counter(data: CounterAdvance):
    try:
        return {"next": await counter_service.advance_to(data.next)}
    except (FieldServiceError, ValueError) as e:
        raise http_error(e)
