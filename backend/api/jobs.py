"""
Field Service Manager - Job API Endpoints
Version: 1.3.0

Changelog:
v1.3.0 (2026-10-19): GET /stats dashboard counts; list limit must be >= 1
v1.2.0 (2026-10-14): Parts/Labour line endpoints
v1.1.0 (2026-10-12): PUT routes through the job lifecycle (transition or
                      amendment); DELETE reports soft-delete fallback
v1.0.0 (2026-10-05): Initial job CRUD
"""

from fastapi import APIRouter, HTTPException, Query
from typing import Optional
import logging

from models.job import JobCreate, JobUpdate, StatusChange, PartAdd, PartEdit
from services import job_service, job_lifecycle
from services.errors import FieldServiceError
from api.errors import http_error

router = APIRouter(prefix="/jobs", tags=["jobs"])
logger = logging.getLogger(__name__)


@router.get("/")
async def list_jobs(
    status: Optional[str] = None,
    technician_id: Optional[int] = None,
    client_id: Optional[int] = None,
    service_type: Optional[str] = None,
    search: Optional[str] = None,
    limit: int = Query(100, ge=1)
):
    """List active jobs. status accepts a job status, 'open' or 'closed'."""
    try:
        return await job_service.list_jobs(
            status=status, technician_id=technician_id, client_id=client_id,
            service_type=service_type, search=search, limit=limit)
    except FieldServiceError as e:
        raise http_error(e)


@router.get("/stats")
async def get_stats():
    """Dashboard counts over active jobs plus directory totals"""
    try:
        return await job_service.dashboard_stats()
    except FieldServiceError as e:
        raise http_error(e)


@router.get("/{job_id}")
async def get_job(job_id: int):
    try:
        return await job_service.get_job(job_id)
    except FieldServiceError as e:
        raise http_error(e)


@router.post("/", status_code=201)
async def create_job(data: JobCreate):
    """Create a pending job; the Service Report Number is allocated here"""
    try:
        job = await job_service.create_job(data)
    except FieldServiceError as e:
        raise http_error(e)
    return {
        "status": "ok",
        "message": f"Job created with Service Report Number {job['snpid']}",
        "job": job
    }


@router.put("/{job_id}")
async def update_job(job_id: int, data: JobUpdate):
    """
    Edit a job. With `status` this is a status transition carrying the
    dependent fields; without it the fields are amended in place.
    """
    fields = data.model_dump(exclude={"status"}, exclude_unset=True)
    if data.status is None and not fields:
        raise HTTPException(status_code=400, detail="No fields to update")

    try:
        if data.status is not None:
            return await job_lifecycle.apply_job_transition(job_id, data.status, fields)
        return await job_lifecycle.amend_job(job_id, fields)
    except FieldServiceError as e:
        raise http_error(e)


@router.put("/{job_id}/status")
async def change_status(job_id: int, data: StatusChange):
    try:
        return await job_lifecycle.apply_job_transition(job_id, data.status)
    except FieldServiceError as e:
        raise http_error(e)


@router.delete("/{job_id}")
async def delete_job(job_id: int):
    """Delete a job; falls back to flagging it deleted when removal is rejected"""
    try:
        removed = await job_lifecycle.delete_job(job_id)
    except FieldServiceError as e:
        raise http_error(e)
    return {"status": "ok", "soft_deleted": not removed}


# -- Parts / Labour lines --

@router.post("/{job_id}/parts")
async def add_part(job_id: int, data: PartAdd):
    try:
        return await job_lifecycle.add_job_part(job_id, data.description)
    except FieldServiceError as e:
        raise http_error(e)


@router.delete("/{job_id}/parts/{index}")
async def remove_part(job_id: int, index: int):
    try:
        return await job_lifecycle.remove_job_part(job_id, index)
    except (FieldServiceError, IndexError) as e:
        raise http_error(e)


@router.put("/{job_id}/parts/{index}")
async def edit_part(job_id: int, index: int, data: PartEdit):
    """Set a quantity directly ({qty}) or step it ({adjust: 'up'|'down'})"""
    try:
        if data.qty is not None:
            return await job_lifecycle.set_job_part_quantity(job_id, index, data.qty)
        if data.adjust is not None:
            return await job_lifecycle.adjust_job_part(job_id, index, data.adjust)
    except (FieldServiceError, IndexError, ValueError) as e:
        raise http_error(e)
    raise HTTPException(status_code=400, detail="Provide qty or adjust")
