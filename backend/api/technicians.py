"""
Field Service Manager - Technician API Endpoints
Version: 1.1.0

Changelog:
v1.1.0 (2026-10-19): Per-technician job stats
v1.0.0 (2026-10-05): Initial technician CRUD and per-technician job list
"""

from fastapi import APIRouter, HTTPException
from datetime import datetime
import logging

from database import get_db, execute_one, execute_all, execute_insert, execute_update
from models.directory import TechnicianCreate, TechnicianUpdate
from services import job_service
from services.errors import FieldServiceError
from api.errors import http_error

router = APIRouter(prefix="/technicians", tags=["technicians"])
logger = logging.getLogger(__name__)


@router.get("/")
async def list_technicians(include_inactive: bool = False):
    async with get_db() as db:
        if include_inactive:
            return await execute_all(db, "SELECT * FROM technicians ORDER BY name")
        return await execute_all(
            db, "SELECT * FROM technicians WHERE is_active = 1 ORDER BY name")


@router.get("/{technician_id}")
async def get_technician(technician_id: int):
    async with get_db() as db:
        row = await execute_one(
            db, "SELECT * FROM technicians WHERE id = ?", (technician_id,))
    if not row:
        raise HTTPException(status_code=404, detail="Technician not found")
    return row


@router.post("/", status_code=201)
async def create_technician(data: TechnicianCreate):
    async with get_db() as db:
        technician_id = await execute_insert(db, """
            INSERT INTO technicians (name, email, phone, specialization)
            VALUES (?, ?, ?, ?)
        """, (data.name, data.email, data.phone, data.specialization))

    logger.info(f"Technician {technician_id} created: {data.name}")
    return {"id": technician_id, "message": f"Technician '{data.name}' created"}


@router.put("/{technician_id}")
async def update_technician(technician_id: int, data: TechnicianUpdate):
    updates = []
    params = []
    for field_name, value in data.model_dump(exclude_none=True).items():
        updates.append(f"{field_name} = ?")
        params.append(value)

    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")

    updates.append("updated_at = ?")
    params.append(datetime.now().isoformat())
    params.append(technician_id)

    async with get_db() as db:
        count = await execute_update(
            db, f"UPDATE technicians SET {', '.join(updates)} WHERE id = ?", params)
    if count == 0:
        raise HTTPException(status_code=404, detail="Technician not found")
    return {"success": True, "message": f"Technician {technician_id} updated"}


@router.delete("/{technician_id}")
async def deactivate_technician(technician_id: int):
    """Technicians are deactivated, not removed; their jobs still reference them"""
    async with get_db() as db:
        count = await execute_update(db, """
            UPDATE technicians SET is_active = 0, updated_at = ? WHERE id = ?
        """, (datetime.now().isoformat(), technician_id))
    if count == 0:
        raise HTTPException(status_code=404, detail="Technician not found")
    return {"status": "ok"}


@router.get("/{technician_id}/jobs")
async def get_technician_jobs(technician_id: int):
    """Active jobs assigned to a technician (mobile job list)"""
    try:
        return await job_service.list_jobs_for_technician(technician_id)
    except FieldServiceError as e:
        raise http_error(e)


@router.get("/{technician_id}/stats")
async def get_technician_stats(technician_id: int):
    """Total and per-status job counts for one technician (performance view)"""
    async with get_db() as db:
        technician = await execute_one(
            db, "SELECT id FROM technicians WHERE id = ?", (technician_id,))
    if not technician:
        raise HTTPException(status_code=404, detail="Technician not found")
    try:
        return await job_service.job_stats(technician_id=technician_id)
    except FieldServiceError as e:
        raise http_error(e)
