"""
Field Service Manager - Job Service
Version: 1.2.0

Changelog:
v1.2.0 (2026-10-19): job_stats() and dashboard_stats() for the dashboard and
                      technician performance views
v1.1.0 (2026-10-12): snpid comes from the counter service; display snapshot
                      of client / end customer / site / technician at creation
v1.0.0 (2026-10-05): Initial job creation and listing
"""

import logging
from datetime import datetime
from typing import Optional

import aiosqlite
from config import settings
from database import get_db, transaction, execute_one, execute_all
from models.job import JobCreate, JobStatus
from services import counter_service, directory
from services.errors import NotFoundError, store_error

logger = logging.getLogger(__name__)

OPEN_STATUSES = (JobStatus.PENDING.value, JobStatus.IN_PROGRESS.value)
CLOSED_STATUSES = (JobStatus.COMPLETED.value,)


async def _snapshot(data: JobCreate) -> dict:
    """Resolve referenced records and copy their display fields"""
    async with get_db() as db:
        client = await directory.get_client(db, data.client_id)
        end_customer = await directory.get_end_customer(
            db, data.end_customer_id, data.client_id)
        site = await directory.get_site(db, data.site_id, data.end_customer_id)
        technician = await directory.get_technician(db, data.technician_id)

    return {
        "client_name": client["name"] if client else None,
        "end_customer_name": end_customer["name"] if end_customer else None,
        "site_address": directory.format_site_address(site) or None,
        "technician_name": technician["name"] if technician else None,
    }


async def create_job(data: JobCreate) -> dict:
    """
    Create a pending job with a freshly allocated Service Report Number.

    References are checked before the number is allocated. If the insert
    fails afterwards the number is lost (a gap), never handed out twice.
    """
    try:
        snapshot = await _snapshot(data)
    except aiosqlite.Error as e:
        raise store_error(e, "Job reference lookup") from e

    snpid = await counter_service.allocate_next()

    now = datetime.now().isoformat()
    row = {
        **data.model_dump(),
        **snapshot,
        "snpid": snpid,
        "status": JobStatus.PENDING.value,
        "action_taken": "",
        "parts_json": "[]",
        "deleted": 0,
        "created_at": now,
        "updated_at": now,
    }
    columns = ", ".join(row)
    placeholders = ", ".join("?" for _ in row)

    try:
        async with get_db() as db:
            async with transaction(db):
                cursor = await db.execute(
                    f"INSERT INTO jobs ({columns}) VALUES ({placeholders})",
                    tuple(row.values()))
                job_id = cursor.lastrowid
            job = await execute_one(db, "SELECT * FROM jobs WHERE id = ?", (job_id,))
    except aiosqlite.Error as e:
        logger.error(f"Job insert failed after allocating snpid {snpid}: {e}")
        raise store_error(e, "Job create") from e

    logger.info(f"Created job {job_id} with service report number {snpid}")
    return job


async def get_job(job_id: int, include_deleted: bool = False) -> dict:
    sql = "SELECT * FROM jobs WHERE id = ?"
    if not include_deleted:
        sql += " AND deleted = 0"
    try:
        async with get_db() as db:
            job = await execute_one(db, sql, (job_id,))
    except aiosqlite.Error as e:
        raise store_error(e, f"Job {job_id} read") from e
    if not job:
        raise NotFoundError(f"Job {job_id} not found")
    return job


async def list_jobs(
    status: Optional[str] = None,
    technician_id: Optional[int] = None,
    client_id: Optional[int] = None,
    service_type: Optional[str] = None,
    search: Optional[str] = None,
    limit: Optional[int] = None,
) -> list[dict]:
    """List active (not soft-deleted) jobs, newest first"""
    query = "SELECT * FROM jobs"
    conditions = ["deleted = 0"]
    params: list = []

    if status:
        if status == "open":
            conditions.append(f"status IN ({', '.join('?' for _ in OPEN_STATUSES)})")
            params.extend(OPEN_STATUSES)
        elif status == "closed":
            conditions.append(f"status IN ({', '.join('?' for _ in CLOSED_STATUSES)})")
            params.extend(CLOSED_STATUSES)
        else:
            conditions.append("status = ?")
            params.append(status)
    if technician_id is not None:
        conditions.append("technician_id = ?")
        params.append(technician_id)
    if client_id is not None:
        conditions.append("client_id = ?")
        params.append(client_id)
    if service_type:
        conditions.append("service_type = ?")
        params.append(service_type)
    if search:
        conditions.append(
            "(title LIKE ? OR order_number LIKE ? OR site_address LIKE ? "
            "OR client_name LIKE ? OR end_customer_name LIKE ? "
            "OR CAST(snpid AS TEXT) LIKE ?)"
        )
        like = f"%{search}%"
        params.extend([like] * 6)

    query += " WHERE " + " AND ".join(conditions)
    query += " ORDER BY created_at DESC, id DESC LIMIT ?"
    params.append(limit or settings.DEFAULT_LIST_LIMIT)

    try:
        async with get_db() as db:
            return await execute_all(db, query, params)
    except aiosqlite.Error as e:
        raise store_error(e, "Job list") from e


async def list_jobs_for_technician(technician_id: int) -> list[dict]:
    return await list_jobs(technician_id=technician_id)


async def job_stats(technician_id: Optional[int] = None,
                    client_id: Optional[int] = None) -> dict:
    """Job counts by current status over active jobs, optionally scoped"""
    conditions = ["deleted = 0"]
    params: list = []
    if technician_id is not None:
        conditions.append("technician_id = ?")
        params.append(technician_id)
    if client_id is not None:
        conditions.append("client_id = ?")
        params.append(client_id)

    try:
        async with get_db() as db:
            return await execute_one(db, f"""
                SELECT COUNT(*) as total,
                       COALESCE(SUM(CASE WHEN status = 'pending' THEN 1 ELSE 0 END), 0) as pending,
                       COALESCE(SUM(CASE WHEN status = 'in_progress' THEN 1 ELSE 0 END), 0) as in_progress,
                       COALESCE(SUM(CASE WHEN status = 'completed' THEN 1 ELSE 0 END), 0) as completed
                FROM jobs WHERE {' AND '.join(conditions)}
            """, params)
    except aiosqlite.Error as e:
        raise store_error(e, "Job stats") from e


async def dashboard_stats() -> dict:
    """Job counts plus client and active technician totals"""
    stats = await job_stats()
    try:
        async with get_db() as db:
            clients = await execute_one(db, "SELECT COUNT(*) as n FROM clients")
            technicians = await execute_one(
                db, "SELECT COUNT(*) as n FROM technicians WHERE is_active = 1")
    except aiosqlite.Error as e:
        raise store_error(e, "Dashboard stats") from e
    return {**stats, "clients": clients["n"], "technicians": technicians["n"]}
