"""
Field Service Manager - Client / End Customer / Site API Endpoints
Version: 1.2.0

Changelog:
v1.2.0 (2026-10-19): Client job summary comes from the shared job_stats()
v1.1.0 (2026-10-12): End customers nested under clients, sites nested under
                      end customers
v1.0.0 (2026-10-05): Initial client CRUD
"""

from fastapi import APIRouter, HTTPException
from typing import Optional
from datetime import datetime
import aiosqlite
import logging

from database import get_db, execute_one, execute_all, execute_insert, execute_update
from models.directory import (
    ClientCreate, ClientUpdate, EndCustomerCreate, EndCustomerUpdate,
    SiteCreate, SiteUpdate
)
from services import directory, job_service
from services.errors import FieldServiceError, NotFoundError
from api.errors import http_error

router = APIRouter(prefix="/clients", tags=["clients"])
logger = logging.getLogger(__name__)


def _update_sql(table: str, data, where: str):
    updates = []
    params = []
    for field_name, value in data.model_dump(exclude_none=True).items():
        updates.append(f"{field_name} = ?")
        params.append(value)

    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")

    updates.append("updated_at = ?")
    params.append(datetime.now().isoformat())
    return f"UPDATE {table} SET {', '.join(updates)} WHERE {where}", params


# -- Clients --

@router.get("/")
async def list_clients(search: Optional[str] = None, limit: int = 100):
    """List clients, optionally filtered by search term"""
    async with get_db() as db:
        if search:
            return await execute_all(db, """
                SELECT * FROM clients
                WHERE name LIKE ? OR contact_name LIKE ? OR email LIKE ?
                ORDER BY name LIMIT ?
            """, (f"%{search}%", f"%{search}%", f"%{search}%", limit))
        return await execute_all(
            db, "SELECT * FROM clients ORDER BY name LIMIT ?", (limit,))


@router.get("/{client_id}")
async def get_client(client_id: int):
    """Get client details with job summary"""
    async with get_db() as db:
        client = await execute_one(
            db, "SELECT * FROM clients WHERE id = ?", (client_id,))
        if not client:
            raise HTTPException(status_code=404, detail="Client not found")

    try:
        client["job_stats"] = await job_service.job_stats(client_id=client_id)
    except FieldServiceError as e:
        raise http_error(e)
    return client


@router.post("/", status_code=201)
async def create_client(data: ClientCreate):
    async with get_db() as db:
        client_id = await execute_insert(db, """
            INSERT INTO clients (name, contact_name, email, phone, address, notes)
            VALUES (?, ?, ?, ?, ?, ?)
        """, (data.name, data.contact_name, data.email, data.phone,
              data.address, data.notes))

    logger.info(f"Client {client_id} created: {data.name}")
    return {"id": client_id, "message": f"Client '{data.name}' created"}


@router.put("/{client_id}")
async def update_client(client_id: int, data: ClientUpdate):
    sql, params = _update_sql("clients", data, "id = ?")
    async with get_db() as db:
        count = await execute_update(db, sql, [*params, client_id])
    if count == 0:
        raise HTTPException(status_code=404, detail="Client not found")
    return {"success": True, "message": f"Client {client_id} updated"}


@router.delete("/{client_id}")
async def delete_client(client_id: int):
    async with get_db() as db:
        try:
            count = await execute_update(
                db, "DELETE FROM clients WHERE id = ?", (client_id,))
        except aiosqlite.IntegrityError:
            raise HTTPException(
                status_code=409,
                detail="Client still has end customers or jobs")
    if count == 0:
        raise HTTPException(status_code=404, detail="Client not found")
    return {"status": "ok"}


# -- End customers --

@router.get("/{client_id}/customers")
async def list_end_customers(client_id: int):
    async with get_db() as db:
        return await execute_all(
            db, "SELECT * FROM end_customers WHERE client_id = ? ORDER BY name",
            (client_id,))


@router.post("/{client_id}/customers", status_code=201)
async def create_end_customer(client_id: int, data: EndCustomerCreate):
    async with get_db() as db:
        try:
            await directory.get_client(db, client_id)
        except NotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        customer_id = await execute_insert(db, """
            INSERT INTO end_customers (client_id, name, contact_name, email, phone)
            VALUES (?, ?, ?, ?, ?)
        """, (client_id, data.name, data.contact_name, data.email, data.phone))

    return {"id": customer_id, "message": f"End customer '{data.name}' created"}


@router.put("/{client_id}/customers/{customer_id}")
async def update_end_customer(client_id: int, customer_id: int, data: EndCustomerUpdate):
    sql, params = _update_sql("end_customers", data, "id = ? AND client_id = ?")
    async with get_db() as db:
        count = await execute_update(db, sql, [*params, customer_id, client_id])
    if count == 0:
        raise HTTPException(status_code=404, detail="End customer not found")
    return {"success": True, "message": f"End customer {customer_id} updated"}


# -- Sites --

@router.get("/{client_id}/customers/{customer_id}/sites")
async def list_sites(client_id: int, customer_id: int):
    async with get_db() as db:
        rows = await execute_all(db, """
            SELECT * FROM sites
            WHERE client_id = ? AND end_customer_id = ?
            ORDER BY name
        """, (client_id, customer_id))
    for row in rows:
        row['full_address'] = directory.format_site_address(row)
    return rows


@router.post("/{client_id}/customers/{customer_id}/sites", status_code=201)
async def create_site(client_id: int, customer_id: int, data: SiteCreate):
    async with get_db() as db:
        try:
            await directory.get_end_customer(db, customer_id, client_id)
        except NotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        site_id = await execute_insert(db, """
            INSERT INTO sites
                (client_id, end_customer_id, name, address, suburb, state,
                 postcode, contact_name, phone)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """, (client_id, customer_id, data.name, data.address, data.suburb,
              data.state, data.postcode, data.contact_name, data.phone))

    return {"id": site_id, "message": "Site created"}


@router.put("/{client_id}/customers/{customer_id}/sites/{site_id}")
async def update_site(client_id: int, customer_id: int, site_id: int, data: SiteUpdate):
    """Update a site. Jobs keep the address copied when they were created."""
    sql, params = _update_sql(
        "sites", data, "id = ? AND client_id = ? AND end_customer_id = ?")
    async with get_db() as db:
        count = await execute_update(db, sql, [*params, site_id, client_id, customer_id])
    if count == 0:
        raise HTTPException(status_code=404, detail="Site not found")
    return {"success": True, "message": f"Site {site_id} updated"}
