"""
Field Service Manager - Directory Lookups
Version: 1.0.0

Changelog:
v1.0.0 (2026-10-05): Read-only client / end customer / site / technician
                      lookups used to snapshot display fields onto jobs
"""

import logging
from typing import Optional

from database import execute_one
from services.errors import NotFoundError

logger = logging.getLogger(__name__)


async def _require(db, table: str, label: str, record_id: Optional[int],
                   extra_sql: str = "", extra_params=()) -> Optional[dict]:
    if record_id is None:
        return None
    row = await execute_one(
        db, f"SELECT * FROM {table} WHERE id = ?{extra_sql}",
        (record_id, *extra_params))
    if not row:
        raise NotFoundError(f"{label} {record_id} not found")
    return row


async def get_client(db, client_id: Optional[int]) -> Optional[dict]:
    return await _require(db, "clients", "Client", client_id)


async def get_end_customer(db, end_customer_id: Optional[int],
                           client_id: Optional[int] = None) -> Optional[dict]:
    if client_id is None:
        return await _require(db, "end_customers", "End customer", end_customer_id)
    return await _require(db, "end_customers", "End customer", end_customer_id,
                          " AND client_id = ?", (client_id,))


async def get_site(db, site_id: Optional[int],
                   end_customer_id: Optional[int] = None) -> Optional[dict]:
    if end_customer_id is None:
        return await _require(db, "sites", "Site", site_id)
    return await _require(db, "sites", "Site", site_id,
                          " AND end_customer_id = ?", (end_customer_id,))


async def get_technician(db, technician_id: Optional[int]) -> Optional[dict]:
    return await _require(db, "technicians", "Technician", technician_id)


def format_site_address(site: Optional[dict]) -> str:
    """Single-line address: street, suburb, state, postcode (blanks skipped)"""
    if not site:
        return ""
    parts = [site.get("address"), site.get("suburb"), site.get("state"), site.get("postcode")]
    return ", ".join(p for p in parts if p)
