"""Shared test fixtures."""

import os
import tempfile

os.environ.setdefault("LOGS_DIR", tempfile.mkdtemp(prefix="fsm-logs-"))

import aiosqlite
import pytest

import database
from models import init_db


@pytest.fixture
def db_path(tmp_path):
    """Point the app at a fresh temporary database file."""
    path = str(tmp_path / "test.db")
    database.set_db_path(path)
    return path


@pytest.fixture
async def db(db_path):
    """Provide an initialized database (returns its path)."""
    await init_db()
    return db_path


@pytest.fixture
async def directory_data(db):
    """One client -> end customer -> site chain plus a technician."""
    async with aiosqlite.connect(db) as conn:
        cursor = await conn.execute(
            "INSERT INTO clients (name, contact_name, phone) VALUES (?, ?, ?)",
            ("Acme Facilities", "Dana Cole", "555-0100"))
        client_id = cursor.lastrowid
        cursor = await conn.execute(
            "INSERT INTO end_customers (client_id, name) VALUES (?, ?)",
            (client_id, "Harbour Mall"))
        end_customer_id = cursor.lastrowid
        cursor = await conn.execute("""
            INSERT INTO sites (client_id, end_customer_id, name, address,
                               suburb, state, postcode)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """, (client_id, end_customer_id, "Loading dock", "12 Wharf Rd",
              "Pyrmont", "NSW", "2009"))
        site_id = cursor.lastrowid
        cursor = await conn.execute(
            "INSERT INTO technicians (name, email) VALUES (?, ?)",
            ("Sam Ortiz", "sam@example.com"))
        technician_id = cursor.lastrowid
        cursor = await conn.execute(
            "INSERT INTO technicians (name, email) VALUES (?, ?)",
            ("Robin Park", "robin@example.com"))
        second_technician_id = cursor.lastrowid
        await conn.commit()

    return {
        "client_id": client_id,
        "end_customer_id": end_customer_id,
        "site_id": site_id,
        "technician_id": technician_id,
        "second_technician_id": second_technician_id,
    }


@pytest.fixture
def install_trigger(db):
    """Add a trigger that makes the store reject certain writes."""
    async def _install(sql: str) -> None:
        async with aiosqlite.connect(db) as conn:
            await conn.execute(sql)
            await conn.commit()
    return _install
