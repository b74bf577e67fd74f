"""
Field Service Manager - Database Models
Version: 1.1.0

Changelog:
v1.1.0 (2026-10-12): meta_counters table for service report numbers;
                      jobs.deleted soft-delete flag and active-view index
v1.0.0 (2026-10-05): Clients, end customers, sites, technicians and jobs
"""

from .job import JobStatus, Part, JobCreate, JobFields, JobUpdate
from .directory import ClientCreate, EndCustomerCreate, SiteCreate, TechnicianCreate

import aiosqlite
import logging

logger = logging.getLogger(__name__)


async def init_db():
    """Initialize SQLite database with the field service schema"""
    from database import get_db_path
    db_path = get_db_path()
    logger.info(f"Initializing database: {db_path}")

    async with aiosqlite.connect(db_path) as db:
        await db.execute("PRAGMA journal_mode=WAL")
        await db.execute("PRAGMA foreign_keys=ON")

        # ================================================================
        # META COUNTERS (singleton sequences, e.g. serviceReport)
        # ================================================================
        await db.execute("""
            CREATE TABLE IF NOT EXISTS meta_counters (
                name TEXT PRIMARY KEY,
                next INTEGER NOT NULL CHECK (next >= 1),
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        # ================================================================
        # CLIENTS -> END CUSTOMERS -> SITES
        # ================================================================
        await db.execute("""
            CREATE TABLE IF NOT EXISTS clients (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                contact_name TEXT,
                email TEXT,
                phone TEXT,
                address TEXT,
                notes TEXT,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS end_customers (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                client_id INTEGER NOT NULL REFERENCES clients(id),
                name TEXT NOT NULL,
                contact_name TEXT,
                email TEXT,
                phone TEXT,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS sites (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                client_id INTEGER NOT NULL REFERENCES clients(id),
                end_customer_id INTEGER NOT NULL REFERENCES end_customers(id),
                name TEXT,
                address TEXT,
                suburb TEXT,
                state TEXT,
                postcode TEXT,
                contact_name TEXT,
                phone TEXT,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        # ================================================================
        # TECHNICIANS
        # ================================================================
        await db.execute("""
            CREATE TABLE IF NOT EXISTS technicians (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                email TEXT,
                phone TEXT,
                specialization TEXT,
                is_active BOOLEAN DEFAULT 1,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        # ================================================================
        # JOBS (service reports)
        # ================================================================
        await db.execute("""
            CREATE TABLE IF NOT EXISTS jobs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                snpid INTEGER UNIQUE NOT NULL,
                status TEXT NOT NULL DEFAULT 'pending'
                    CHECK (status IN ('pending', 'in_progress', 'completed')),
                title TEXT NOT NULL DEFAULT 'Job',
                description TEXT,

                -- Foreign references (owned by the directory)
                client_id INTEGER REFERENCES clients(id),
                end_customer_id INTEGER REFERENCES end_customers(id),
                site_id INTEGER REFERENCES sites(id),
                technician_id INTEGER REFERENCES technicians(id),

                -- Display snapshot copied at creation
                client_name TEXT,
                end_customer_name TEXT,
                site_address TEXT,
                technician_name TEXT,

                -- Work request
                service_type TEXT,
                order_number TEXT,
                equipment TEXT,
                fault_reported TEXT,
                site_contact TEXT,
                site_phone TEXT,
                requested_date TIMESTAMP,
                due_date TIMESTAMP,

                -- Completion
                action_taken TEXT NOT NULL DEFAULT '',
                parts_json TEXT NOT NULL DEFAULT '[]',
                arrival_time TEXT,
                departure_time TEXT,
                technician_notes TEXT,
                completed_date TIMESTAMP,

                deleted BOOLEAN NOT NULL DEFAULT 0,
                created_at TIMESTAMP NOT NULL,
                updated_at TIMESTAMP NOT NULL,

                CHECK ((status = 'completed') = (completed_date IS NOT NULL))
            )
        """)

        await db.execute("CREATE INDEX IF NOT EXISTS idx_job_status ON jobs(deleted, status)")
        await db.execute("CREATE INDEX IF NOT EXISTS idx_job_tech ON jobs(technician_id)")
        await db.execute("CREATE INDEX IF NOT EXISTS idx_job_client ON jobs(client_id)")
        await db.execute("CREATE INDEX IF NOT EXISTS idx_ec_client ON end_customers(client_id)")
        await db.execute("CREATE INDEX IF NOT EXISTS idx_site_ec ON sites(end_customer_id)")

        await db.commit()

    logger.info("Database initialized successfully (field service schema v1.1.0)")


__all__ = [
    'JobStatus', 'Part', 'JobCreate', 'JobFields', 'JobUpdate',
    'ClientCreate', 'EndCustomerCreate', 'SiteCreate', 'TechnicianCreate',
    'init_db'
]
