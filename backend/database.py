"""
Field Service Manager - Database Connection Manager
Version: 1.1.0

Changelog:
v1.1.0 (2026-10-12): transaction() helper with BEGIN IMMEDIATE; connections
                      run in autocommit mode so transactions are explicit
v1.0.0 (2026-10-05): Initial database connection manager with async helpers

Provides centralized async SQLite connection management for all endpoints.
Uses aiosqlite with WAL journal mode and foreign key enforcement.
"""

import os
import aiosqlite
from contextlib import asynccontextmanager

from config import settings

_db_path: str = None


def get_db_path() -> str:
    """Resolve database path, create data directory if needed"""
    global _db_path
    if _db_path is None:
        _db_path = settings.SQLITE_DB_PATH
        os.makedirs(os.path.dirname(os.path.abspath(_db_path)), exist_ok=True)
    return _db_path


def set_db_path(path: str) -> None:
    """Point all new connections at another database file"""
    global _db_path
    _db_path = path
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)


@asynccontextmanager
async def get_db():
    """Async context manager yielding an autocommit aiosqlite connection"""
    db = await aiosqlite.connect(
        get_db_path(),
        timeout=settings.STORE_BUSY_TIMEOUT,
        isolation_level=None,
    )
    db.row_factory = aiosqlite.Row
    try:
        await db.execute("PRAGMA foreign_keys=ON")
        yield db
    finally:
        await db.close()


@asynccontextmanager
async def transaction(db, immediate: bool = True):
    """
    Run the enclosed statements as one atomic write.

    BEGIN IMMEDIATE takes the write reservation before the first read, so a
    read-modify-write inside the block cannot interleave with another writer.
    Any exception rolls the whole block back and is re-raised.
    """
    await db.execute("BEGIN IMMEDIATE" if immediate else "BEGIN")
    try:
        yield db
    except BaseException:
        await db.rollback()
        raise
    else:
        await db.commit()


async def execute_one(db, sql: str, params=()) -> dict | None:
    """Execute query and return first row as dict, or None"""
    cursor = await db.execute(sql, params)
    row = await cursor.fetchone()
    return dict(row) if row else None


async def execute_all(db, sql: str, params=()) -> list[dict]:
    """Execute query and return all rows as list of dicts"""
    cursor = await db.execute(sql, params)
    rows = await cursor.fetchall()
    return [dict(row) for row in rows]


async def execute_insert(db, sql: str, params=()) -> int:
    """Execute INSERT, commit, and return lastrowid"""
    cursor = await db.execute(sql, params)
    await db.commit()
    return cursor.lastrowid


async def execute_update(db, sql: str, params=()) -> int:
    """Execute UPDATE/DELETE, commit, and return rowcount"""
    cursor = await db.execute(sql, params)
    await db.commit()
    return cursor.rowcount

