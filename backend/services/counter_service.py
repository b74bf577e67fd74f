"""
Field Service Manager - Service Report Number Allocator
Version: 1.1.0

Changelog:
v1.1.0 (2026-10-12): Compare-and-swap inside BEGIN IMMEDIATE with bounded
                      retries; peek_next() and advance_to() for admin use
v1.0.0 (2026-10-05): Initial counter service

Hands out Service Report Numbers (snpid) from the singleton counter row
meta_counters[serviceReport]. Every allocation is one read-modify-write
transaction; a number is returned only after its increment has committed.
"""

import asyncio
import logging
import random

import aiosqlite
from config import settings
from database import get_db, transaction, execute_one
from services.errors import TransientStoreError, StoreWriteError, is_busy, store_error

logger = logging.getLogger(__name__)


class _CounterConflict(Exception):
    """The counter row changed between read and write"""


async def _allocate_once(db, name: str) -> int:
    async with transaction(db):
        row = await execute_one(
            db, "SELECT next FROM meta_counters WHERE name = ?", (name,))

        if row is None:
            current = 1
            cursor = await db.execute(
                "INSERT OR IGNORE INTO meta_counters (name, next, updated_at) "
                "VALUES (?, ?, datetime('now'))",
                (name, current + 1))
        else:
            current = int(row["next"])
            cursor = await db.execute(
                "UPDATE meta_counters SET next = ?, updated_at = datetime('now') "
                "WHERE name = ? AND next = ?",
                (current + 1, name, current))

        if cursor.rowcount != 1:
            raise _CounterConflict()

    return current


async def allocate_next(name: str = None) -> int:
    """
    Allocate the next Service Report Number.

    Returns the pre-increment value. Conflicts and busy errors restart the
    transaction from the read; after COUNTER_MAX_RETRIES attempts the call
    fails with TransientStoreError. No number is ever produced locally.
    """
    name = name or settings.COUNTER_NAME
    delay = settings.COUNTER_RETRY_BACKOFF

    for attempt in range(1, settings.COUNTER_MAX_RETRIES + 1):
        try:
            async with get_db() as db:
                value = await _allocate_once(db, name)
            logger.info(f"Allocated service report number {value}")
            return value
        except _CounterConflict:
            logger.debug(f"Counter {name} changed under attempt {attempt}, retrying")
        except aiosqlite.Error as e:
            if not is_busy(e):
                logger.error(f"Counter {name} allocation failed: {e}")
                raise StoreWriteError(f"Counter allocation failed: {e}", cause=e) from e
            logger.warning(f"Counter {name} busy on attempt {attempt}: {e}")

        await asyncio.sleep(delay * random.uniform(0.5, 1.5))
        delay *= 2

    raise TransientStoreError(
        f"Could not allocate a service report number after "
        f"{settings.COUNTER_MAX_RETRIES} attempts")


async def peek_next(name: str = None) -> int:
    """Value the next allocation will return (1 when the counter is absent)"""
    name = name or settings.COUNTER_NAME
    try:
        async with get_db() as db:
            row = await execute_one(
                db, "SELECT next FROM meta_counters WHERE name = ?", (name,))
    except aiosqlite.Error as e:
        raise store_error(e, f"Counter {name} read") from e
    return int(row["next"]) if row else 1


async def advance_to(value: int, name: str = None) -> int:
    """
    Move the counter forward so the next allocation returns `value`.

    Used when importing legacy report numbers. Moving backwards would reissue
    numbers and raises ValueError.
    """
    name = name or settings.COUNTER_NAME
    if value < 1:
        raise ValueError("Service report numbers start at 1")

    try:
        async with get_db() as db:
            async with transaction(db):
                row = await execute_one(
                    db, "SELECT next FROM meta_counters WHERE name = ?", (name,))
                current = int(row["next"]) if row else 1
                if value < current:
                    raise ValueError(
                        f"Counter is already at {current}; cannot move back to {value}")
                await db.execute("""
                    INSERT INTO meta_counters (name, next, updated_at)
                    VALUES (?, ?, datetime('now'))
                    ON CONFLICT(name) DO UPDATE SET
                        next = excluded.next, updated_at = excluded.updated_at
                """, (name, value))
    except aiosqlite.Error as e:
        if is_busy(e):
            raise TransientStoreError(f"Counter busy: {e}") from e
        raise StoreWriteError(f"Counter update failed: {e}", cause=e) from e

    logger.info(f"Counter {name} advanced from {current} to {value}")
    return value
