"""
Field Service Manager - Job Lifecycle Manager
Version: 1.3.0

Changelog:
v1.3.0 (2026-10-19): An explicit null clears optional fields, including the
                      technician assignment and its name snapshot
v1.2.0 (2026-10-14): Parts edits go through the amendment path; technician
                      reassignment refreshes the technician_name snapshot
v1.1.0 (2026-10-12): Explicit (from, to) transition table; hard delete falls
                      back to the deleted flag when the store rejects it
v1.0.0 (2026-10-05): Initial status handling

Owns jobs.status and the fields that must change with it. Every transition
or amendment is one read-modify-write transaction: the job is re-read inside
the transaction, the effect for (current, target) is applied, and status plus
all dependent fields are written by a single UPDATE.

Normal flow is pending -> in_progress -> completed. A completed job can be
reopened to pending or in_progress, and pending -> completed is allowed as
an administrative fast path.
"""

import logging
from datetime import datetime
from typing import Callable, Dict, Optional, Tuple

import aiosqlite
from database import get_db, transaction, execute_one
from models.job import JobStatus, JobFields
from services import directory, parts_list
from services.errors import (
    InvalidStatusError, NotFoundError, store_error, is_rejection
)

logger = logging.getLogger(__name__)

STANDARD_SAFETY_SENTENCE = (
    "Tested all safety devices prior to returning equipment to service."
)

# Columns a caller may write through JobFields (parts is handled separately)
_WRITABLE = (
    "action_taken", "arrival_time", "departure_time", "service_type",
    "technician_notes", "technician_id", "title", "description",
    "order_number", "equipment", "fault_reported", "site_contact",
    "site_phone", "due_date",
)

# Columns that always hold a value; a null for these is ignored rather than written
_REQUIRED = ("title", "action_taken")


def _now() -> str:
    return datetime.now().isoformat()


def finalize_action_taken(text: Optional[str]) -> str:
    """Ensure the action-taken text ends with the standard sentence exactly once"""
    body = (text or "").rstrip()
    if not body:
        return STANDARD_SAFETY_SENTENCE
    if body.endswith(STANDARD_SAFETY_SENTENCE):
        return body
    return f"{body}\n\n{STANDARD_SAFETY_SENTENCE}"


def parse_status(value) -> JobStatus:
    try:
        return JobStatus(value)
    except ValueError:
        raise InvalidStatusError(
            f"Invalid status {value!r}; expected one of "
            f"{', '.join(s.value for s in JobStatus)}")


# -- Transition effects --
# Each effect receives the stored row and the pending column updates and adds
# whatever dependent columns the transition requires.

def _finalize_completion_fields(job: dict, updates: dict) -> None:
    updates["action_taken"] = finalize_action_taken(
        updates.get("action_taken", job.get("action_taken")))
    if "parts_json" not in updates:
        updates["parts_json"] = parts_list.dump_parts(
            parts_list.load_parts(job.get("parts_json")))


def _enter_completed(job: dict, updates: dict, now: str) -> None:
    updates["completed_date"] = now
    _finalize_completion_fields(job, updates)


def _leave_completed(job: dict, updates: dict, now: str) -> None:
    # action_taken and parts_json stay for a later re-completion
    updates["completed_date"] = None


def _amend_completed(job: dict, updates: dict, now: str) -> None:
    if not job.get("completed_date"):
        updates["completed_date"] = now
    _finalize_completion_fields(job, updates)


def _fields_only(job: dict, updates: dict, now: str) -> None:
    pass


Effect = Callable[[dict, dict, str], None]

TRANSITIONS: Dict[Tuple[JobStatus, JobStatus], Effect] = {
    (JobStatus.PENDING, JobStatus.PENDING): _fields_only,
    (JobStatus.PENDING, JobStatus.IN_PROGRESS): _fields_only,
    (JobStatus.PENDING, JobStatus.COMPLETED): _enter_completed,
    (JobStatus.IN_PROGRESS, JobStatus.PENDING): _fields_only,
    (JobStatus.IN_PROGRESS, JobStatus.IN_PROGRESS): _fields_only,
    (JobStatus.IN_PROGRESS, JobStatus.COMPLETED): _enter_completed,
    (JobStatus.COMPLETED, JobStatus.PENDING): _leave_completed,
    (JobStatus.COMPLETED, JobStatus.IN_PROGRESS): _leave_completed,
    (JobStatus.COMPLETED, JobStatus.COMPLETED): _amend_completed,
}


def _payload(fields) -> dict:
    """
    Column updates from a JobFields model or plain dict.

    Only fields the caller actually set are written. An explicit None clears
    an optional column (e.g. unassigns the technician); None for a required
    column or for parts is ignored.
    """
    if fields is None:
        return {}
    if isinstance(fields, dict):
        fields = JobFields(**fields)
    data = fields.model_dump()
    given = fields.model_fields_set

    updates = {
        k: data[k] for k in _WRITABLE
        if k in given and (data[k] is not None or k not in _REQUIRED)
    }
    if "parts" in given and data["parts"] is not None:
        updates["parts_json"] = parts_list.dump_parts(data["parts"])
    return updates


async def _write(job_id: int, target: Optional[JobStatus], fields,
                 parts_edit: Callable = None) -> dict:
    updates = _payload(fields)

    try:
        async with get_db() as db:
            async with transaction(db):
                job = await execute_one(
                    db, "SELECT * FROM jobs WHERE id = ? AND deleted = 0", (job_id,))
                if not job:
                    raise NotFoundError(f"Job {job_id} not found")

                current = JobStatus(job["status"])
                target = target or current

                if parts_edit is not None:
                    updates["parts_json"] = parts_list.dump_parts(
                        parts_edit(parts_list.load_parts(job["parts_json"])))

                if "technician_id" in updates and updates["technician_id"] != job["technician_id"]:
                    technician = await directory.get_technician(db, updates["technician_id"])
                    updates["technician_name"] = technician["name"] if technician else None

                now = _now()
                TRANSITIONS[(current, target)](job, updates, now)
                updates["status"] = target.value
                updates["updated_at"] = now

                assignments = ", ".join(f"{column} = ?" for column in updates)
                await db.execute(
                    f"UPDATE jobs SET {assignments} WHERE id = ?",
                    (*updates.values(), job_id))

                result = await execute_one(db, "SELECT * FROM jobs WHERE id = ?", (job_id,))
    except aiosqlite.Error as e:
        logger.error(f"Job {job_id} write failed: {e}")
        raise store_error(e, f"Job {job_id} update") from e

    if current != target:
        logger.info(f"Job {job_id}: {current.value} -> {target.value}")
    else:
        logger.debug(f"Job {job_id} amended ({', '.join(sorted(updates))})")
    return result


async def apply_job_transition(job_id: int, new_status, fields=None) -> dict:
    """
    Move a job to `new_status` and write the dependent fields atomically.

    Args:
        job_id: jobs.id
        new_status: 'pending', 'in_progress' or 'completed'
        fields: optional JobFields (or dict) with action_taken, parts,
                arrival_time, departure_time, service_type, ...

    Returns:
        The job row as stored after the write.

    Raises:
        InvalidStatusError: before any store access
        NotFoundError: job missing or soft-deleted
        StoreWriteError / TransientStoreError: nothing was written
    """
    return await _write(job_id, parse_status(new_status), fields)


async def amend_job(job_id: int, fields) -> dict:
    """Edit job fields without changing status; completed jobs keep the sentence rule"""
    return await _write(job_id, None, fields)


async def add_job_part(job_id: int, description: str = "") -> dict:
    return await _write(job_id, None, None,
                        lambda parts: parts_list.add_part(parts, description))


async def remove_job_part(job_id: int, index: int) -> dict:
    return await _write(job_id, None, None,
                        lambda parts: parts_list.remove_part(parts, index))


async def set_job_part_quantity(job_id: int, index: int, qty) -> dict:
    return await _write(job_id, None, None,
                        lambda parts: parts_list.set_quantity(parts, index, qty))


async def adjust_job_part(job_id: int, index: int, direction: str) -> dict:
    """Step a part's quantity 'up' or 'down' (labour by 0.5, others by 1)"""
    if direction == "up":
        edit = parts_list.increment
    elif direction == "down":
        edit = parts_list.decrement
    else:
        raise ValueError(f"Unknown adjustment {direction!r}; use 'up' or 'down'")
    return await _write(job_id, None, None, lambda parts: edit(parts, index))


async def delete_job(job_id: int) -> bool:
    """
    Delete a job.

    Tries a hard delete first. When the store rejects it with a constraint or
    permission failure the job is flagged deleted=1 instead, which removes it
    from every active view but keeps it for audit.

    Returns:
        True if the row was removed, False if it was soft-deleted.
    """
    async with get_db() as db:
        try:
            job = await execute_one(db, "SELECT id FROM jobs WHERE id = ?", (job_id,))
        except aiosqlite.Error as e:
            raise store_error(e, f"Job {job_id} lookup") from e
        if not job:
            raise NotFoundError(f"Job {job_id} not found")

        try:
            async with transaction(db):
                await db.execute("DELETE FROM jobs WHERE id = ?", (job_id,))
            logger.info(f"Job {job_id} deleted")
            return True
        except aiosqlite.Error as e:
            if not is_rejection(e):
                logger.error(f"Job {job_id} delete failed: {e}")
                raise store_error(e, f"Job {job_id} delete") from e
            logger.warning(f"Hard delete of job {job_id} rejected ({e}); soft-deleting")

        try:
            async with transaction(db):
                await db.execute(
                    "UPDATE jobs SET deleted = 1, updated_at = ? WHERE id = ?",
                    (_now(), job_id))
        except aiosqlite.Error as e:
            logger.error(f"Job {job_id} soft delete failed: {e}")
            raise store_error(e, f"Job {job_id} soft delete") from e

    return False
