"""
Field Service Manager - Job Models
Version: 1.1.0

Changelog:
v1.1.0 (2026-10-12): JobFields payload shared by transitions and amendments
v1.0.0 (2026-10-05): Initial job models
"""

from pydantic import BaseModel, Field
from enum import Enum
from typing import Optional, List


class JobStatus(str, Enum):
    """Job status lifecycle states"""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class Part(BaseModel):
    """One line of the Parts/Labour list"""
    description: str = ""
    qty: float = Field(default=1, description="Units, or hours for labour lines")


class JobCreate(BaseModel):
    """New job request. Display names are copied from the referenced records."""
    title: str = "Job"
    description: Optional[str] = None
    client_id: Optional[int] = None
    end_customer_id: Optional[int] = None
    site_id: Optional[int] = None
    technician_id: Optional[int] = None
    service_type: Optional[str] = None
    order_number: Optional[str] = None
    equipment: Optional[str] = None
    fault_reported: Optional[str] = None
    site_contact: Optional[str] = None
    site_phone: Optional[str] = None
    requested_date: Optional[str] = None
    due_date: Optional[str] = None


class JobFields(BaseModel):
    """Dependent-field payload for a transition or an amendment"""
    action_taken: Optional[str] = None
    parts: Optional[List[Part]] = None
    arrival_time: Optional[str] = None
    departure_time: Optional[str] = None
    service_type: Optional[str] = None
    technician_notes: Optional[str] = None
    technician_id: Optional[int] = None
    title: Optional[str] = None
    description: Optional[str] = None
    order_number: Optional[str] = None
    equipment: Optional[str] = None
    fault_reported: Optional[str] = None
    site_contact: Optional[str] = None
    site_phone: Optional[str] = None
    due_date: Optional[str] = None


class JobUpdate(JobFields):
    """PUT body: status is optional, without it the request is an amendment"""
    status: Optional[str] = None


class StatusChange(BaseModel):
    status: str


class PartAdd(BaseModel):
    description: str = ""


class PartEdit(BaseModel):
    qty: Optional[float] = None
    adjust: Optional[str] = Field(None, description="'up' or 'down' by one step")
