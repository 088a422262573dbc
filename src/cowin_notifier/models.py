"""
Pydantic models for the CoWIN calendar feed and the notifier domain.

Raw* models mirror the upstream JSON; Slot is what the notifier compares and
renders.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class Location(BaseModel):
    """Monitored district."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str


class VaccineFee(BaseModel):
    vaccine: str
    fee: str


class RawSession(BaseModel):
    """One session of a center as served by the calendar endpoint."""

    session_id: str
    date: str
    # Fractional values do show up in the feed
    available_capacity: float
    min_age_limit: int
    vaccine: str = ""
    slots: List[str] = Field(default_factory=list)
    # Only present in later revisions of the schema
    available_capacity_dose1: Optional[int] = None
    available_capacity_dose2: Optional[int] = None


class RawCenter(BaseModel):
    center_id: int
    name: str
    address: str = ""
    state_name: str = ""
    district_name: str = ""
    block_name: str = ""
    pincode: int
    lat: float = 0
    long: float = 0
    from_: str = Field(default="", alias="from")
    to: str = ""
    fee_type: str = ""
    sessions: List[RawSession] = Field(default_factory=list)
    vaccine_fees: Optional[List[VaccineFee]] = None


class CalendarResponse(BaseModel):
    centers: List[RawCenter]


class Slot(BaseModel):
    """Notify-worthy availability at one center; compared by value."""

    model_config = ConfigDict(frozen=True)

    center_name: str
    pincode: str
    available_capacity: str
    vaccine_name: Optional[str] = None
    date: str


# An ordered scan outcome; None stands for "no result"
ScanResult = Tuple[Slot, ...]


class MonitorState(BaseModel):
    """State of the scan loop, used internally and for logging."""

    is_running: bool = False
    cycles: int = 0
    scans: int = 0
    failed_scans: int = 0
    notifications_sent: int = 0
    delivery_failures: int = 0
    last_cycle_at: Optional[datetime] = None


__all__ = [
    "Location",
    "VaccineFee",
    "RawSession",
    "RawCenter",
    "CalendarResponse",
    "Slot",
    "ScanResult",
    "MonitorState",
]
