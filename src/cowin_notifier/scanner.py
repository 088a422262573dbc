"""
Availability scanning for one district.

The calendar endpoint answers a week at a time, so a scan probes the current
week and then jumps to the start of each following calendar week until
something eligible turns up or the lookahead window is used up.
"""

from __future__ import annotations

import logging
import math
from datetime import date, timedelta
from typing import Callable, Iterable, List, Optional, Protocol

from .client import FetchError
from .config import ScanConfig
from .models import Location, RawCenter, RawSession, ScanResult, Slot

logger = logging.getLogger(__name__)


class CalendarSource(Protocol):
    async def fetch(self, district_id: int, day: date) -> Optional[List[RawCenter]]: ...


def normalize_capacity(raw: float) -> int:
    """
    Whole doses the session can still book.

    The upstream sometimes reports fractional capacity. Rounding would promise
    a dose that does not exist (1.5 would show and qualify as 2), so the value
    is floored and both the eligibility check and the message use the result.
    """
    return max(0, math.floor(raw))


def is_eligible(session: RawSession, capacity_threshold: int, max_age_limit: int = 45) -> bool:
    return (
        session.min_age_limit < max_age_limit
        and normalize_capacity(session.available_capacity) > capacity_threshold
    )


def next_week_start(day: date) -> date:
    """Monday of the calendar week after ``day``."""
    return day + timedelta(days=7 - day.weekday())


def extract_slots(
    centers: Iterable[RawCenter], capacity_threshold: int, max_age_limit: int = 45
) -> List[Slot]:
    """At most one slot per center: the first eligible session in feed order."""
    slots: List[Slot] = []
    for center in centers:
        for session in center.sessions:
            if not is_eligible(session, capacity_threshold, max_age_limit):
                continue
            slots.append(
                Slot(
                    center_name=center.name,
                    pincode=str(center.pincode),
                    available_capacity=str(normalize_capacity(session.available_capacity)),
                    vaccine_name=session.vaccine or None,
                    date=session.date,
                )
            )
            break
    return slots


class AvailabilityScanner:
    def __init__(
        self,
        client: CalendarSource,
        *,
        lookahead_days: int = 28,
        capacity_threshold: int = 1,
        max_age_limit: int = 45,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.client = client
        self.lookahead_days = lookahead_days
        self.capacity_threshold = capacity_threshold
        self.max_age_limit = max_age_limit
        self._today = today

    @classmethod
    def from_config(cls, client: CalendarSource, cfg: ScanConfig) -> "AvailabilityScanner":
        return cls(
            client,
            lookahead_days=cfg.lookahead_days,
            capacity_threshold=cfg.capacity_threshold,
            max_age_limit=cfg.max_age_limit,
        )

    @property
    def weeks(self) -> int:
        return math.ceil(self.lookahead_days / 7)

    async def scan(self, location: Location) -> Optional[ScanResult]:
        """
        Return the eligible slots of ``location`` or None.

        None covers both a failed fetch (the whole scan is void) and a window
        with nothing eligible in it.
        """
        cursor = self._today()
        for week in range(self.weeks):
            if week:
                cursor = next_week_start(cursor)
            try:
                centers = await self.client.fetch(location.id, cursor)
            except FetchError as e:
                logger.error("Scan of %s aborted: %s", location.name, e)
                return None
            if centers is None:
                logger.info("No data for %s on %s, skipping this cycle", location.name, cursor)
                return None

            slots = extract_slots(centers, self.capacity_threshold, self.max_age_limit)
            if slots:
                logger.info(
                    "%s: %s centers with slots in week of %s", location.name, len(slots), cursor
                )
                return tuple(slots)

        logger.debug("%s: nothing within %s days", location.name, self.lookahead_days)
        return None


__all__ = [
    "AvailabilityScanner",
    "CalendarSource",
    "extract_slots",
    "is_eligible",
    "next_week_start",
    "normalize_capacity",
]
