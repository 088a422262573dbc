"""
Scan loop over the monitored districts.

The loop is a single task:
- scans every district in table order, forever
- drops results that were already notified
- delivers the rest to the channel, logging and skipping any failure
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional, Protocol, Sequence

from .detector import ChangeDetector
from .formatter import DEFAULT_MAX_BYTES, format_slots
from .models import Location, MonitorState, ScanResult

logger = logging.getLogger(__name__)


class Scanner(Protocol):
    async def scan(self, location: Location) -> Optional[ScanResult]: ...


DeliverFunc = Callable[[str], Awaitable[None]]


@dataclass
class ScanLoop:
    """High-level monitoring loop."""

    locations: Sequence[Location]
    scanner: Scanner
    deliver: DeliverFunc
    max_message_bytes: int = DEFAULT_MAX_BYTES
    detector: ChangeDetector = field(default_factory=ChangeDetector)
    _state: MonitorState = field(default_factory=MonitorState)
    _stop_event: asyncio.Event = field(default_factory=asyncio.Event)

    @property
    def state(self) -> MonitorState:
        return self._state

    def stop(self) -> None:
        """Ask the loop to finish after the district it is working on."""
        self._stop_event.set()

    async def run_forever(self) -> None:
        self._stop_event.clear()
        self._state.is_running = True
        logger.info("Scanning %s districts", len(self.locations))
        try:
            while not self._stop_event.is_set():
                await self.run_cycle()
        finally:
            self._state.is_running = False
            logger.info("Scan loop stopped after %s cycles", self._state.cycles)

    async def run_cycle(self) -> None:
        for location in self.locations:
            if self._stop_event.is_set():
                return
            await self.process(location)
        self._state.cycles += 1
        self._state.last_cycle_at = datetime.now(timezone.utc)
        logger.debug(
            "Cycle %s done: %s scans, %s failed, %s sent",
            self._state.cycles,
            self._state.scans,
            self._state.failed_scans,
            self._state.notifications_sent,
        )

    async def process(self, location: Location) -> bool:
        """Scan one district and notify if needed. Returns True if a message was sent."""
        self._state.scans += 1
        try:
            result = await self.scanner.scan(location)
        except Exception as e:  # noqa: BLE001
            logger.exception("Unexpected error scanning %s: %s", location.name, e)
            self._state.failed_scans += 1
            return False

        if result is None:
            return False
        if not self.detector.is_novel(location.id, result):
            logger.debug("%s unchanged, not notifying", location.name)
            return False

        text = format_slots(location.name, result, self.max_message_bytes)
        if text is None:
            logger.warning(
                "Slots for %s do not fit in %s bytes, not notifying",
                location.name,
                self.max_message_bytes,
            )
            return False
        try:
            await self.deliver(text)
        except Exception as e:  # noqa: BLE001
            logger.warning("Failed to deliver slots for %s: %s", location.name, e)
            self._state.delivery_failures += 1
            return False

        self._state.notifications_sent += 1
        logger.info("Notified %s slots for %s", len(result), location.name)
        return True


__all__ = ["ScanLoop", "Scanner", "DeliverFunc"]
