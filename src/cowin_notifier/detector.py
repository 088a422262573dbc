"""Per-district deduplication of scan results."""

from __future__ import annotations

import logging
from typing import Dict, Optional, Sequence

from .models import ScanResult, Slot

logger = logging.getLogger(__name__)


class ChangeDetector:
    """
    Remembers the last notified result of every district.

    The entry is replaced as soon as a result is judged novel, before anything
    is delivered, so a failed delivery is not retried on the next cycle.
    """

    def __init__(self) -> None:
        self._seen: Dict[int, ScanResult] = {}

    def __len__(self) -> int:
        return len(self._seen)

    def last_seen(self, location_id: int) -> Optional[ScanResult]:
        return self._seen.get(location_id)

    def is_novel(self, location_id: int, result: Sequence[Slot]) -> bool:
        current = tuple(result)
        # Ordered comparison: the same slots in a different order count as a change
        if self._seen.get(location_id) == current:
            return False
        self._seen[location_id] = current
        logger.debug("District %s changed (%s slots)", location_id, len(current))
        return True


__all__ = ["ChangeDetector"]
