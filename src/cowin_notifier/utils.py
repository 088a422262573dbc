"""
Utility helpers: logging setup, retry policy and driver, request pacing.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Awaitable, Callable, Optional, TypeVar

from .config import LoggingConfig, RetryConfig, get_settings


T = TypeVar("T")

SleepFunc = Callable[[float], Awaitable[None]]
ClockFunc = Callable[[], float]


def setup_logging(logging_cfg: LoggingConfig | None = None) -> None:
    """
    Configure application-wide logging with rotation.

    Logs go both to the console and to a rotating file under ``logs_dir``.
    """
    if logging_cfg is None:
        logging_cfg = get_settings().logging

    logs_dir: Path = logging_cfg.logs_dir
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_file = logs_dir / "cowin_notifier.log"

    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=logging_cfg.max_bytes,
        backupCount=logging_cfg.backup_count,
        encoding="utf-8",
    )
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(logging_cfg.log_level.upper())
    root.handlers.clear()
    root.addHandler(file_handler)
    root.addHandler(console_handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def jitter_delay(base_seconds: float, variation_seconds: float) -> float:
    """Return ``base_seconds`` shifted by a random +/- variation, never below zero."""
    if variation_seconds <= 0:
        return float(base_seconds)
    delta = random.uniform(-variation_seconds, variation_seconds)
    return max(0.0, base_seconds + delta)


@dataclass(frozen=True)
class RetryPolicy:
    """Exponential backoff with jitter, bounded by attempts and elapsed time."""

    max_attempts: int = 4
    base_delay: float = 2.0
    multiplier: float = 2.0
    max_delay: float = 30.0
    max_elapsed: float = 60.0
    # Fraction of the computed delay used as +/- jitter
    jitter: float = 0.25

    @classmethod
    def from_config(cls, cfg: RetryConfig) -> "RetryPolicy":
        return cls(
            max_attempts=cfg.max_attempts,
            base_delay=cfg.base_delay,
            multiplier=cfg.multiplier,
            max_delay=cfg.max_delay,
            max_elapsed=cfg.max_elapsed,
        )

    def delay_for(self, attempt: int) -> float:
        """Delay before retry number ``attempt`` (1-based)."""
        delay = min(self.max_delay, self.base_delay * self.multiplier ** (attempt - 1))
        return jitter_delay(delay, delay * self.jitter)


async def retry_async(
    func: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    *,
    sleep: SleepFunc = asyncio.sleep,
    clock: ClockFunc = time.monotonic,
    name: Optional[str] = None,
) -> T:
    """
    Call ``func`` until it succeeds or ``policy`` gives up.

    Only exceptions listed in ``retry_on`` are retried; the last one is
    re-raised once the attempt count or the elapsed-time ceiling is hit.
    """
    log = logging.getLogger(__name__)
    label = name or getattr(func, "__name__", "call")
    started = clock()
    attempt = 0
    while True:
        try:
            return await func()
        except retry_on as exc:
            attempt += 1
            if attempt >= policy.max_attempts:
                raise
            delay = policy.delay_for(attempt)
            if clock() - started + delay > policy.max_elapsed:
                log.warning("Giving up on %s after %.1fs: %s", label, clock() - started, exc)
                raise
            log.warning(
                "Retrying %s after error %r (attempt %s/%s, delay %.1fs)",
                label,
                exc,
                attempt,
                policy.max_attempts,
                delay,
            )
            await sleep(delay)


class RequestPacer:
    """Keeps a minimum interval between the starts of consecutive requests."""

    def __init__(
        self,
        min_interval: float,
        *,
        sleep: SleepFunc = asyncio.sleep,
        clock: ClockFunc = time.monotonic,
    ) -> None:
        self.min_interval = max(0.0, min_interval)
        self._sleep = sleep
        self._clock = clock
        self._last_request_ts: float | None = None

    async def pace(self) -> None:
        if self._last_request_ts is not None:
            wait_s = self.min_interval - (self._clock() - self._last_request_ts)
            if wait_s > 0:
                await self._sleep(wait_s)
        self._last_request_ts = self._clock()


__all__ = [
    "setup_logging",
    "jitter_delay",
    "RetryPolicy",
    "retry_async",
    "RequestPacer",
]
