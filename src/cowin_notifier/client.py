"""
HTTP client for the public CoWIN appointment calendar.

One call fetches the seven-day calendar of a district starting at a date.
Transport failures are retried with backoff; anything the server answers
that we cannot use (403, other non-2xx, malformed body) is "no data".
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import List, Optional

import httpx
from pydantic import ValidationError

from .config import Settings
from .districts import USER_AGENT
from .models import CalendarResponse, RawCenter
from .utils import RequestPacer, RetryPolicy, SleepFunc, retry_async

logger = logging.getLogger(__name__)


CALENDAR_PATH = "/v2/appointment/sessions/public/calendarByDistrict"
DATE_FORMAT = "%d-%m-%Y"


class FetchError(Exception):
    """Raised when a fetch keeps failing at the transport level."""

    def __init__(self, district_id: int, day: date, cause: BaseException) -> None:
        super().__init__(f"Fetching district {district_id} for {day:%d-%m-%Y} failed: {cause!r}")
        self.district_id = district_id
        self.day = day
        self.cause = cause


class CowinClient:
    def __init__(
        self,
        base_url: str,
        *,
        request_interval: float = 3.0,
        rate_limit_cooldown: float = 10.0,
        timeout: float = 15.0,
        retry_policy: RetryPolicy | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.rate_limit_cooldown = rate_limit_cooldown
        self.retry_policy = retry_policy or RetryPolicy()
        self._sleep = sleep
        self._pacer = RequestPacer(request_interval, sleep=sleep)
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
            timeout=httpx.Timeout(timeout, connect=10.0),
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "CowinClient":
        return cls(
            settings.cowin.base_url,
            request_interval=settings.cowin.request_interval,
            rate_limit_cooldown=settings.cowin.rate_limit_cooldown,
            timeout=settings.cowin.request_timeout,
            retry_policy=RetryPolicy.from_config(settings.retry),
        )

    async def __aenter__(self) -> "CowinClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get(self, params: dict[str, str]) -> httpx.Response:
        # Every attempt, retries included, counts against the upstream limit
        await self._pacer.pace()
        return await self._client.get(CALENDAR_PATH, params=params)

    async def fetch(self, district_id: int, day: date) -> Optional[List[RawCenter]]:
        """
        Return the centers of ``district_id`` for the week starting at ``day``.

        Returns None when the upstream gave no usable data and raises
        FetchError once transport retries are exhausted.
        """
        params = {"district_id": str(district_id), "date": day.strftime(DATE_FORMAT)}
        try:
            response = await retry_async(
                lambda: self._get(params),
                self.retry_policy,
                (httpx.TransportError,),
                sleep=self._sleep,
                name=f"calendar fetch for district {district_id}",
            )
        except httpx.TransportError as e:
            raise FetchError(district_id, day, e) from e

        if response.status_code == httpx.codes.FORBIDDEN:
            logger.warning(
                "API limit reached. Sleeping for %.0fs", self.rate_limit_cooldown
            )
            await self._sleep(self.rate_limit_cooldown)
            return None
        if not response.is_success:
            logger.warning(
                "Calendar request for district %s answered %s", district_id, response.status_code
            )
            return None

        try:
            payload = CalendarResponse.model_validate_json(response.content)
        except ValidationError as e:
            logger.warning(
                "Malformed calendar response for district %s: %s",
                district_id,
                e.errors(include_url=False)[:3],
            )
            return None

        logger.debug(
            "District %s on %s: %s centers", district_id, params["date"], len(payload.centers)
        )
        return payload.centers


__all__ = ["CowinClient", "FetchError", "CALENDAR_PATH", "DATE_FORMAT"]
