from datetime import date

import httpx
import pytest

from cowin_notifier.client import CowinClient
from cowin_notifier.models import Location
from cowin_notifier.monitor import ScanLoop
from cowin_notifier.scanner import AvailabilityScanner
from cowin_notifier.utils import RetryPolicy

from factories import SleepRecorder, center_data, session_data, slot


VIZAG = Location(id=8, name="Visakhapatnam")
KAMRUP = Location(id=49, name="Kamrup Metropolitan")

VIZAG_FEED = {
    "centers": [
        center_data(
            session_data(min_age_limit=18, available_capacity=5, vaccine="Covaxin", date="01-06-2021")
        )
    ]
}


class Outbox:
    def __init__(self, fail_for: str | None = None) -> None:
        self.fail_for = fail_for
        self.messages: list[str] = []

    async def __call__(self, text: str) -> None:
        self.messages.append(text)
        if self.fail_for and self.fail_for in text:
            raise RuntimeError("telegram down")


class FeedSequence:
    def __init__(self, *responses: httpx.Response) -> None:
        self.responses = list(responses)
        self.count = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.count += 1
        return self.responses.pop(0)


@pytest.fixture
def sleep():
    return SleepRecorder()


def _pipeline(feed, sleep, outbox, locations=(VIZAG,)):
    client = CowinClient(
        "https://cowin.test/api",
        request_interval=0.0,
        rate_limit_cooldown=10.0,
        retry_policy=RetryPolicy(max_attempts=2, base_delay=0.5, jitter=0),
        transport=httpx.MockTransport(feed),
        sleep=sleep,
    )
    scanner = AvailabilityScanner(client, lookahead_days=7, today=lambda: date(2021, 6, 1))
    return client, ScanLoop(locations=list(locations), scanner=scanner, deliver=outbox)


async def test_new_slots_are_delivered_once(sleep):
    feed = FeedSequence(httpx.Response(200, json=VIZAG_FEED), httpx.Response(200, json=VIZAG_FEED))
    outbox = Outbox()
    client, loop = _pipeline(feed, sleep, outbox)

    async with client:
        await loop.run_cycle()
        await loop.run_cycle()

    assert len(outbox.messages) == 1
    message = outbox.messages[0]
    for expected in ("Visakhapatnam", "UPHC Gajuwaka", "530026", "5 slots", "01-06-2021", "Covaxin"):
        assert expected in message
    assert loop.detector.last_seen(VIZAG.id) == (
        slot(capacity="5", vaccine_name="Covaxin"),
    )
    assert loop.state.cycles == 2
    assert loop.state.notifications_sent == 1


async def test_rate_limited_scan_leaves_cache_and_sends_nothing(sleep):
    feed = FeedSequence(httpx.Response(403), httpx.Response(200, json=VIZAG_FEED))
    outbox = Outbox()
    client, loop = _pipeline(feed, sleep, outbox)

    async with client:
        await loop.run_cycle()

        assert outbox.messages == []
        assert loop.detector.last_seen(VIZAG.id) is None
        assert sleep.calls == [10.0]

        await loop.run_cycle()

    assert len(outbox.messages) == 1
    assert feed.count == 2


async def test_failed_scan_keeps_previous_state(sleep):
    feed = FeedSequence(
        httpx.Response(200, json=VIZAG_FEED),
        httpx.Response(502),
        httpx.Response(200, json=VIZAG_FEED),
    )
    outbox = Outbox()
    client, loop = _pipeline(feed, sleep, outbox)

    async with client:
        for _ in range(3):
            await loop.run_cycle()

    assert len(outbox.messages) == 1
    assert loop.detector.last_seen(VIZAG.id) is not None


async def test_delivery_failure_does_not_stop_loop_or_repeat(sleep):
    feed = FeedSequence(*(httpx.Response(200, json=VIZAG_FEED) for _ in range(4)))
    outbox = Outbox(fail_for="Visakhapatnam")
    client, loop = _pipeline(feed, sleep, outbox, locations=(VIZAG, KAMRUP))

    async with client:
        await loop.run_cycle()
        await loop.run_cycle()

    # Kamrup still got scanned and delivered after Vizag's send failed;
    # Vizag is not re-sent since the change was already recorded.
    assert len(outbox.messages) == 2
    assert "Kamrup Metropolitan" in outbox.messages[1]
    assert loop.state.delivery_failures == 1
    assert feed.count == 4


class ExplodingScanner:
    def __init__(self) -> None:
        self.scanned: list[int] = []

    async def scan(self, location):
        self.scanned.append(location.id)
        if location.id == VIZAG.id:
            raise RuntimeError("unexpected")
        return (slot(),)


async def test_unexpected_scan_error_is_contained():
    scanner = ExplodingScanner()
    outbox = Outbox()
    loop = ScanLoop(locations=[VIZAG, KAMRUP], scanner=scanner, deliver=outbox)

    await loop.run_cycle()

    assert scanner.scanned == [8, 49]
    assert len(outbox.messages) == 1
    assert loop.state.failed_scans == 1


async def test_locations_scanned_in_table_order_and_stop_between_them():
    order: list[int] = []

    class StoppingScanner:
        async def scan(self, location):
            order.append(location.id)
            if len(order) == 3:
                loop.stop()
            return None

    locations = [Location(id=i, name=f"D{i}") for i in (142, 8, 571)]
    loop = ScanLoop(locations=locations, scanner=StoppingScanner(), deliver=Outbox())

    await loop.run_forever()

    assert order == [142, 8, 571]
    assert loop.state.is_running is False


async def test_run_forever_repeats_cycles_until_stopped():
    seen: list[int] = []

    class CountingScanner:
        async def scan(self, location):
            seen.append(location.id)
            if len(seen) == 5:
                loop.stop()
            return None

    loop = ScanLoop(locations=[VIZAG, KAMRUP], scanner=CountingScanner(), deliver=Outbox())

    await loop.run_forever()

    assert seen == [8, 49, 8, 49, 8]
    assert loop.state.cycles == 2


async def test_result_too_big_for_any_message_is_not_delivered():
    class HugeScanner:
        async def scan(self, location):
            return (slot("X" * 600),)

    outbox = Outbox()
    loop = ScanLoop(locations=[VIZAG], scanner=HugeScanner(), deliver=outbox, max_message_bytes=512)

    assert await loop.process(VIZAG) is False
    assert outbox.messages == []
    assert loop.state.notifications_sent == 0
