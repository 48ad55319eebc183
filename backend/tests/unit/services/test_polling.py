import pytest

from greenrun.domain.exceptions import InfrastructureError, PollTimeoutError
from greenrun.services.polling import poll, poll_until

pytestmark = pytest.mark.unit


class _Sleeps:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def _sequence(*values):
    items = list(values)

    async def fetch():
        value = items.pop(0)
        if isinstance(value, Exception):
            raise value
        return value

    return fetch


@pytest.mark.asyncio
async def test_first_fetch_happens_without_sleeping() -> None:
    sleeps = _Sleeps()

    result = await poll_until(_sequence("ready"), lambda v: v == "ready", interval=5.0, sleep=sleeps)

    assert result == "ready"
    assert sleeps.delays == []


@pytest.mark.asyncio
async def test_sleeps_interval_between_fetches() -> None:
    sleeps = _Sleeps()

    result = await poll_until(_sequence(1, 2, 3), lambda v: v == 3, interval=0.5, sleep=sleeps)

    assert result == 3
    assert sleeps.delays == [0.5, 0.5]


@pytest.mark.asyncio
async def test_retry_on_errors_count_as_attempts() -> None:
    fetch = _sequence(InfrastructureError("flaky"), "ok")

    result = await poll_until(fetch, lambda v: v == "ok", interval=0, retry_on=(InfrastructureError,), sleep=_Sleeps())

    assert result == "ok"


@pytest.mark.asyncio
async def test_other_errors_propagate() -> None:
    fetch = _sequence(KeyError("boom"))

    with pytest.raises(KeyError):
        await poll_until(fetch, lambda v: True, interval=0, retry_on=(InfrastructureError,), sleep=_Sleeps())


@pytest.mark.asyncio
async def test_max_attempts_raises_poll_timeout() -> None:
    fetch = _sequence("a", "b", "c")

    with pytest.raises(PollTimeoutError) as exc_info:
        await poll_until(fetch, lambda v: False, interval=0, max_attempts=3, what="host h1", sleep=_Sleeps())

    assert exc_info.value.attempts == 3
    assert "host h1" in exc_info.value.message


@pytest.mark.asyncio
async def test_timeout_raises_poll_timeout() -> None:
    async def fetch() -> str:
        return "still running"

    with pytest.raises(PollTimeoutError) as exc_info:
        await poll_until(fetch, lambda v: False, interval=0.01, timeout=0.05)

    assert exc_info.value.timeout == 0.05


@pytest.mark.asyncio
async def test_unbounded_poll_stops_when_consumer_stops() -> None:
    seen = []
    async for value in poll(_sequence(1, 2, 3, 4), interval=0, sleep=_Sleeps()):
        seen.append(value)
        if value == 2:
            break

    assert seen == [1, 2]
