import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import TypeVar

import structlog

from greenrun.domain.exceptions import InfrastructureError, PollTimeoutError

T = TypeVar("T")

# Read failures worth another tick rather than ending a wait or a stream
TRANSIENT_ERRORS: tuple[type[BaseException], ...] = (InfrastructureError, OSError)

_logger = structlog.get_logger("greenrun.polling")


async def poll(
    fetch: Callable[[], Awaitable[T]],
    *,
    interval: float,
    max_attempts: int | None = None,
    timeout: float | None = None,
    retry_on: tuple[type[BaseException], ...] = (),
    what: str = "condition",
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> AsyncIterator[T]:
    """Yields the result of `fetch` every `interval` seconds.

    - The first fetch happens immediately.
    - Exceptions in `retry_on` are logged and count as an attempt; anything else propagates.
    - Raises PollTimeoutError once `max_attempts` or `timeout` is exhausted and the
      consumer has not stopped iterating. With neither bound it polls until the
      consumer stops (e.g. a stream whose client disconnects).
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout if timeout is not None else None
    attempts = 0

    while True:
        attempts += 1
        try:
            value = await fetch()
        except retry_on as e:
            _logger.warning("Poll attempt failed, retrying", what=what, attempt=attempts, error=str(e))
        else:
            yield value

        if max_attempts is not None and attempts >= max_attempts:
            raise PollTimeoutError(what, attempts=attempts)

        delay = interval
        if deadline is not None:
            remaining = deadline - loop.time()
            if remaining <= 0:
                raise PollTimeoutError(what, timeout=timeout)
            delay = min(interval, remaining)
        await sleep(delay)


async def poll_until(
    fetch: Callable[[], Awaitable[T]],
    predicate: Callable[[T], bool],
    *,
    interval: float,
    max_attempts: int | None = None,
    timeout: float | None = None,
    retry_on: tuple[type[BaseException], ...] = (),
    what: str = "condition",
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Polls until `predicate` holds for a fetched value and returns that value."""
    async for value in poll(
        fetch,
        interval=interval,
        max_attempts=max_attempts,
        timeout=timeout,
        retry_on=retry_on,
        what=what,
        sleep=sleep,
    ):
        if predicate(value):
            return value
    raise PollTimeoutError(what, timeout=timeout, attempts=max_attempts)
