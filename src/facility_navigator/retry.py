import asyncio
from typing import Awaitable, Callable, TypeVar

T = TypeVar("T")


async def with_exponential_backoff(
    operation: Callable[[], Awaitable[T]],
    attempts: int = 1,
    base_delay_seconds: float = 0.2,
    on_retry: Callable[[int, float], None] | None = None,
    should_retry: Callable[[Exception], bool] | None = None,
    sleep_fn: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Run ``operation`` up to ``attempts`` times, re-raising the last failure."""
    if attempts < 1:
        raise ValueError("attempts must be >= 1")
    attempt = 0
    while True:
        try:
            return await operation()
        except Exception as exc:
            attempt += 1
            if attempt >= attempts or (should_retry and not should_retry(exc)):
                raise
            delay = base_delay_seconds * (2 ** (attempt - 1))
            if on_retry:
                on_retry(attempt, delay)
            await sleep_fn(delay)
