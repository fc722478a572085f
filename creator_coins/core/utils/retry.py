from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import TypeVar

from loguru import logger

T = TypeVar("T")


def exponential_backoff_s(
    attempt: int, *, base_delay_s: float = 0.25, max_delay_s: float | None = None
) -> float:
    delay_s = base_delay_s * (2**attempt)
    return delay_s if max_delay_s is None else min(delay_s, max_delay_s)


async def retry_async(
    fn: Callable[[], Awaitable[T]],
    *,
    label: str,
    attempts: int = 3,
    should_retry: Callable[[Exception], bool] = lambda _exc: True,
    delay_for: Callable[[int, Exception], float] | None = None,
) -> T:
    """Await ``fn`` up to ``attempts`` times, backing off between tries.

    Errors rejected by ``should_retry`` and the error from the last attempt
    propagate unchanged. Each retry is logged as a warning under ``label``.
    """
    if attempts < 1:
        raise ValueError("attempts must be >= 1")

    attempt = 0
    while True:
        try:
            return await fn()
        except Exception as exc:
            if attempt + 1 >= attempts or not should_retry(exc):
                raise
            delay_s = (
                delay_for(attempt, exc)
                if delay_for is not None
                else exponential_backoff_s(attempt)
            )
            logger.warning(
                f"{label} failed ({type(exc).__name__}: {exc}); "
                f"retry {attempt + 1}/{attempts - 1} in {delay_s:.2f}s"
            )
            await asyncio.sleep(delay_s)
            attempt += 1


async def poll_until(
    fn: Callable[[], Awaitable[T | None]],
    *,
    timeout_s: float,
    interval_s: float = 1.0,
) -> T | None:
    """Call ``fn`` until it returns a non-None value or ``timeout_s`` elapses.

    Returns None on timeout; the caller decides what a timeout means.
    """
    deadline = time.monotonic() + timeout_s
    while True:
        result = await fn()
        if result is not None:
            return result
        if time.monotonic() + interval_s > deadline:
            return None
        await asyncio.sleep(interval_s)
