"""Suspension helpers used by the locator, simulator and page handlers."""

from __future__ import annotations

import asyncio
import random
from typing import Optional

DEFAULT_MIN_DELAY_MS = 50
DEFAULT_MAX_DELAY_MS = 150


async def sleep(ms: float) -> None:
    """Suspend the current task for ``ms`` milliseconds."""
    if ms < 0:
        raise ValueError("sleep duration must be non-negative.")
    await asyncio.sleep(ms / 1000)


def random_delay(
    min_ms: int = DEFAULT_MIN_DELAY_MS,
    max_ms: int = DEFAULT_MAX_DELAY_MS,
    rng: Optional[random.Random] = None,
) -> int:
    """Return a uniform random integer delay in ``[min_ms, max_ms]``."""
    if min_ms < 0 or max_ms < 0:
        raise ValueError("delay bounds must be non-negative.")
    low, high = sorted((int(min_ms), int(max_ms)))
    return (rng or random).randint(low, high)


async def human_delay(
    min_ms: int = DEFAULT_MIN_DELAY_MS,
    max_ms: int = DEFAULT_MAX_DELAY_MS,
    rng: Optional[random.Random] = None,
) -> int:
    """Sleep for a jittered delay and return the delay that was used."""
    delay = random_delay(min_ms, max_ms, rng)
    await sleep(delay)
    return delay


def now_ms() -> float:
    """Monotonic time of the running event loop in milliseconds."""
    return asyncio.get_running_loop().time() * 1000


__all__ = ["human_delay", "now_ms", "random_delay", "sleep"]
