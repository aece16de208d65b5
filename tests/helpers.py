"""Polling helpers for asynchronous assertions."""

from collections.abc import Callable

import anyio

TIMEOUT_SECONDS = 2
SETTLE_SECONDS = 0.05


async def wait_until(
    predicate: Callable[[], bool],
    timeout: float = TIMEOUT_SECONDS,
) -> None:
    """Wait until ``predicate()`` is true, failing after ``timeout`` seconds."""
    with anyio.fail_after(timeout):
        while not predicate():
            await anyio.sleep(0.001)


async def settle() -> None:
    """Give queued events time to be dispatched."""
    await anyio.sleep(SETTLE_SECONDS)
