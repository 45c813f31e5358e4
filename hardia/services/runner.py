"""Deadline-bounded execution of a single model call.

The call and a timer are raced as two tasks. Whichever finishes first
decides the outcome; the loser is cancelled and never surfaces.
"""
from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import TypeVar

from hardia.exceptions import ChatTimeout

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_DEADLINE_SECONDS = 15.0


def _consume_outcome(task: asyncio.Task) -> None:
    """Retrieve an abandoned task's outcome so it is never reported as unobserved."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug(f"Abandoned model call finished with {type(exc).__name__}: {exc}")


class BoundedRunner:
    """Runs a coroutine factory with a hard wall-clock deadline.

    Usage:
        runner = BoundedRunner(deadline=15.0)
        result = await runner.run(lambda: session.send(message))

    ``run`` returns the call's result, re-raises its exception, or raises
    ``ChatTimeout`` no later than ``deadline`` seconds after it was entered.
    On timeout the call's task is cancelled once and left to unwind on its
    own; the caller does not wait for it.
    """

    def __init__(self, deadline: float = DEFAULT_DEADLINE_SECONDS):
        self.deadline = deadline

    async def run(
        self,
        call: Callable[[], Awaitable[T]],
        deadline: float | None = None,
    ) -> T:
        deadline = self.deadline if deadline is None else deadline
        started = time.monotonic()

        work = asyncio.ensure_future(call())
        timer = asyncio.ensure_future(asyncio.sleep(deadline))

        try:
            done, _ = await asyncio.wait(
                {work, timer}, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            work.cancel()
            work.add_done_callback(_consume_outcome)
            raise
        finally:
            timer.cancel()

        # Both may be done in the same iteration; the call's outcome wins.
        if work in done:
            return work.result()

        work.cancel()
        work.add_done_callback(_consume_outcome)

        elapsed_ms = int((time.monotonic() - started) * 1000)
        logger.warning(f"Model call exceeded deadline: deadline={deadline:g}s elapsed_ms={elapsed_ms}")
        raise ChatTimeout(deadline)
