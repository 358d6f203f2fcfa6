"""
Fire-and-forget task spawning for listener callbacks.
"""

import asyncio
import inspect
import logging
from typing import Any, Coroutine

logger = logging.getLogger(__name__)

# Strong references so pending tasks are not garbage collected
_pending: set[asyncio.Task] = set()


def spawn(coro: Coroutine[Any, Any, Any], name: str) -> asyncio.Task:
    """
    Schedule a coroutine on the running loop without awaiting it.

    Failures that escape the coroutine are logged instead of being lost.

    Args:
        coro: Coroutine to run
        name: Label used in the task name and in failure logs

    Returns:
        The scheduled task
    """
    task = asyncio.get_running_loop().create_task(coro, name=name)
    _pending.add(task)
    task.add_done_callback(_on_done)
    return task


def _on_done(task: asyncio.Task) -> None:
    _pending.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error(
            f"Unhandled error in task '{task.get_name()}'",
            exc_info=(type(exc), exc, exc.__traceback__),
        )


async def drain() -> None:
    """Wait for every task spawned on the running loop (used on shutdown and in tests)."""
    loop = asyncio.get_running_loop()
    while True:
        current = [task for task in _pending if task.get_loop() is loop]
        if not current:
            return
        await asyncio.gather(*current, return_exceptions=True)


async def maybe_await(value: Any) -> Any:
    """Await value if it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value
