"""Deadline wrapper for task operations."""

from __future__ import annotations

import asyncio
import functools
import inspect
import logging
from typing import Any

from taskcue.errors import TaskTimeout
from taskcue.models import Operation

logger = logging.getLogger(__name__)

# Operations left running after their wrapper timed out. Holding a
# reference keeps them from being garbage collected mid-flight.
_abandoned: set[asyncio.Task] = set()


def _discard(task: asyncio.Task) -> None:
    _abandoned.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug("Abandoned operation finished with %r", exc)


async def invoke(operation: Operation) -> Any:
    """Call an operation, awaiting the result if it is awaitable."""
    result = operation()
    if inspect.isawaitable(result):
        result = await result
    return result


def with_timeout(
    operation: Operation,
    timeout: float | None,
    *,
    cancel: bool = False,
    task_id: str | None = None,
) -> Operation:
    """
    Race an operation against a deadline.

    Args:
        operation: Zero-argument callable returning an awaitable.
        timeout: Seconds to wait. 0 or None returns the operation as is.
        cancel: Cancel the operation when the deadline passes. By default
            it keeps running and its outcome is ignored.
        task_id: Included in the TaskTimeout message.

    Returns:
        A zero-argument coroutine function with the same result, or that
        raises TaskTimeout if the deadline passes first.

    Example:
        guarded = with_timeout(fetch, 2.5)
        data = await guarded()
    """
    if not timeout:
        return operation
    if timeout < 0:
        raise ValueError(f"timeout must be >= 0, got {timeout}")

    @functools.wraps(operation)
    async def guarded() -> Any:
        inner = asyncio.ensure_future(invoke(operation))
        try:
            done, _ = await asyncio.wait({inner}, timeout=timeout)
        except asyncio.CancelledError:
            inner.cancel()
            raise

        if inner in done:
            # Re-raises the operation's own exception unchanged
            return inner.result()

        if cancel:
            inner.cancel()
        else:
            _abandoned.add(inner)
            inner.add_done_callback(_discard)
        raise TaskTimeout(timeout, task_id)

    return guarded
