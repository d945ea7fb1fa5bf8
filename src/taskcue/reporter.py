"""Read-only status views for monitors."""

from __future__ import annotations

import asyncio
from typing import AsyncIterator

from taskcue.models import TaskState
from taskcue.registry import TaskRegistry

TERMINAL = frozenset({TaskState.COMPLETED.value, TaskState.FAILED.value})


class StatusReporter:
    """
    Snapshot accessor over a TaskRegistry.

    Every call returns a fresh dict, so callers can iterate or mutate it
    while the scheduler keeps running.
    """

    def __init__(self, registry: TaskRegistry) -> None:
        self._registry = registry

    def snapshot(self) -> dict[str, str]:
        """Map of task id -> state string."""
        return self._registry.snapshot()

    def counts(self) -> dict[str, int]:
        """Number of tasks in each state, every state included."""
        counts = {state.value: 0 for state in TaskState}
        for state in self.snapshot().values():
            counts[state] += 1
        return counts

    def all_terminal(self) -> bool:
        return all(state in TERMINAL for state in self.snapshot().values())

    async def watch(self, interval: float = 0.5) -> AsyncIterator[dict[str, str]]:
        """
        Yield a snapshot every interval seconds until all tasks are terminal.

        The final, all-terminal snapshot is always yielded.

        Example:
            async for status in manager.reporter.watch(0.5):
                print(status)
        """
        while True:
            status = self.snapshot()
            yield status
            if all(state in TERMINAL for state in status.values()):
                return
            await asyncio.sleep(interval)
