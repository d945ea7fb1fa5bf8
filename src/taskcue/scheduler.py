"""Scheduling loop: dependency gating, priority admission, bookkeeping."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from taskcue.errors import TaskFailure, TaskTimeout
from taskcue.models import AdmissionMode, SchedulerConfig, TaskRecord, TaskState
from taskcue.registry import TaskRegistry
from taskcue.timeout import invoke, with_timeout

logger = logging.getLogger(__name__)


class Scheduler:
    """
    Drives every pending task in a registry to a terminal state.

    Each pass:
    1. collects pending tasks whose dependencies are all completed or failed,
    2. orders them by descending priority, then submission order,
    3. admits them while fewer than max_concurrent tasks are running,
    4. waits for a completion or the poll interval, whichever is first.

    The loop ends once nothing is pending and nothing is in flight. A task
    failure, including a timeout, is recorded on the task and never stops
    the loop.

    In SEQUENTIAL mode each admitted task is awaited before the next
    candidate is considered, so at most one task runs at a time whatever
    max_concurrent is set to.
    """

    def __init__(self, registry: TaskRegistry, config: SchedulerConfig | None = None) -> None:
        self.registry = registry
        self.config = config or SchedulerConfig()

        # Event callbacks, set by the owner
        self.on_start: Callable | None = None
        self.on_complete: Callable | None = None
        self.on_failure: Callable | None = None

        self._running = False
        self._running_count = 0
        self._in_flight: dict[str, asyncio.Task] = {}
        self.admission_order: list[str] = []
        self.peak_running = 0

    @property
    def running(self) -> bool:
        """True while run() is active."""
        return self._running

    @property
    def running_count(self) -> int:
        return self._running_count

    # --- Main loop ---

    async def run(self) -> None:
        """
        Run until every task in the registry is terminal.

        Raises:
            RuntimeError: If already running.
            DependencyError: If a pending task depends on an unknown id or on
                itself through a cycle. Nothing is started in that case.
        """
        if self._running:
            raise RuntimeError("Scheduler is already running")

        self.registry.check_graph()
        self._running = True
        logger.info(
            "Scheduling %d task(s), max_concurrent=%d, admission=%s",
            len(self.registry.pending()),
            self.config.max_concurrent,
            self.config.admission.value,
        )
        try:
            pool = self.registry.pending()
            while pool or self._in_flight:
                await self._admit(self._eligible(pool))
                await self._wait()
                # Drop finished tasks; pick up tasks added mid-run
                pool = self.registry.pending()
        finally:
            await self._abort_in_flight()
            self._running = False

        logger.info("All tasks finished: %s", self._summary())

    def _eligible(self, pool: list[TaskRecord]) -> list[TaskRecord]:
        eligible = [r for r in pool if self.registry.is_eligible(r)]
        eligible.sort(key=lambda r: r.sort_key)
        return eligible

    async def _admit(self, candidates: list[TaskRecord]) -> None:
        for record in candidates:
            if self._running_count >= self.config.max_concurrent:
                break
            # A task may have finished earlier in this same pass
            if not self.registry.is_eligible(record):
                continue

            self._start(record)
            if self.config.admission is AdmissionMode.SEQUENTIAL:
                await self._execute(record)
            else:
                task = asyncio.create_task(self._execute(record), name=record.id)
                self._in_flight[record.id] = task
                task.add_done_callback(lambda _t, task_id=record.id: self._in_flight.pop(task_id, None))

    async def _wait(self) -> None:
        if self._in_flight:
            await asyncio.wait(
                list(self._in_flight.values()),
                timeout=self.config.poll_interval,
                return_when=asyncio.FIRST_COMPLETED,
            )
        else:
            await asyncio.sleep(self.config.poll_interval)

    async def _abort_in_flight(self) -> None:
        """Cancel anything still running when run() exits early."""
        if not self._in_flight:
            return
        in_flight = dict(self._in_flight)
        for task in in_flight.values():
            task.cancel()
        await asyncio.gather(*in_flight.values(), return_exceptions=True)
        self._in_flight.clear()

        # Tasks cancelled before their first step never reached _execute
        for task_id in in_flight:
            if self.registry.get(task_id).state is TaskState.RUNNING:
                self.registry.set_state(task_id, TaskState.FAILED, error="Cancelled")
                self._running_count -= 1

    # --- Single task ---

    def _start(self, record: TaskRecord) -> None:
        self._running_count += 1
        self.peak_running = max(self.peak_running, self._running_count)
        self.admission_order.append(record.id)
        self.registry.set_state(record.id, TaskState.RUNNING)
        logger.debug("Started %s (priority=%d)", record.id, record.priority)
        self._emit(self.on_start, record)

    async def _execute(self, record: TaskRecord) -> None:
        operation = with_timeout(
            record.operation,
            record.timeout,
            cancel=self.config.cancel_on_timeout,
            task_id=record.id,
        )
        try:
            result = await invoke(operation)
        except TaskTimeout as e:
            self.registry.set_state(record.id, TaskState.FAILED, error=str(e), timed_out=True)
            logger.warning("%s", e)
            self._emit(self.on_failure, record, e)
        except asyncio.CancelledError as e:
            if asyncio.current_task().cancelling():
                # run() itself is being cancelled
                self.registry.set_state(record.id, TaskState.FAILED, error="Cancelled")
                raise
            # Raised by the operation, not a request to stop
            self._fail(record, e, "Cancelled")
        except Exception as e:
            self._fail(record, e, str(e))
        else:
            self.registry.set_state(record.id, TaskState.COMPLETED, result=result)
            logger.debug("Completed %s in %.3fs", record.id, record.duration or 0.0)
            self._emit(self.on_complete, record, result, record.duration)
        finally:
            self._running_count -= 1

    def _fail(self, record: TaskRecord, error: BaseException, reason: str) -> None:
        failure = TaskFailure(record.id, error)
        failure.__cause__ = error
        self.registry.set_state(record.id, TaskState.FAILED, error=reason)
        logger.warning("%s", failure)
        self._emit(self.on_failure, record, failure)

    def _emit(self, callback: Callable | None, *args: Any) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception:
            # Callback errors never affect scheduling
            logger.exception("Event callback %r failed", callback)

    def _summary(self) -> str:
        counts: dict[str, int] = {}
        for state in self.registry.snapshot().values():
            counts[state] = counts.get(state, 0) + 1
        return ", ".join(f"{k}={v}" for k, v in sorted(counts.items()))
