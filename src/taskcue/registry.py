"""In-memory store of task records."""

from __future__ import annotations

import logging
import time
from graphlib import CycleError, TopologicalSorter
from typing import Any, Iterable, Iterator

from taskcue.errors import DependencyError, InvalidTransition, UnknownTaskError
from taskcue.models import TRANSITIONS, Operation, TaskRecord, TaskState

logger = logging.getLogger(__name__)


class TaskRegistry:
    """
    Owns every task record, keyed by id.

    Ids are "task1", "task2", ... in registration order and are never
    reused. Records are never removed, so the status of a finished task
    stays queryable.
    """

    def __init__(self) -> None:
        self._records: dict[str, TaskRecord] = {}
        self._count = 0

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._records

    def __iter__(self) -> Iterator[TaskRecord]:
        return iter(list(self._records.values()))

    # --- Registration ---

    def register(
        self,
        operation: Operation,
        priority: int = 0,
        dependencies: Iterable[str] = (),
        timeout: float | None = None,
    ) -> str:
        """
        Add a task in the pending state.

        Args:
            operation: Zero-argument callable returning an awaitable.
            priority: Higher values are admitted first.
            dependencies: Ids that must be terminal before this task runs.
            timeout: Seconds before the task fails; 0 or None means no limit.

        Returns:
            The new task id.
        """
        if not callable(operation):
            raise TypeError(f"operation must be callable, got {type(operation).__name__}")
        if timeout is not None and timeout < 0:
            raise ValueError(f"timeout must be >= 0, got {timeout}")
        if isinstance(dependencies, str):
            # A bare string would be split into characters
            dependencies = (dependencies,)

        self._count += 1
        task_id = f"task{self._count}"
        record = self._records[task_id] = TaskRecord(
            id=task_id,
            seq=self._count,
            operation=operation,
            priority=int(priority),
            dependencies=frozenset(dependencies),
            timeout=timeout or None,
            created_at=time.time(),
        )
        logger.debug(
            "Registered %s priority=%s deps=%s timeout=%s",
            task_id, priority, sorted(record.dependencies), timeout,
        )
        return task_id

    # --- Lookup ---

    def get(self, task_id: str) -> TaskRecord:
        try:
            return self._records[task_id]
        except KeyError:
            raise UnknownTaskError(task_id) from None

    def records(self) -> list[TaskRecord]:
        """All records in submission order."""
        return list(self._records.values())

    def pending(self) -> list[TaskRecord]:
        return [r for r in self._records.values() if r.state is TaskState.PENDING]

    def running_count(self) -> int:
        return sum(1 for r in self._records.values() if r.state is TaskState.RUNNING)

    def is_eligible(self, record: TaskRecord) -> bool:
        """Pending, with every dependency completed or failed."""
        if record.state is not TaskState.PENDING:
            return False
        for dep in record.dependencies:
            dep_record = self._records.get(dep)
            if dep_record is None or not dep_record.state.is_terminal:
                return False
        return True

    # --- Mutation ---

    def set_state(
        self,
        task_id: str,
        state: TaskState | str,
        *,
        result: Any = None,
        error: str | None = None,
        timed_out: bool = False,
    ) -> TaskRecord:
        """
        Move a task forward in its lifecycle.

        Raises:
            UnknownTaskError: If the id was never registered.
            InvalidTransition: If the move is not pending -> running ->
                completed/failed.
        """
        record = self.get(task_id)
        state = TaskState(state)
        if state not in TRANSITIONS[record.state]:
            raise InvalidTransition(task_id, record.state.value, state.value)

        record.state = state
        now = time.time()
        if state is TaskState.RUNNING:
            record.started_at = now
        else:
            record.completed_at = now
            record.result = result
            record.error = error
            record.timed_out = timed_out
        return record

    # --- Views ---

    def snapshot(self) -> dict[str, str]:
        """Point-in-time copy of id -> state."""
        return {task_id: r.state.value for task_id, r in self._records.items()}

    def missing_dependencies(self) -> dict[str, list[str]]:
        """Map of task id -> dependency ids that were never registered."""
        missing: dict[str, list[str]] = {}
        for record in self._records.values():
            unknown = sorted(d for d in record.dependencies if d not in self._records)
            if unknown:
                missing[record.id] = unknown
        return missing

    def check_graph(self) -> None:
        """
        Verify every pending task can eventually become eligible.

        Raises:
            DependencyError: On unknown dependency ids or a dependency cycle.
        """
        missing = {
            task_id: deps
            for task_id, deps in self.missing_dependencies().items()
            if self._records[task_id].state is TaskState.PENDING
        }
        if missing:
            detail = ", ".join(f"{t} -> {', '.join(d)}" for t, d in missing.items())
            raise DependencyError(f"Unknown dependencies: {detail}", missing=missing)

        sorter = TopologicalSorter(
            {r.id: r.dependencies for r in self._records.values()}
        )
        try:
            sorter.prepare()
        except CycleError as e:
            cycle = list(e.args[1])
            raise DependencyError(
                f"Dependency cycle: {' -> '.join(cycle)}", cycle=cycle
            ) from None
