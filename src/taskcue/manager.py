"""TaskManager: the public entry point."""

from __future__ import annotations

from typing import Any, Iterable

from taskcue.errors import DependencyError
from taskcue.models import Operation, SchedulerConfig, TaskRecord
from taskcue.registry import TaskRegistry
from taskcue.reporter import StatusReporter
from taskcue.scheduler import Scheduler


class TaskManager:
    """
    Runs a batch of async tasks with priorities, dependencies and deadlines.

    Example:
        manager = taskcue.TaskManager(2)

        first = manager.add_task(fetch, priority=2, timeout=2.5)
        manager.add_task(parse, priority=1, dependencies=[first])

        @manager.on_failure
        def on_failure(task, error):
            logging.warning(f"{task.id} failed: {error}")

        await manager.execute_tasks()
        print(manager.get_status())  # {'task1': 'completed', 'task2': 'completed'}

    A failed dependency still unblocks its dependents; failures are recorded
    on the task and never raised from execute_tasks().
    """

    def __init__(self, max_concurrent: int = 1, *, config: SchedulerConfig | None = None) -> None:
        if config is None:
            config = SchedulerConfig(max_concurrent=max_concurrent)
        self.config = config
        self._registry = TaskRegistry()
        self._scheduler = Scheduler(self._registry, config)
        self._reporter = StatusReporter(self._registry)

    @property
    def max_concurrent(self) -> int:
        return self.config.max_concurrent

    @property
    def registry(self) -> TaskRegistry:
        return self._registry

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    @property
    def reporter(self) -> StatusReporter:
        return self._reporter

    # --- Tasks ---

    def add_task(
        self,
        operation: Operation,
        priority: int = 0,
        dependencies: Iterable[str] = (),
        timeout: float | None = 0,
    ) -> str:
        """
        Register a task.

        Args:
            operation: Zero-argument callable returning an awaitable.
            priority: Higher runs first among eligible tasks.
            dependencies: Task ids that must finish (either way) first.
            timeout: Seconds before the task is failed; 0 means no limit.

        Returns:
            The task id, "task<N>" for the N-th registration.

        Raises:
            DependencyError: If execute_tasks() is running and a dependency
                is not registered yet.
        """
        if isinstance(dependencies, str):
            dependencies = (dependencies,)
        dependencies = tuple(dependencies)
        if self._scheduler.running:
            unknown = sorted(d for d in dependencies if d not in self._registry)
            if unknown:
                raise DependencyError(
                    f"Unknown dependencies: {', '.join(unknown)}",
                    missing={"<new task>": unknown},
                )
        return self._registry.register(operation, priority, dependencies, timeout)

    def get_task(self, task_id: str) -> TaskRecord:
        """Get a task record. Raises UnknownTaskError for unknown ids."""
        return self._registry.get(task_id)

    def result(self, task_id: str) -> Any:
        """Return value of a completed task, None otherwise."""
        return self._registry.get(task_id).result

    def error(self, task_id: str) -> str | None:
        """Failure reason of a failed task, None otherwise."""
        return self._registry.get(task_id).error

    # --- Execution ---

    async def execute_tasks(self) -> None:
        """
        Run every registered task to completion or failure.

        Raises:
            RuntimeError: If called while already executing.
            DependencyError: If a task depends on an unknown id or the
                dependencies form a cycle. No task is started.
        """
        await self._scheduler.run()

    def get_status(self) -> dict[str, str]:
        """Snapshot of task id -> "pending" | "running" | "completed" | "failed"."""
        return self._reporter.snapshot()

    # --- Event Callbacks ---

    def on_start(self, func):
        """
        Decorator to register the start callback.

        Called with (task) when a task is admitted.

        Example:
            @manager.on_start
            def on_start(task):
                logging.info(f"Starting {task.id}")
        """
        self._scheduler.on_start = func
        return func

    def on_complete(self, func):
        """
        Decorator to register the completion callback.

        Called with (task, result, duration) after success.
        """
        self._scheduler.on_complete = func
        return func

    def on_failure(self, func):
        """
        Decorator to register the failure callback.

        Called with (task, error) where error is a TaskTimeout or a
        TaskFailure wrapping the operation's exception.
        """
        self._scheduler.on_failure = func
        return func
