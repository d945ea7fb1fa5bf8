"""Exceptions raised by taskcue."""

from __future__ import annotations


class TaskcueError(Exception):
    """Base class for all taskcue errors."""


class TaskTimeout(TaskcueError):
    """A task operation did not finish within its deadline."""

    def __init__(self, timeout: float, task_id: str | None = None) -> None:
        self.timeout = timeout
        self.task_id = task_id
        label = f"Task {task_id}" if task_id else "Task"
        super().__init__(f"{label} timed out after {timeout:g}s")


class TaskFailure(TaskcueError):
    """A task operation raised. The original exception is the __cause__."""

    def __init__(self, task_id: str, error: BaseException) -> None:
        self.task_id = task_id
        self.error = error
        super().__init__(f"Task {task_id} failed: {error}")


class UnknownTaskError(TaskcueError, KeyError):
    """Lookup of a task id that was never registered."""

    def __init__(self, task_id: str) -> None:
        self.task_id = task_id
        super().__init__(f"Unknown task: {task_id}")

    def __str__(self) -> str:
        # KeyError would quote the whole message
        return self.args[0]


class InvalidTransition(TaskcueError):
    """A state change that would leave a terminal state or skip running."""

    def __init__(self, task_id: str, current: str, target: str) -> None:
        self.task_id = task_id
        self.current = current
        self.target = target
        super().__init__(f"Task {task_id}: cannot go from {current} to {target}")


class DependencyError(TaskcueError, ValueError):
    """The dependency graph can never be satisfied."""

    def __init__(
        self,
        message: str,
        *,
        missing: dict[str, list[str]] | None = None,
        cycle: list[str] | None = None,
    ) -> None:
        self.missing = missing or {}
        self.cycle = cycle or []
        super().__init__(message)
