"""Core data models for taskcue."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable

Operation = Callable[[], Awaitable[Any]]


class TaskState(str, Enum):
    """Possible states for a task."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskState.COMPLETED, TaskState.FAILED)


# Allowed forward moves; terminal states have none.
TRANSITIONS: dict[TaskState, frozenset[TaskState]] = {
    TaskState.PENDING: frozenset({TaskState.RUNNING}),
    TaskState.RUNNING: frozenset({TaskState.COMPLETED, TaskState.FAILED}),
    TaskState.COMPLETED: frozenset(),
    TaskState.FAILED: frozenset(),
}


class AdmissionMode(str, Enum):
    """How the scheduler admits eligible tasks within a pass."""

    CONCURRENT = "concurrent"  # dispatch up to the cap, collect completions
    SEQUENTIAL = "sequential"  # await each admitted task before the next


@dataclass
class TaskRecord:
    """A registered unit of work and its bookkeeping."""

    id: str
    seq: int
    operation: Operation
    priority: int = 0
    dependencies: frozenset[str] = field(default_factory=frozenset)
    timeout: float | None = None
    state: TaskState = TaskState.PENDING
    created_at: float = 0.0
    started_at: float | None = None
    completed_at: float | None = None
    result: Any = None
    error: str | None = None
    timed_out: bool = False

    @property
    def duration(self) -> float | None:
        """Seconds spent running, once finished."""
        if self.started_at is None or self.completed_at is None:
            return None
        return self.completed_at - self.started_at

    @property
    def sort_key(self) -> tuple[int, int]:
        # Higher priority first, then submission order
        return (-self.priority, self.seq)


@dataclass
class SchedulerConfig:
    """Tuning knobs for the scheduler."""

    max_concurrent: int = 1
    poll_interval: float = 0.1
    admission: AdmissionMode = AdmissionMode.CONCURRENT
    cancel_on_timeout: bool = False

    def __post_init__(self) -> None:
        if self.max_concurrent < 1:
            raise ValueError(f"max_concurrent must be >= 1, got {self.max_concurrent}")
        if self.poll_interval < 0:
            raise ValueError(f"poll_interval must be >= 0, got {self.poll_interval}")
        self.admission = AdmissionMode(self.admission)
