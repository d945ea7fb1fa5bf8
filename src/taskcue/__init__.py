"""taskcue - Run a batch of async tasks with priorities, dependencies and deadlines."""

from taskcue.errors import (
    DependencyError,
    InvalidTransition,
    TaskcueError,
    TaskFailure,
    TaskTimeout,
    UnknownTaskError,
)
from taskcue.manager import TaskManager
from taskcue.models import AdmissionMode, SchedulerConfig, TaskRecord, TaskState
from taskcue.registry import TaskRegistry
from taskcue.reporter import StatusReporter
from taskcue.scheduler import Scheduler
from taskcue.timeout import with_timeout

__version__ = "0.1.0"
__all__ = [
    "TaskManager",
    "TaskRegistry",
    "Scheduler",
    "StatusReporter",
    "SchedulerConfig",
    "AdmissionMode",
    "TaskRecord",
    "TaskState",
    "with_timeout",
    "TaskcueError",
    "TaskTimeout",
    "TaskFailure",
    "UnknownTaskError",
    "InvalidTransition",
    "DependencyError",
]
