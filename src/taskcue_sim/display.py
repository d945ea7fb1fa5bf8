"""Rich-based display for taskcue-sim.

Renders a SimulationState; knows nothing about how tasks are run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

STATE_STYLES = {
    "pending": "dim",
    "running": "yellow",
    "completed": "green",
    "failed": "red",
}


@dataclass
class TaskRow:
    """Static facts about a task, for display."""

    id: str
    priority: int
    dependencies: list[str] = field(default_factory=list)
    timeout: float | None = None
    state: str = "pending"
    duration: float | None = None
    detail: str = ""


@dataclass
class EventRecord:
    """A recent event for display."""

    timestamp: datetime
    event_type: str
    task_id: str
    details: str = ""


@dataclass
class SimulationState:
    """Current state of the simulation for display.

    The runner updates this; the display renders it.
    """

    tasks: dict[str, TaskRow] = field(default_factory=dict)

    # Timing
    start_time: float = 0.0
    elapsed: float = 0.0

    # Recent events (most recent first)
    events: list[EventRecord] = field(default_factory=list)
    max_events: int = 8

    # Config display
    scenario_name: str = "reference"
    max_concurrent: int = 1
    admission: str = "concurrent"
    peak_running: int = 0

    def count(self, state: str) -> int:
        return sum(1 for row in self.tasks.values() if row.state == state)

    @property
    def submitted(self) -> int:
        return len(self.tasks)

    @property
    def completed(self) -> int:
        return self.count("completed")

    @property
    def failed(self) -> int:
        return self.count("failed")

    @property
    def running(self) -> int:
        return self.count("running")

    @property
    def pending(self) -> int:
        return self.count("pending")

    @property
    def progress(self) -> float:
        """Fraction finished (0.0 to 1.0)."""
        if self.submitted:
            return (self.completed + self.failed) / self.submitted
        return 0.0

    def apply_status(self, status: dict[str, str]) -> None:
        """Copy a status snapshot onto the task rows."""
        for task_id, state in status.items():
            row = self.tasks.get(task_id)
            if row is not None:
                row.state = state

    def add_event(self, event_type: str, task_id: str, details: str = "") -> None:
        """Add an event to the display log."""
        self.events.insert(0, EventRecord(
            timestamp=datetime.now(),
            event_type=event_type,
            task_id=task_id,
            details=details,
        ))
        if len(self.events) > self.max_events:
            self.events = self.events[:self.max_events]


class SimulatorDisplay:
    """Live TUI: summary line, task table, recent events, config footer."""

    def __init__(self, state: SimulationState, console: Console | None = None):
        self.state = state
        self.console = console or Console()
        self._live: Live | None = None

    def __enter__(self) -> SimulatorDisplay:
        self._live = Live(
            self.render(),
            console=self.console,
            refresh_per_second=10,
            screen=False,
        )
        self._live.__enter__()
        return self

    def __exit__(self, *args) -> None:
        if self._live:
            self._live.__exit__(*args)
            self._live = None

    def refresh(self) -> None:
        """Update the display with current state."""
        if self._live:
            self._live.update(self.render())

    def render(self) -> Panel:
        return Panel(
            Group(
                self._build_summary(),
                self._build_tasks_section(),
                self._build_events_section(),
                self._build_config_section(),
            ),
            title="[bold cyan]taskcue-sim[/bold cyan]",
            border_style="cyan",
        )

    def _build_summary(self) -> Table:
        s = self.state
        stats = Table.grid(expand=True, padding=(0, 2))
        for _ in range(5):
            stats.add_column(justify="left")
        stats.add_row(
            f"[dim]Pending:[/dim] [bold]{s.pending}[/bold]",
            f"[dim]Running:[/dim] [bold yellow]{s.running}[/bold yellow]",
            f"[dim]Completed:[/dim] [bold green]{s.completed}[/bold green]",
            f"[dim]Failed:[/dim] [bold red]{s.failed}[/bold red]",
            f"[dim]Progress:[/dim] [bold]{s.progress * 100:.0f}%[/bold]",
        )
        return stats

    def _build_tasks_section(self) -> Panel:
        table = Table(box=None, expand=True, padding=(0, 1))
        table.add_column("Task", width=8)
        table.add_column("Prio", width=4, justify="right")
        table.add_column("Depends on", width=18)
        table.add_column("Timeout", width=8, justify="right")
        table.add_column("State", width=10)
        table.add_column("Took", width=8, justify="right")
        table.add_column("Details")

        for row in self.state.tasks.values():
            style = STATE_STYLES.get(row.state, "white")
            table.add_row(
                f"[bold]{row.id}[/bold]",
                str(row.priority),
                ", ".join(row.dependencies) or "[dim]-[/dim]",
                f"{row.timeout:g}s" if row.timeout else "[dim]-[/dim]",
                f"[{style}]{row.state}[/{style}]",
                f"{row.duration:.2f}s" if row.duration is not None else "",
                row.detail[:30],
            )

        if not self.state.tasks:
            table.add_row("[dim]No tasks[/dim]", "", "", "", "", "", "")

        return Panel(table, title="[bold]Tasks[/bold]", border_style="blue")

    def _build_events_section(self) -> Panel:
        table = Table(box=None, expand=True, padding=(0, 1), show_header=False)
        table.add_column("Time", width=10, style="dim")
        table.add_column("Event", width=12)
        table.add_column("Task", width=8)
        table.add_column("Details")

        for event in self.state.events[:5]:
            style = STATE_STYLES.get(event.event_type, "white")
            table.add_row(
                event.timestamp.strftime("%H:%M:%S"),
                f"[{style}]{event.event_type}[/{style}]",
                event.task_id,
                event.details[:40],
            )

        if not self.state.events:
            table.add_row("[dim]No events yet[/dim]", "", "", "")

        return Panel(table, title="[bold]Recent Events[/bold]", border_style="blue")

    def _build_config_section(self) -> Panel:
        s = self.state
        text = Text()
        text.append("Scenario: ", style="dim")
        text.append(s.scenario_name, style="bold")
        text.append("  Concurrency: ", style="dim")
        text.append(f"{s.peak_running}/{s.max_concurrent}", style="bold")
        text.append("  Admission: ", style="dim")
        text.append(s.admission, style="bold")
        text.append("  Elapsed: ", style="dim")
        text.append(f"{s.elapsed:.1f}s", style="bold")
        text.append("    Ctrl+C to stop", style="dim")
        return Panel(text, title="[bold]Config[/bold]", border_style="dim")


def format_simple_status(state: SimulationState) -> str:
    """One-line status for non-TUI output."""
    s = state
    done = s.completed + s.failed
    return (
        f"[{done}/{s.submitted}] "
        f"P:{s.pending} R:{s.running} ✓:{s.completed} ✗:{s.failed} "
        f"({s.progress * 100:.0f}%) {s.elapsed:.1f}s"
    )
