"""Simulation runner for taskcue-sim.

Builds a TaskManager from a scenario, runs it, and mirrors its status into
a SimulationState that any display can render.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

import taskcue
from taskcue_sim.display import TaskRow

if TYPE_CHECKING:
    from taskcue_sim.display import SimulationState


@dataclass
class SimConfig:
    """Configuration for a simulation run."""

    scenario: str = "reference"
    max_concurrent: int = 2
    poll_interval: float = 0.1
    admission: str = "concurrent"
    cancel_on_timeout: bool = False
    time_scale: float = 1.0  # multiply every task latency
    count: int = 12  # random_dag only
    latency_ms: int = 300
    latency_jitter: float = 0.5
    error_rate: float = 0.1
    timeout_rate: float = 0.1  # chance a task overruns its deadline
    monitor_interval: float = 0.1


class SimulationRunner:
    """Runs a scenario and updates state for display.

    Usage:
        config = SimConfig(scenario="reference")
        state = SimulationState()
        runner = SimulationRunner(config, state)
        await runner.run()
    """

    def __init__(self, config: SimConfig, state: "SimulationState"):
        self.config = config
        self.state = state
        self.manager: taskcue.TaskManager | None = None

    def build(self) -> taskcue.TaskManager:
        """Create the manager and register the scenario's tasks."""
        from taskcue_sim.scenarios import get_scenario

        scenario = get_scenario(self.config.scenario)
        manager = taskcue.TaskManager(
            config=taskcue.SchedulerConfig(
                max_concurrent=self.config.max_concurrent,
                poll_interval=self.config.poll_interval,
                admission=self.config.admission,
                cancel_on_timeout=self.config.cancel_on_timeout,
            )
        )
        scenario.setup(manager, self.config, self.state)

        self.state.scenario_name = scenario.info.name
        self.state.max_concurrent = self.config.max_concurrent
        self.state.admission = self.config.admission
        for record in manager.registry.records():
            self.state.tasks[record.id] = TaskRow(
                id=record.id,
                priority=record.priority,
                dependencies=sorted(record.dependencies),
                timeout=record.timeout,
            )

        @manager.on_start
        def on_start(task):
            self.state.add_event("running", task.id, f"priority {task.priority}")

        @manager.on_complete
        def on_complete(task, result, duration):
            row = self.state.tasks[task.id]
            row.duration = duration
            self.state.add_event("completed", task.id, f"{duration:.2f}s")

        @manager.on_failure
        def on_failure(task, error):
            row = self.state.tasks[task.id]
            row.duration = task.duration
            row.detail = str(task.error or error)
            self.state.add_event("failed", task.id, str(error))

        self.manager = manager
        return manager

    async def run(self) -> None:
        """Run the scenario to completion."""
        manager = self.manager or self.build()
        self.state.start_time = time.time()

        execution = asyncio.create_task(manager.execute_tasks())
        try:
            async for status in manager.reporter.watch(self.config.monitor_interval):
                self._update_state(status)
                if execution.done():
                    break
            await execution
        finally:
            if not execution.done():
                execution.cancel()
                try:
                    await execution
                except asyncio.CancelledError:
                    pass
            self._update_state(manager.get_status())

    def _update_state(self, status: dict[str, str]) -> None:
        self.state.elapsed = time.time() - self.state.start_time
        self.state.apply_status(status)
        if self.manager is not None:
            self.state.peak_running = self.manager.scheduler.peak_running
