"""Random DAG scenario - generated tasks with random wiring.

Each task gets a random priority and up to two dependencies on earlier
tasks, so the graph is always acyclic. Some tasks fail outright and some
overrun their deadline.
"""

from __future__ import annotations

import asyncio
import random
from typing import TYPE_CHECKING

from taskcue_sim.scenarios import Scenario, ScenarioInfo

if TYPE_CHECKING:
    import taskcue
    from taskcue_sim.display import SimulationState
    from taskcue_sim.runner import SimConfig


class RandomDagScenario(Scenario):
    """config.count tasks, random priorities 1-5, random dependencies."""

    @property
    def info(self) -> ScenarioInfo:
        return ScenarioInfo(
            name="random_dag",
            description="Generated tasks with random priorities and dependencies",
        )

    def setup(self, manager: taskcue.TaskManager, config: SimConfig, state: SimulationState) -> None:
        base = config.latency_ms / 1000.0 * config.time_scale
        jitter = config.latency_jitter

        for i in range(config.count):
            earlier = [f"task{n}" for n in range(1, i + 1)]
            deps = random.sample(earlier, k=min(len(earlier), random.randint(0, 2)))
            latency = base * random.uniform(1 - jitter, 1 + jitter) if base > 0 else 0.0

            # Deadline comfortably above latency, unless this one should overrun
            overrun = random.random() < config.timeout_rate
            if latency <= 0:
                timeout = 0
            elif overrun:
                timeout = latency * 0.5
            else:
                timeout = latency * 3 + 0.1
            fails = random.random() < config.error_rate

            manager.add_task(
                self._make_body(latency, fails),
                random.randint(1, 5),
                deps,
                timeout,
            )

    @staticmethod
    def _make_body(latency: float, fails: bool):
        async def body():
            await asyncio.sleep(latency)
            if fails:
                raise RuntimeError("Simulated error")
            return {"latency_ms": int(latency * 1000)}

        return body
