"""Reference scenario - seven tasks with a small dependency graph.

    task1 ─► task2 ─┐
                    ├─► task4
    task3 ──────────┘
    task5 (fails) ─► task7
    task6

task5 always fails; task7 still runs because a failed dependency counts
as finished.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from taskcue_sim.scenarios import Scenario, ScenarioInfo

if TYPE_CHECKING:
    import taskcue
    from taskcue_sim.display import SimulationState
    from taskcue_sim.runner import SimConfig

# (seconds, priority, dependencies, timeout, fails)
REFERENCE_TASKS: list[tuple[float, int, list[str], float, bool]] = [
    (2.0, 2, [], 2.5, False),
    (1.0, 1, ["task1"], 2.0, False),
    (0.5, 3, [], 1.0, False),
    (3.0, 1, ["task2", "task3"], 3.5, False),
    (1.5, 2, [], 2.0, True),
    (1.0, 1, [], 1.5, False),
    (2.5, 2, ["task5"], 3.0, False),
]

EXPECTED_STATUS = {
    "task1": "completed",
    "task2": "completed",
    "task3": "completed",
    "task4": "completed",
    "task5": "failed",
    "task6": "completed",
    "task7": "completed",
}


class ReferenceScenario(Scenario):
    """The seven-task walkthrough, scaled by config.time_scale."""

    @property
    def info(self) -> ScenarioInfo:
        return ScenarioInfo(
            name="reference",
            description="Seven tasks, one failing dependency (default)",
        )

    def setup(self, manager: taskcue.TaskManager, config: SimConfig, state: SimulationState) -> None:
        scale = config.time_scale
        for index, (seconds, priority, deps, timeout, fails) in enumerate(REFERENCE_TASKS, start=1):
            manager.add_task(
                self._make_body(f"task{index}", seconds * scale, fails, state),
                priority,
                deps,
                timeout * scale,
            )

    @staticmethod
    def _make_body(task_id: str, seconds: float, fails: bool, state: SimulationState):
        async def body():
            state.add_event("started", task_id, f"{seconds:.2f}s of work")
            await asyncio.sleep(seconds)
            if fails:
                raise RuntimeError(f"Error in {task_id}")
            state.add_event("finished", task_id)
            return task_id

        return body
