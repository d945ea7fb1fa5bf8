"""Built-in scenarios for taskcue-sim.

Scenarios define workloads: the tasks, their priorities, dependencies and
deadlines, and what each task body does.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import taskcue
    from taskcue_sim.display import SimulationState
    from taskcue_sim.runner import SimConfig


@dataclass
class ScenarioInfo:
    """Metadata about a scenario."""
    name: str
    description: str


class Scenario(ABC):
    """Base class for simulation scenarios."""

    @property
    @abstractmethod
    def info(self) -> ScenarioInfo:
        """Return scenario metadata."""
        ...

    @abstractmethod
    def setup(self, manager: "taskcue.TaskManager", config: "SimConfig", state: "SimulationState") -> None:
        """Register the scenario's tasks on the manager.

        Args:
            manager: The TaskManager to fill
            config: Simulation configuration (scale, error rate, etc.)
            state: State object task bodies may report events to
        """
        ...


from taskcue_sim.scenarios.random_dag import RandomDagScenario
from taskcue_sim.scenarios.reference import ReferenceScenario

# Registry of built-in scenarios
SCENARIOS: dict[str, type[Scenario]] = {
    "reference": ReferenceScenario,
    "random_dag": RandomDagScenario,
}


def get_scenario(name: str) -> Scenario:
    """Get a scenario instance by name."""
    if name not in SCENARIOS:
        available = ", ".join(SCENARIOS.keys())
        raise ValueError(f"Unknown scenario: {name}. Available: {available}")
    return SCENARIOS[name]()


def list_scenarios() -> list[ScenarioInfo]:
    """List all available scenarios."""
    return [cls().info for cls in SCENARIOS.values()]
