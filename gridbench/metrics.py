"""Per-scenario and per-map benchmark results."""

import math
import statistics
from dataclasses import dataclass, field
from typing import Literal, Optional

from .scenarios import Scenario

ScenarioStatus = Literal["solved", "unreachable", "skipped"]


@dataclass
class ScenarioOutcome:
    """Result of running one scenario (possibly several timing samples)."""

    scenario: Scenario
    status: ScenarioStatus
    cost: Optional[float] = None  # None unless solved
    nodes_expanded: int = 0
    elapsed: list[float] = field(default_factory=list)  # seconds, one per sample
    mismatch: bool = False  # solved cost disagrees with the expected cost
    error: Optional[str] = None

    @property
    def mean_elapsed(self) -> float:
        """Mean search time in seconds over all samples."""
        return statistics.mean(self.elapsed) if self.elapsed else 0

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "scenario": self.scenario.to_dict(),
            "status": self.status,
            "cost": self.cost,
            "nodes_expanded": self.nodes_expanded,
            "elapsed": self.elapsed,
            "mismatch": self.mismatch,
            "error": self.error,
        }


@dataclass
class MapResult:
    """All scenarios of one map run with one algorithm."""

    map_path: str
    algorithm: str
    corner_cutting: bool = False

    # Counts
    scenarios: int = 0
    solved: int = 0
    unreachable: int = 0
    skipped: int = 0
    mismatched: int = 0

    # Totals over solved scenarios
    total_cost: float = 0.0
    nodes_expanded: int = 0

    # History
    outcomes: list[ScenarioOutcome] = field(default_factory=list)

    @classmethod
    def from_outcomes(
        cls,
        map_path: str,
        algorithm: str,
        outcomes: list[ScenarioOutcome],
        corner_cutting: bool = False,
    ) -> "MapResult":
        """Summarize outcomes given in scenario order."""
        solved = [o for o in outcomes if o.status == "solved"]
        return cls(
            map_path=str(map_path),
            algorithm=algorithm,
            corner_cutting=corner_cutting,
            scenarios=len(outcomes),
            solved=len(solved),
            unreachable=sum(1 for o in outcomes if o.status == "unreachable"),
            skipped=sum(1 for o in outcomes if o.status == "skipped"),
            mismatched=sum(1 for o in solved if o.mismatch),
            total_cost=math.fsum(o.cost for o in solved),
            nodes_expanded=sum(o.nodes_expanded for o in outcomes),
            outcomes=list(outcomes),
        )

    @property
    def mean_elapsed_ms(self) -> float:
        """Mean per-scenario search time in milliseconds (searched scenarios only)."""
        times = [o.mean_elapsed for o in self.outcomes if o.status != "skipped"]
        return statistics.mean(times) * 1000 if times else 0

    @property
    def total_elapsed(self) -> float:
        """Sum of mean per-scenario search times, in seconds."""
        return math.fsum(o.mean_elapsed for o in self.outcomes)

    @property
    def solve_rate(self) -> float:
        """Percentage of scenarios solved."""
        return (self.solved / self.scenarios * 100) if self.scenarios > 0 else 0

    def result_line(self) -> str:
        """One whitespace-separated line; column 2 is the total path cost."""
        return (
            f"{self.algorithm} {self.total_cost:.6f} {self.nodes_expanded} "
            f"{self.mean_elapsed_ms:.3f} {self.solved}/{self.scenarios}"
        )

    def to_dict(self, include_outcomes: bool = False) -> dict:
        """Convert to dictionary for serialization."""
        data = {
            "map_path": self.map_path,
            "algorithm": self.algorithm,
            "corner_cutting": self.corner_cutting,
            "scenarios": self.scenarios,
            "solved": self.solved,
            "unreachable": self.unreachable,
            "skipped": self.skipped,
            "mismatched": self.mismatched,
            "total_cost": self.total_cost,
            "nodes_expanded": self.nodes_expanded,
            "mean_elapsed_ms": round(self.mean_elapsed_ms, 3),
        }
        if include_outcomes:
            data["outcomes"] = [o.to_dict() for o in self.outcomes]
        return data
