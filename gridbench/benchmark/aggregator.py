"""Aggregates per-map results into per-algorithm totals and reports."""

import logging
import math
import statistics
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

from ..metrics import MapResult

logger = logging.getLogger(__name__)


@dataclass
class AlgorithmTotals:
    """Aggregated statistics for a single algorithm across maps."""

    algorithm: str
    num_maps: int = 0
    num_failed: int = 0

    # Scenario counts
    scenarios: int = 0
    solved: int = 0
    unreachable: int = 0
    skipped: int = 0
    mismatched: int = 0

    # Per-map values
    map_costs: list[float] = field(default_factory=list)
    nodes_expanded: list[int] = field(default_factory=list)
    mean_elapsed_ms: list[float] = field(default_factory=list)

    failed_maps: list[str] = field(default_factory=list)

    def add_result(self, result: MapResult) -> None:
        """Add a map result to the statistics."""
        self.num_maps += 1
        self.scenarios += result.scenarios
        self.solved += result.solved
        self.unreachable += result.unreachable
        self.skipped += result.skipped
        self.mismatched += result.mismatched
        self.map_costs.append(result.total_cost)
        self.nodes_expanded.append(result.nodes_expanded)
        self.mean_elapsed_ms.append(result.mean_elapsed_ms)

    def add_failure(self, map_path: str) -> None:
        """Record a map that could not be run."""
        self.num_failed += 1
        self.failed_maps.append(map_path)

    @property
    def total_cost(self) -> float:
        """Sum of per-map total costs."""
        return math.fsum(self.map_costs)

    @property
    def total_nodes_expanded(self) -> int:
        return sum(self.nodes_expanded)

    @property
    def mean_map_cost(self) -> float:
        """Mean total cost per map."""
        return statistics.mean(self.map_costs) if self.map_costs else 0

    @property
    def std_map_cost(self) -> float:
        """Standard deviation of per-map total cost."""
        return statistics.stdev(self.map_costs) if len(self.map_costs) > 1 else 0

    @property
    def mean_time_ms(self) -> float:
        """Mean of per-map mean search times."""
        return statistics.mean(self.mean_elapsed_ms) if self.mean_elapsed_ms else 0

    def total_line(self) -> str:
        """``<algorithm> <total>`` line of a corpus run."""
        return f"{self.algorithm} {self.total_cost:.6f}"

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "algorithm": self.algorithm,
            "num_maps": self.num_maps,
            "num_failed": self.num_failed,
            "scenarios": self.scenarios,
            "solved": self.solved,
            "unreachable": self.unreachable,
            "skipped": self.skipped,
            "mismatched": self.mismatched,
            "total_cost": self.total_cost,
            "mean_map_cost": round(self.mean_map_cost, 6),
            "std_map_cost": round(self.std_map_cost, 6),
            "total_nodes_expanded": self.total_nodes_expanded,
            "mean_time_ms": round(self.mean_time_ms, 3),
            "failed_maps": self.failed_maps,
        }


class ResultsAggregator:
    """
    Explicit accumulator for a corpus run.

    Provides:
    - Per-algorithm totals in requested order
    - Per-map results
    - Cross-algorithm cost agreement checks
    - Report generation
    """

    def __init__(self, algorithms: Optional[list[str]] = None):
        """
        Initialize the aggregator.

        Args:
            algorithms: Algorithm names in output order; others are appended
                as they are first seen
        """
        self.results: list[MapResult] = []
        self.algorithm_stats: dict[str, AlgorithmTotals] = {}
        for name in algorithms or []:
            self._stats_for(name)

    def _stats_for(self, algorithm: str) -> AlgorithmTotals:
        if algorithm not in self.algorithm_stats:
            self.algorithm_stats[algorithm] = AlgorithmTotals(algorithm=algorithm)
        return self.algorithm_stats[algorithm]

    def add_result(self, result: MapResult) -> None:
        """
        Add a single map result to the aggregator.

        Args:
            result: Result of one (map, algorithm) run
        """
        self.results.append(result)
        self._stats_for(result.algorithm).add_result(result)

    def add_failure(self, map_path: str, algorithm: str, error: str = "") -> None:
        """Record a (map, algorithm) run that failed to load."""
        self._stats_for(algorithm).add_failure(map_path)
        logger.debug(f"Recorded failure for {algorithm} on {map_path}: {error}")

    @property
    def num_failed(self) -> int:
        return sum(stats.num_failed for stats in self.algorithm_stats.values())

    def total_lines(self) -> list[str]:
        """One ``<algorithm> <total>`` line per algorithm, in order."""
        return [stats.total_line() for stats in self.algorithm_stats.values()]

    def get_per_map_costs(self) -> dict[str, dict[str, float]]:
        """Map path -> algorithm -> total cost."""
        per_map: dict[str, dict[str, float]] = {}
        for result in self.results:
            per_map.setdefault(result.map_path, {})[result.algorithm] = result.total_cost
        return per_map

    def get_cost_disagreements(self, rel_tol: float = 1e-9) -> list[dict]:
        """
        Find maps where algorithms report different total costs.

        Returns:
            List of {"map_path", "costs"} for each disagreeing map
        """
        disagreements = []
        for map_path, costs in self.get_per_map_costs().items():
            values = list(costs.values())
            if any(not math.isclose(v, values[0], rel_tol=rel_tol) for v in values[1:]):
                disagreements.append({"map_path": map_path, "costs": costs})
        return disagreements

    def generate_report(self) -> dict:
        """
        Generate a comprehensive benchmark report.

        Returns:
            Dictionary containing all aggregated statistics
        """
        return {
            "generated_at": datetime.now().isoformat(),
            "total_runs": len(self.results) + self.num_failed,
            "num_maps": len({r.map_path for r in self.results}),
            "num_failed": self.num_failed,
            "algorithms": [stats.to_dict() for stats in self.algorithm_stats.values()],
            "cost_disagreements": self.get_cost_disagreements(),
            "per_map_results": [r.to_dict() for r in self.results],
        }

    def print_summary(self) -> None:
        """Print a summary of the benchmark results to console."""
        print("\n" + "=" * 70)
        print("BENCHMARK RESULTS SUMMARY")
        print("=" * 70)

        print(f"\nMaps run: {len({r.map_path for r in self.results})}")
        print(f"Failed runs: {self.num_failed}")

        print("\n" + "-" * 70)
        print("ALGORITHMS")
        print("-" * 70)
        print(f"{'Algorithm':<12} {'Total cost':<18} {'Solved':<16} {'Expanded':<14} {'ms/query':<10}")
        print("-" * 70)

        for stats in self.algorithm_stats.values():
            solved_str = f"{stats.solved}/{stats.scenarios}"
            print(
                f"{stats.algorithm:<12} {stats.total_cost:<18.6f} {solved_str:<16} "
                f"{stats.total_nodes_expanded:<14} {stats.mean_time_ms:<10.3f}"
            )

        disagreements = self.get_cost_disagreements()
        if disagreements:
            print("\n" + "-" * 70)
            print("COST DISAGREEMENTS")
            print("-" * 70)
            for entry in disagreements:
                costs = ", ".join(f"{alg}={cost:.6f}" for alg, cost in entry["costs"].items())
                print(f"  {Path(entry['map_path']).name:<30} {costs}")

        print("\n" + "=" * 70)
