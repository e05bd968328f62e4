"""Configuration classes for benchmarking."""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Optional

from ..search import Algorithm

DEFAULT_ALGORITHMS = ["jps", "astar", "dijkstra"]


@dataclass(frozen=True)
class MapRun:
    """One (map, algorithm) pair of a corpus run."""

    map_path: Path
    algorithm: Algorithm

    @property
    def run_id(self) -> str:
        """Generate a unique ID for this run."""
        return f"{self.algorithm.value}_{self.map_path.stem}"


@dataclass
class BenchmarkConfig:
    """Configuration for the entire benchmark suite."""

    # Maps
    maps_root: str = "maps"
    map_set: str = "bitgrid"
    map_pattern: str = "*.map"

    # Algorithms, in output order
    algorithms: list[str] = field(default_factory=lambda: list(DEFAULT_ALGORITHMS))

    # Scenario settings
    scenario_source: Literal["auto", "file", "random"] = "auto"
    scenario_suffix: str = ".scen"
    random_scenarios: int = 100
    seed: int = 42

    # Search settings
    corner_cutting: bool = False
    time_budget: Optional[float] = None  # seconds per search

    # Execution settings
    max_workers: int = 1  # > 1 runs scenarios of a map in a thread pool
    samples: int = 1  # timing repetitions per scenario

    # Verification
    verify_expected: bool = True
    tolerance: float = 1e-3

    def __post_init__(self):
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {self.max_workers}")
        if self.samples < 1:
            raise ValueError(f"samples must be at least 1, got {self.samples}")
        if self.time_budget is not None and self.time_budget <= 0:
            raise ValueError(f"time_budget must be positive, got {self.time_budget}")
        # Fail early on unknown names
        self.get_algorithms()

    @property
    def map_folder(self) -> Path:
        return Path(self.maps_root) / self.map_set

    def get_algorithms(self) -> list[Algorithm]:
        """Configured algorithms, parsed and de-duplicated in order."""
        result = []
        for name in self.algorithms:
            algorithm = name if isinstance(name, Algorithm) else Algorithm.from_name(name)
            if algorithm not in result:
                result.append(algorithm)
        return result

    def get_maps(self) -> list[Path]:
        """Get all matching maps below the map set folder, sorted."""
        folder = self.map_folder
        if not folder.is_dir():
            raise ValueError(f"Map folder does not exist: {folder}")

        return sorted(p for p in folder.rglob(self.map_pattern) if p.is_file())

    def generate_runs(self, algorithms: Optional[list[Algorithm]] = None) -> list[MapRun]:
        """Generate all (map, algorithm) runs, map-major."""
        algorithms = algorithms if algorithms is not None else self.get_algorithms()
        return [
            MapRun(map_path=map_path, algorithm=algorithm)
            for map_path in self.get_maps()
            for algorithm in algorithms
        ]

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "maps_root": self.maps_root,
            "map_set": self.map_set,
            "map_pattern": self.map_pattern,
            "algorithms": [a.value for a in self.get_algorithms()],
            "scenario_source": self.scenario_source,
            "scenario_suffix": self.scenario_suffix,
            "random_scenarios": self.random_scenarios,
            "seed": self.seed,
            "corner_cutting": self.corner_cutting,
            "time_budget": self.time_budget,
            "max_workers": self.max_workers,
            "samples": self.samples,
            "verify_expected": self.verify_expected,
            "tolerance": self.tolerance,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "BenchmarkConfig":
        """Create from dictionary."""
        return cls(
            maps_root=data.get("maps_root", "maps"),
            map_set=data.get("map_set", "bitgrid"),
            map_pattern=data.get("map_pattern", "*.map"),
            algorithms=list(data.get("algorithms", DEFAULT_ALGORITHMS)),
            scenario_source=data.get("scenario_source", "auto"),
            scenario_suffix=data.get("scenario_suffix", ".scen"),
            random_scenarios=data.get("random_scenarios", 100),
            seed=data.get("seed", 42),
            corner_cutting=data.get("corner_cutting", False),
            time_budget=data.get("time_budget"),
            max_workers=data.get("max_workers", 1),
            samples=data.get("samples", 1),
            verify_expected=data.get("verify_expected", True),
            tolerance=data.get("tolerance", 1e-3),
        )

    @classmethod
    def load(cls, path: str | Path) -> "BenchmarkConfig":
        """Load configuration from JSON file."""
        with open(path) as f:
            data = json.load(f)
        return cls.from_dict(data)
