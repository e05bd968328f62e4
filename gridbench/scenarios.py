"""Scenario sources: MovingAI .scen files and seeded random sampling."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Literal, Optional

import numpy as np

from .errors import FormatError
from .grid import Cell, OccupancyGrid

logger = logging.getLogger(__name__)

SCENARIO_SUFFIX = ".scen"
SCENARIO_VERSIONS = ("1", "1.0")
SCENARIO_FIELDS = 9

ScenarioSourceKind = Literal["auto", "file", "random"]


@dataclass(frozen=True)
class Scenario:
    """One start/goal query."""

    start: Cell
    goal: Cell
    expected_cost: Optional[float] = None  # optimal length from the scenario file
    bucket: Optional[int] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "start": list(self.start),
            "goal": list(self.goal),
            "expected_cost": self.expected_cost,
            "bucket": self.bucket,
        }


def scenario_path_for(map_path: str | Path, suffix: str = SCENARIO_SUFFIX) -> Path:
    """Scenario file that belongs to a map, e.g. arena.map -> arena.map.scen."""
    map_path = Path(map_path)
    return map_path.with_name(map_path.name + suffix)


class ScenarioFile:
    """
    Scenarios read from a MovingAI ``.scen`` file.

    The first line must be ``version 1`` (or ``1.0``). Every other non-blank
    line holds nine whitespace-separated fields::

        bucket map width height start_x start_y goal_x goal_y optimal_length

    The file is re-read on each iteration, so the source is restartable.
    Coordinates are not bounds-checked here; the search engine rejects
    out-of-bounds queries.
    """

    def __init__(self, path: str | Path, grid: OccupancyGrid):
        self.path = Path(path)
        self.grid = grid

    def _parse_line(self, line: str, line_no: int) -> Scenario:
        fields = line.split()
        if len(fields) != SCENARIO_FIELDS:
            raise FormatError(
                f"Expected {SCENARIO_FIELDS} fields, found {len(fields)}", self.path, line_no
            )

        bucket, _map_name, width, height, sx, sy, gx, gy, length = fields
        try:
            bucket = int(bucket)
            width, height = int(width), int(height)
            start = Cell(int(sx), int(sy))
            goal = Cell(int(gx), int(gy))
            expected = float(length)
        except ValueError as e:
            raise FormatError(f"Non-numeric field: {e}", self.path, line_no) from None

        if width != self.grid.width or height != self.grid.height:
            raise FormatError(
                f"Scenario is for a {width}x{height} map, "
                f"grid is {self.grid.width}x{self.grid.height}",
                self.path,
                line_no,
            )

        return Scenario(start=start, goal=goal, expected_cost=expected, bucket=bucket)

    def _decoded_lines(self, f) -> Iterator[tuple[int, str]]:
        for line_no, raw in enumerate(f, start=1):
            try:
                yield line_no, raw.decode("ascii")
            except UnicodeDecodeError as e:
                raise FormatError(
                    f"Scenario file is not ASCII text (byte {e.start})", self.path, line_no
                ) from None

    def __iter__(self) -> Iterator[Scenario]:
        with open(self.path, "rb") as f:
            lines = self._decoded_lines(f)
            first = next(lines, None)
            if first is None:
                raise FormatError("Empty scenario file", self.path, 1)
            header = first[1]
            parts = header.split()
            if len(parts) != 2 or parts[0] != "version" or parts[1] not in SCENARIO_VERSIONS:
                raise FormatError(f"Invalid scenario header: {header.strip()!r}", self.path, 1)

            for line_no, line in lines:
                if not line.strip():
                    continue
                yield self._parse_line(line, line_no)

    def __repr__(self) -> str:
        return f"ScenarioFile({str(self.path)!r})"


class RandomScenarios:
    """
    Seeded random start/goal pairs.

    Pairs are drawn from passable cells sharing a 4-connected component, so
    every generated query is reachable. Each iteration reseeds the generator
    and yields the same sequence.
    """

    def __init__(self, grid: OccupancyGrid, count: int, seed: int = 42):
        if count < 0:
            raise ValueError(f"count must be non-negative, got {count}")
        self.grid = grid
        self.count = count
        self.seed = seed
        self._labels = grid.components()
        self._passable = np.argwhere(self._labels >= 0)

    def __iter__(self) -> Iterator[Scenario]:
        if len(self._passable) == 0:
            return

        labels = self._labels
        rng = np.random.default_rng(self.seed)
        members = {}

        for _ in range(self.count):
            sy, sx = self._passable[rng.integers(len(self._passable))]
            label = int(labels[sy, sx])
            if label not in members:
                members[label] = np.argwhere(labels == label)
            component = members[label]
            gy, gx = component[rng.integers(len(component))]
            yield Scenario(start=Cell(int(sx), int(sy)), goal=Cell(int(gx), int(gy)))

    def __repr__(self) -> str:
        return f"RandomScenarios(count={self.count}, seed={self.seed})"


def open_scenarios(
    map_path: str | Path,
    grid: OccupancyGrid,
    source: ScenarioSourceKind = "auto",
    count: int = 100,
    seed: int = 42,
    suffix: str = SCENARIO_SUFFIX,
):
    """
    Pick the scenario source for a map.

    Args:
        map_path: Path of the map the grid was loaded from
        grid: The loaded grid
        source: "file" requires the scenario file, "random" always samples,
            "auto" uses the file when it exists and samples otherwise
        count: Number of random scenarios
        seed: Random seed
        suffix: Appended to the map file name to locate the scenario file

    Returns:
        A ScenarioFile or RandomScenarios

    Raises:
        FileNotFoundError: If source is "file" and the scenario file is missing
        ValueError: On an unknown source kind
    """
    if source not in ("auto", "file", "random"):
        raise ValueError(f"Invalid scenario source: {source}. Must be one of: auto, file, random")

    path = scenario_path_for(map_path, suffix)

    if source == "random":
        return RandomScenarios(grid, count, seed)

    if path.exists():
        return ScenarioFile(path, grid)

    if source == "file":
        raise FileNotFoundError(f"Scenario file not found: {path}")

    logger.info(f"No scenario file for {map_path}, sampling {count} random scenarios")
    return RandomScenarios(grid, count, seed)
