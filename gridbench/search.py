"""Dijkstra, A* and Jump Point Search over a shared best-first core."""

import heapq
import logging
import math
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from .errors import InvalidQueryError, SearchTimeoutError
from .grid import Cell, OccupancyGrid
from .jps import jump_successors
from .movement import (
    DIAGONAL_EXTRA,
    CornerPolicy,
    octile_distance,
    step_successors,
)

logger = logging.getLogger(__name__)

# Expansions between deadline checks
TIMEOUT_CHECK_INTERVAL = 256


class Algorithm(Enum):
    """Search algorithms the engine can run."""

    JPS = "jps"
    ASTAR = "astar"
    DIJKSTRA = "dijkstra"

    @classmethod
    def from_name(cls, name: str) -> "Algorithm":
        """
        Parse an algorithm name such as "jps" or "AStar".

        Raises:
            ValueError: If the name is not a known algorithm
        """
        try:
            return cls(name.strip().lower())
        except ValueError:
            valid = ", ".join(a.value for a in cls)
            raise ValueError(f"Invalid algorithm: {name}. Must be one of: {valid}") from None


@dataclass(frozen=True)
class SearchResult:
    """Outcome of one shortest-path query."""

    algorithm: Algorithm
    start: Cell
    goal: Cell
    cost: float  # math.inf when the goal is unreachable
    nodes_expanded: int
    elapsed: float  # seconds
    path: tuple[Cell, ...] = ()  # waypoints from start to goal, empty if unreachable

    @property
    def reachable(self) -> bool:
        return math.isfinite(self.cost)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "algorithm": self.algorithm.value,
            "start": list(self.start),
            "goal": list(self.goal),
            "cost": self.cost if self.reachable else None,
            "nodes_expanded": self.nodes_expanded,
            "elapsed": self.elapsed,
            "path": [list(cell) for cell in self.path],
        }


def _octile_heuristic(grid: OccupancyGrid, goal: int):
    """Octile distance to ``goal`` on the padded flat layout."""
    stride = grid.stride
    goal_y, goal_x = divmod(goal, stride)

    def heuristic(index):
        y, x = divmod(index, stride)
        dx = abs(x - goal_x)
        dy = abs(y - goal_y)
        if dx < dy:
            return dy + DIAGONAL_EXTRA * dx
        return dx + DIAGONAL_EXTRA * dy

    return heuristic


def _zero_heuristic(index):
    return 0.0


def best_first(start: int, goal: int, successors, heuristic, deadline: Optional[float] = None):
    """
    Generic best-first search on flat indices.

    Open-list entries are ordered by ``(f, -g, -seq)``: lowest f first, then
    the deeper node, then the most recently discovered one. Stale entries are
    dropped on pop (lazy deletion) and closed nodes are never re-expanded.

    Args:
        start: Start index
        goal: Goal index
        successors: Callable ``(index, parent) -> [(neighbour, cost), ...]``
        heuristic: Callable ``index -> float``, consistent
        deadline: Optional ``time.perf_counter()`` value to stop at

    Returns:
        (cost, nodes_expanded, indices) where indices run from start to goal,
        or ``(math.inf, nodes_expanded, [])`` if the goal is unreachable

    Raises:
        SearchTimeoutError: If the deadline passes
    """
    g_score = {start: 0.0}
    parents = {start: None}
    closed = set()
    sequence = 0
    open_list = [(heuristic(start), -0.0, 0, start)]
    expanded = 0

    while open_list:
        _, neg_g, _, node = heapq.heappop(open_list)
        if node in closed:
            continue

        if node == goal:
            path = [node]
            while parents[path[-1]] is not None:
                path.append(parents[path[-1]])
            path.reverse()
            return -neg_g, expanded, path

        closed.add(node)
        expanded += 1
        if (
            deadline is not None
            and expanded % TIMEOUT_CHECK_INTERVAL == 0
            and time.perf_counter() > deadline
        ):
            raise SearchTimeoutError(f"Search exceeded its time budget after {expanded} expansions")

        node_g = -neg_g
        for neighbour, step_cost in successors(node, parents[node]):
            if neighbour in closed:
                continue
            tentative = node_g + step_cost
            if tentative < g_score.get(neighbour, math.inf):
                g_score[neighbour] = tentative
                parents[neighbour] = node
                sequence += 1
                heapq.heappush(
                    open_list,
                    (tentative + heuristic(neighbour), -tentative, -sequence, neighbour),
                )

    return math.inf, expanded, []


def dijkstra(grid: OccupancyGrid, start: int, goal: int, policy: CornerPolicy, deadline=None):
    """Uniform-cost search over single steps."""
    return best_first(start, goal, step_successors(grid, policy), _zero_heuristic, deadline)


def astar(grid: OccupancyGrid, start: int, goal: int, policy: CornerPolicy, deadline=None):
    """A* over single steps with the octile heuristic."""
    return best_first(
        start, goal, step_successors(grid, policy), _octile_heuristic(grid, goal), deadline
    )


def jps(grid: OccupancyGrid, start: int, goal: int, policy: CornerPolicy, deadline=None):
    """Jump Point Search with the octile heuristic."""
    return best_first(
        start, goal, jump_successors(grid, goal, policy), _octile_heuristic(grid, goal), deadline
    )


SEARCH_FUNCTIONS = {
    Algorithm.DIJKSTRA: dijkstra,
    Algorithm.ASTAR: astar,
    Algorithm.JPS: jps,
}


def _check_cell(grid: OccupancyGrid, cell, role: str) -> Cell:
    x, y = int(cell[0]), int(cell[1])
    if not grid.in_bounds(x, y):
        raise InvalidQueryError(f"{role} ({x}, {y}) is outside the {grid.width}x{grid.height} grid")
    if not grid.is_passable(x, y):
        raise InvalidQueryError(f"{role} ({x}, {y}) is blocked")
    return Cell(x, y)


def search(
    grid: OccupancyGrid,
    start,
    goal,
    algorithm: Algorithm | str = Algorithm.ASTAR,
    policy: CornerPolicy = CornerPolicy.NO_CORNER_CUTTING,
    time_budget: Optional[float] = None,
) -> SearchResult:
    """
    Find a shortest 8-directional path from start to goal.

    Args:
        grid: The grid to search
        start: (x, y) start cell
        goal: (x, y) goal cell
        algorithm: Algorithm or its name
        policy: Corner-cutting rule for diagonal steps
        time_budget: Optional limit in seconds

    Returns:
        SearchResult; cost is math.inf if the goal is unreachable

    Raises:
        InvalidQueryError: If start or goal is out of bounds or blocked
        SearchTimeoutError: If time_budget is exceeded
    """
    if isinstance(algorithm, str):
        algorithm = Algorithm.from_name(algorithm)
    start = _check_cell(grid, start, "start")
    goal = _check_cell(grid, goal, "goal")

    started = time.perf_counter()
    if start == goal:
        return SearchResult(algorithm, start, goal, 0.0, 0, time.perf_counter() - started, (start,))

    deadline = started + time_budget if time_budget is not None else None
    cost, expanded, indices = SEARCH_FUNCTIONS[algorithm](
        grid, grid.index(*start), grid.index(*goal), policy, deadline
    )
    elapsed = time.perf_counter() - started

    path = tuple(grid.cell(i) for i in indices)
    return SearchResult(algorithm, start, goal, cost, expanded, elapsed, path)


def interpolate_path(path: Sequence) -> list[Cell]:
    """
    Expand waypoints into unit steps.

    Consecutive waypoints must lie on a common row, column or diagonal, as
    jump points do.
    """
    if not path:
        return []

    result = [Cell(*path[0])]
    for a, b in zip(path, path[1:]):
        dx = b[0] - a[0]
        dy = b[1] - a[1]
        if dx and dy and abs(dx) != abs(dy):
            raise ValueError(f"Waypoints {tuple(a)} and {tuple(b)} are not on a line")
        sx = (dx > 0) - (dx < 0)
        sy = (dy > 0) - (dy < 0)
        for i in range(1, max(abs(dx), abs(dy)) + 1):
            result.append(Cell(a[0] + i * sx, a[1] + i * sy))
    return result


def path_cost(path: Sequence) -> float:
    """Sum of octile segment lengths along a waypoint path."""
    return math.fsum(octile_distance(a, b) for a, b in zip(path, path[1:]))
