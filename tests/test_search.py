"""Tests for the search engine: Dijkstra, A* and Jump Point Search."""

import math

import numpy as np
import pytest

from gridbench.errors import InvalidQueryError, SearchTimeoutError
from gridbench.grid import Cell, OccupancyGrid
from gridbench.movement import CornerPolicy, octile, step_allowed
from gridbench.scenarios import RandomScenarios
from gridbench.search import Algorithm, interpolate_path, path_cost, search

ALGORITHMS = list(Algorithm)
POLICIES = list(CornerPolicy)
SQRT2 = math.sqrt(2)


def open_grid(width: int, height: int) -> OccupancyGrid:
    return OccupancyGrid.from_rows(["." * width] * height)


@pytest.fixture
def wall_grid():
    """5x5 grid with a wall in column 2 and an opening at row 0."""
    return OccupancyGrid.from_rows(
        [
            ".....",
            "..@..",
            "..@..",
            "..@..",
            "..@..",
        ]
    )


@pytest.fixture
def closed_grid():
    """Grid split in two by a full wall."""
    return OccupancyGrid.from_rows(
        [
            "..@..",
            "..@..",
            "..@..",
        ]
    )


def random_grid(seed: int, width: int = 24, height: int = 24, density: float = 0.3):
    rng = np.random.default_rng(seed)
    return OccupancyGrid.from_passable(rng.random((height, width)) >= density)


def assert_valid_path(grid, result, policy):
    """Check that a result's path is a legal walk whose cost matches."""
    steps = interpolate_path(result.path)
    assert steps[0] == result.start
    assert steps[-1] == result.goal
    for a, b in zip(steps, steps[1:]):
        dx, dy = b.x - a.x, b.y - a.y
        assert max(abs(dx), abs(dy)) == 1
        assert step_allowed(grid, a, dx, dy, policy)
    assert math.isclose(path_cost(steps), result.cost, rel_tol=1e-9)
    assert math.isclose(path_cost(result.path), result.cost, rel_tol=1e-9)


class TestAlgorithm:
    """Tests for the Algorithm enum."""

    def test_from_name(self):
        """Test parsing names case-insensitively."""
        assert Algorithm.from_name("jps") is Algorithm.JPS
        assert Algorithm.from_name("AStar") is Algorithm.ASTAR
        assert Algorithm.from_name(" dijkstra ") is Algorithm.DIJKSTRA

    def test_from_name_invalid(self):
        """Test that unknown names are rejected."""
        with pytest.raises(ValueError, match="Invalid algorithm"):
            Algorithm.from_name("bfs")


class TestMovement:
    """Tests for step rules and the heuristic."""

    def test_octile(self):
        """Test octile distance values."""
        assert octile(0, 0) == 0
        assert octile(3, 0) == 3
        assert math.isclose(octile(3, 3), 3 * SQRT2)
        assert math.isclose(octile(-4, 1), 3 + SQRT2)

    def test_corner_policies(self):
        """Test diagonal legality next to one blocked orthogonal cell."""
        grid = OccupancyGrid.from_rows(["..", "@."])

        assert not step_allowed(grid, Cell(0, 0), 1, 1, CornerPolicy.NO_CORNER_CUTTING)
        assert step_allowed(grid, Cell(0, 0), 1, 1, CornerPolicy.ALLOW_CORNER_CUTTING)

    def test_no_squeezing_between_two_blocks(self):
        """Test that a diagonal between two blocked cells is illegal under both policies."""
        grid = OccupancyGrid.from_rows([".@", "@."])

        for policy in POLICIES:
            assert not step_allowed(grid, Cell(0, 0), 1, 1, policy)

    def test_from_flag(self):
        assert CornerPolicy.from_flag(True) is CornerPolicy.ALLOW_CORNER_CUTTING
        assert CornerPolicy.from_flag(False) is CornerPolicy.NO_CORNER_CUTTING


class TestSearch:
    """Tests for the search() entry point."""

    @pytest.mark.parametrize("policy", POLICIES)
    @pytest.mark.parametrize("algorithm", ALGORITHMS)
    def test_open_grid_diagonal(self, algorithm, policy):
        """Test that the corner-to-corner cost on an open 4x4 grid is 3 * sqrt(2)."""
        grid = open_grid(4, 4)
        result = search(grid, (0, 0), (3, 3), algorithm, policy)

        assert math.isclose(result.cost, 3 * SQRT2, rel_tol=1e-9)
        assert result.reachable
        assert result.algorithm is algorithm
        assert_valid_path(grid, result, policy)

    @pytest.mark.parametrize("algorithm", ALGORITHMS)
    def test_wall_detour(self, wall_grid, algorithm):
        """Test the detour through the opening without corner cutting."""
        result = search(wall_grid, (0, 4), (4, 4), algorithm)

        assert math.isclose(result.cost, 8 + 2 * SQRT2, rel_tol=1e-9)
        assert Cell(2, 0) in interpolate_path(result.path)
        assert_valid_path(wall_grid, result, CornerPolicy.NO_CORNER_CUTTING)

    @pytest.mark.parametrize("algorithm", ALGORITHMS)
    def test_wall_detour_corner_cutting(self, wall_grid, algorithm):
        """Test that cutting the wall's corners shortens the detour."""
        policy = CornerPolicy.ALLOW_CORNER_CUTTING
        result = search(wall_grid, (0, 4), (4, 4), algorithm, policy)

        assert math.isclose(result.cost, 4 + 4 * SQRT2, rel_tol=1e-9)
        assert_valid_path(wall_grid, result, policy)

    @pytest.mark.parametrize(
        "policy,expected",
        [
            (CornerPolicy.NO_CORNER_CUTTING, 7 + SQRT2),
            (CornerPolicy.ALLOW_CORNER_CUTTING, 3 + 3 * SQRT2),
        ],
    )
    def test_small_wall_all_algorithms_agree(self, policy, expected):
        """Test the 4x4 wall detour cost for every algorithm."""
        grid = OccupancyGrid.from_rows(["....", "..@.", "..@.", "..@."])

        for algorithm in ALGORITHMS:
            result = search(grid, (0, 3), (3, 3), algorithm, policy)

            assert math.isclose(result.cost, expected, rel_tol=1e-9), algorithm
            assert Cell(2, 0) in interpolate_path(result.path)
            assert_valid_path(grid, result, policy)

    @pytest.mark.parametrize("policy", POLICIES)
    @pytest.mark.parametrize("algorithm", ALGORITHMS)
    def test_unreachable(self, closed_grid, algorithm, policy):
        """Test that a walled-off goal gives infinite cost and no path."""
        result = search(closed_grid, (0, 0), (4, 2), algorithm, policy)

        assert result.cost == math.inf
        assert not result.reachable
        assert result.path == ()

    @pytest.mark.parametrize("algorithm", ALGORITHMS)
    def test_start_equals_goal(self, algorithm):
        """Test the trivial query."""
        result = search(open_grid(3, 3), (1, 1), (1, 1), algorithm)

        assert result.cost == 0
        assert result.nodes_expanded == 0
        assert result.path == (Cell(1, 1),)

    @pytest.mark.parametrize(
        "start,goal",
        [
            ((-1, 0), (1, 1)),
            ((0, 0), (5, 0)),
            ((0, 0), (0, 3)),
            ((2, 0), (0, 0)),  # blocked start
            ((0, 0), (2, 2)),  # blocked goal
        ],
    )
    def test_invalid_queries(self, closed_grid, start, goal):
        """Test that out-of-bounds or blocked endpoints are rejected."""
        with pytest.raises(InvalidQueryError):
            search(closed_grid, start, goal, Algorithm.ASTAR)

    def test_time_budget_exceeded(self):
        """Test that a tiny time budget raises SearchTimeoutError."""
        grid = open_grid(200, 200)

        with pytest.raises(SearchTimeoutError):
            search(grid, (0, 0), (199, 199), Algorithm.DIJKSTRA, time_budget=1e-9)

    def test_generous_time_budget(self):
        """Test that a search within its budget completes normally."""
        result = search(open_grid(10, 10), (0, 0), (9, 9), Algorithm.ASTAR, time_budget=60)

        assert math.isclose(result.cost, 9 * SQRT2)

    def test_algorithm_by_name(self):
        """Test that algorithm names are accepted."""
        result = search(open_grid(3, 3), (0, 0), (2, 0), "jps")

        assert result.algorithm is Algorithm.JPS
        assert result.cost == 2

    def test_expansion_ordering(self):
        """Test that informed searches expand fewer nodes on an open grid."""
        grid = open_grid(20, 20)
        counts = {
            algorithm: search(grid, (0, 0), (19, 19), algorithm).nodes_expanded
            for algorithm in ALGORITHMS
        }

        assert counts[Algorithm.JPS] < counts[Algorithm.ASTAR] < counts[Algorithm.DIJKSTRA]

    @pytest.mark.parametrize("algorithm", ALGORITHMS)
    def test_deterministic(self, algorithm):
        """Test that repeated searches give identical paths and counts."""
        grid = random_grid(7)
        scenarios = list(RandomScenarios(grid, 10, seed=3))

        for scenario in scenarios:
            a = search(grid, scenario.start, scenario.goal, algorithm)
            b = search(grid, scenario.start, scenario.goal, algorithm)
            assert a.cost == b.cost
            assert a.path == b.path
            assert a.nodes_expanded == b.nodes_expanded

    def test_to_dict(self):
        """Test serialization of results."""
        data = search(open_grid(3, 3), (0, 0), (2, 2), Algorithm.ASTAR).to_dict()

        assert data["algorithm"] == "astar"
        assert data["start"] == [0, 0]
        assert data["path"][-1] == [2, 2]


class TestEquivalence:
    """Tests that all algorithms agree on optimal costs."""

    @pytest.mark.parametrize("policy", POLICIES)
    @pytest.mark.parametrize("seed", [1, 2, 3, 4, 5])
    def test_random_grids(self, seed, policy):
        """Test JPS, A* and Dijkstra on random obstacle maps."""
        grid = random_grid(seed)

        for scenario in RandomScenarios(grid, 25, seed=seed):
            results = {
                algorithm: search(grid, scenario.start, scenario.goal, algorithm, policy)
                for algorithm in ALGORITHMS
            }
            reference = results[Algorithm.DIJKSTRA].cost
            assert math.isfinite(reference)
            for algorithm, result in results.items():
                assert math.isclose(result.cost, reference, rel_tol=1e-9), algorithm
                assert_valid_path(grid, result, policy)

    @pytest.mark.parametrize("policy", POLICIES)
    def test_maze_like_grid(self, policy):
        """Test agreement on a grid of long corridors."""
        grid = OccupancyGrid.from_rows(
            [
                "..........@.........",
                ".@@@@@@@@.@.@@@@@@@.",
                ".@......@.@.@.....@.",
                ".@.@@@@.@...@.@@@.@.",
                ".@.@..@.@@@@@.@.@.@.",
                ".@.@..@.......@.@.@.",
                ".@.@@.@@@@@@@@@.@.@.",
                ".@..............@...",
                ".@@@@@@@@@@@@@@@@@@.",
                "....................",
            ]
        )

        for scenario in RandomScenarios(grid, 30, seed=11):
            costs = [
                search(grid, scenario.start, scenario.goal, algorithm, policy).cost
                for algorithm in ALGORITHMS
            ]
            assert all(math.isclose(c, costs[0], rel_tol=1e-9) for c in costs)


class TestPathHelpers:
    """Tests for interpolate_path and path_cost."""

    def test_interpolate(self):
        """Test expanding straight and diagonal segments."""
        path = [Cell(0, 0), Cell(2, 2), Cell(2, 4)]

        assert interpolate_path(path) == [
            Cell(0, 0),
            Cell(1, 1),
            Cell(2, 2),
            Cell(2, 3),
            Cell(2, 4),
        ]

    def test_interpolate_empty(self):
        assert interpolate_path([]) == []

    def test_interpolate_rejects_bent_segment(self):
        """Test that waypoints not on a line are rejected."""
        with pytest.raises(ValueError):
            interpolate_path([Cell(0, 0), Cell(1, 3)])

    def test_path_cost(self):
        """Test summing segment costs."""
        assert math.isclose(path_cost([Cell(0, 0), Cell(2, 2), Cell(2, 4)]), 2 * SQRT2 + 2)
        assert path_cost([Cell(1, 1)]) == 0
