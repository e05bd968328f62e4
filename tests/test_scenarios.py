"""Tests for scenario sources."""

import pytest
from pathlib import Path
import tempfile

from gridbench.errors import FormatError
from gridbench.grid import Cell, OccupancyGrid
from gridbench.scenarios import (
    RandomScenarios,
    Scenario,
    ScenarioFile,
    open_scenarios,
    scenario_path_for,
)


SCEN_TEXT = (
    "version 1\n"
    "0\tarena.map\t4\t3\t0\t0\t3\t2\t3.82842712\n"
    "\n"
    "1\tarena.map\t4\t3\t3\t0\t0\t0\t3\n"
)


@pytest.fixture
def grid():
    """Open 4x3 grid."""
    return OccupancyGrid.from_rows(["....", "....", "...."])


@pytest.fixture
def temp_dir():
    """Create a temporary directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


def write_scen(directory: Path, text: str) -> Path:
    path = directory / "arena.map.scen"
    path.write_text(text)
    return path


class TestScenarioFile:
    """Tests for MovingAI scenario files."""

    def test_parse(self, temp_dir, grid):
        """Test reading scenarios with tabs and blank lines."""
        scenarios = list(ScenarioFile(write_scen(temp_dir, SCEN_TEXT), grid))

        assert scenarios == [
            Scenario(start=Cell(0, 0), goal=Cell(3, 2), expected_cost=3.82842712, bucket=0),
            Scenario(start=Cell(3, 0), goal=Cell(0, 0), expected_cost=3.0, bucket=1),
        ]

    def test_restartable(self, temp_dir, grid):
        """Test that iterating twice yields the same sequence."""
        source = ScenarioFile(write_scen(temp_dir, SCEN_TEXT), grid)

        assert list(source) == list(source)

    def test_version_1_0(self, temp_dir, grid):
        """Test that 'version 1.0' is accepted."""
        path = write_scen(temp_dir, SCEN_TEXT.replace("version 1", "version 1.0"))

        assert len(list(ScenarioFile(path, grid))) == 2

    @pytest.mark.parametrize("header", ["version 2\n", "1\n", "", "versions 1\n"])
    def test_bad_header(self, temp_dir, grid, header):
        """Test that a missing or wrong version line is a format error."""
        path = write_scen(temp_dir, header + "0 a.map 4 3 0 0 1 1 1.41421356\n")

        with pytest.raises(FormatError) as exc_info:
            list(ScenarioFile(path, grid))
        assert exc_info.value.line == 1

    def test_empty_file(self, temp_dir, grid):
        """Test that an empty file is a format error."""
        with pytest.raises(FormatError):
            list(ScenarioFile(write_scen(temp_dir, ""), grid))

    def test_wrong_field_count(self, temp_dir, grid):
        """Test that a short line is reported with its line number."""
        path = write_scen(temp_dir, "version 1\n0 a.map 4 3 0 0 1 1 1\n0 a.map 4 3 0 0 1\n")

        with pytest.raises(FormatError) as exc_info:
            list(ScenarioFile(path, grid))
        assert exc_info.value.line == 3

    def test_non_numeric_field(self, temp_dir, grid):
        """Test that a non-numeric coordinate is a format error."""
        path = write_scen(temp_dir, "version 1\n0 a.map 4 3 zero 0 1 1 1.4\n")

        with pytest.raises(FormatError) as exc_info:
            list(ScenarioFile(path, grid))
        assert exc_info.value.line == 2

    def test_dimension_mismatch(self, temp_dir, grid):
        """Test that scenarios for a different map size are rejected."""
        path = write_scen(temp_dir, "version 1\n0 a.map 5 3 0 0 1 1 1.4\n")

        with pytest.raises(FormatError, match="5x3"):
            list(ScenarioFile(path, grid))

    def test_out_of_bounds_is_not_a_format_error(self, temp_dir, grid):
        """Test that out-of-range coordinates are left for the search to reject."""
        path = write_scen(temp_dir, "version 1\n0 a.map 4 3 9 9 0 0 1\n")

        scenarios = list(ScenarioFile(path, grid))

        assert scenarios[0].start == Cell(9, 9)

    def test_non_ascii_line(self, temp_dir, grid):
        """Test that undecodable bytes are a format error on their line."""
        path = temp_dir / "a.map.scen"
        path.write_bytes(b"version 1\n0 a.map 4 3 0 0 1 1 1.4\n0 a.map 4 3 0 0 1 \xff 1\n")

        with pytest.raises(FormatError) as exc_info:
            list(ScenarioFile(path, grid))
        assert exc_info.value.line == 3

    def test_missing_file(self, temp_dir, grid):
        """Test that a missing file raises OSError on iteration."""
        with pytest.raises(OSError):
            list(ScenarioFile(temp_dir / "missing.scen", grid))


class TestRandomScenarios:
    """Tests for seeded random scenarios."""

    def test_count_and_determinism(self, grid):
        """Test that the same seed gives the same sequence."""
        a = list(RandomScenarios(grid, 20, seed=5))
        b = list(RandomScenarios(grid, 20, seed=5))

        assert len(a) == 20
        assert a == b

    def test_restartable(self, grid):
        """Test that iterating the same source twice repeats the sequence."""
        source = RandomScenarios(grid, 10, seed=1)

        assert list(source) == list(source)

    def test_different_seeds(self):
        """Test that different seeds give different sequences."""
        grid = OccupancyGrid.from_rows(["." * 30] * 30)

        assert list(RandomScenarios(grid, 10, seed=1)) != list(RandomScenarios(grid, 10, seed=2))

    def test_pairs_share_a_component(self):
        """Test that every start/goal pair is passable and connected."""
        grid = OccupancyGrid.from_rows(["..@...", "..@...", "@@@...", "......"])
        labels = grid.components()

        for scenario in RandomScenarios(grid, 50, seed=9):
            assert grid.is_passable(*scenario.start)
            assert grid.is_passable(*scenario.goal)
            assert labels[scenario.start.y, scenario.start.x] == labels[scenario.goal.y, scenario.goal.x]
            assert scenario.expected_cost is None

    def test_no_passable_cells(self):
        """Test that a fully blocked grid yields nothing."""
        grid = OccupancyGrid.from_rows(["@@", "@@"])

        assert list(RandomScenarios(grid, 10)) == []

    def test_negative_count(self, grid):
        with pytest.raises(ValueError):
            RandomScenarios(grid, -1)


class TestOpenScenarios:
    """Tests for choosing a scenario source."""

    def test_scenario_path(self):
        """Test that the scenario file sits next to the map."""
        assert scenario_path_for("maps/bitgrid/arena.map") == Path("maps/bitgrid/arena.map.scen")
        assert scenario_path_for("arena.map", ".txt") == Path("arena.map.txt")

    def test_auto_uses_file(self, temp_dir, grid):
        """Test that auto prefers an existing scenario file."""
        write_scen(temp_dir, SCEN_TEXT)

        source = open_scenarios(temp_dir / "arena.map", grid)

        assert isinstance(source, ScenarioFile)

    def test_auto_falls_back_to_random(self, temp_dir, grid):
        """Test that auto samples when there is no scenario file."""
        source = open_scenarios(temp_dir / "arena.map", grid, count=7, seed=3)

        assert isinstance(source, RandomScenarios)
        assert len(list(source)) == 7

    def test_file_required(self, temp_dir, grid):
        """Test that 'file' fails when the scenario file is missing."""
        with pytest.raises(OSError):
            open_scenarios(temp_dir / "arena.map", grid, source="file")

    def test_random_ignores_file(self, temp_dir, grid):
        """Test that 'random' samples even when a file exists."""
        write_scen(temp_dir, SCEN_TEXT)

        source = open_scenarios(temp_dir / "arena.map", grid, source="random")

        assert isinstance(source, RandomScenarios)

    def test_invalid_source(self, temp_dir, grid):
        with pytest.raises(ValueError):
            open_scenarios(temp_dir / "arena.map", grid, source="database")
