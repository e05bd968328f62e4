"""gridbench - Dijkstra, A* and Jump Point Search benchmarks on grid maps."""

from .errors import FormatError, GridBenchError, InvalidQueryError, SearchTimeoutError
from .grid import Cell, OccupancyGrid, load_image_map, load_map, parse_map, serialize_map
from .movement import CornerPolicy
from .search import Algorithm, SearchResult, interpolate_path, path_cost, search
from .scenarios import RandomScenarios, Scenario, ScenarioFile, open_scenarios
from .metrics import MapResult, ScenarioOutcome

__version__ = "0.1.0"

__all__ = [
    "GridBenchError",
    "FormatError",
    "InvalidQueryError",
    "SearchTimeoutError",
    "Cell",
    "OccupancyGrid",
    "load_map",
    "load_image_map",
    "parse_map",
    "serialize_map",
    "CornerPolicy",
    "Algorithm",
    "SearchResult",
    "search",
    "interpolate_path",
    "path_cost",
    "Scenario",
    "ScenarioFile",
    "RandomScenarios",
    "open_scenarios",
    "MapResult",
    "ScenarioOutcome",
]
