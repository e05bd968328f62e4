"""
Command line front-ends.

``gridbench`` runs every scenario of one map with one algorithm and prints a
single result line. ``gridbench-corpus`` runs a whole map set and prints one
``<algorithm> <total>`` line per algorithm. Result lines go to stdout; logs go
to stderr.
"""

import argparse
import json
import logging
import sys
from typing import Optional

from .benchmark import BenchmarkConfig, BenchmarkRunner
from .errors import FormatError
from .search import Algorithm

logger = logging.getLogger(__name__)

ALGORITHM_NAMES = [a.value for a in Algorithm]


def setup_logging(verbose: bool, quiet: bool = False, log_file: str | None = None) -> None:
    """Configure logging to stderr (stdout carries the results)."""
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
    )


def positive_int(value: str) -> int:
    """argparse type for integers >= 1."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid integer: {value}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"Must be at least 1. Got: {number}")
    return number


def positive_float(value: str) -> float:
    """argparse type for floats > 0."""
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid number: {value}")
    if number <= 0:
        raise argparse.ArgumentTypeError(f"Must be positive. Got: {number}")
    return number


def add_search_arguments(parser: argparse.ArgumentParser) -> None:
    """Options shared by both front-ends. Defaults of None mean 'use config'."""
    # Scenario settings
    parser.add_argument(
        "--scenarios",
        dest="scenario_source",
        choices=["auto", "file", "random"],
        default=None,
        help="Scenario source: the map's .scen file, random sampling, "
        "or the file when present (default: auto)",
    )
    parser.add_argument(
        "--scenario-suffix",
        type=str,
        default=None,
        help="Suffix appended to the map file name to find scenarios (default: .scen)",
    )
    parser.add_argument(
        "--count",
        dest="random_scenarios",
        type=positive_int,
        default=None,
        help="Number of random scenarios per map (default: 100)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for sampled scenarios (default: 42)",
    )

    # Search settings
    parser.add_argument(
        "--corner-cutting",
        action="store_true",
        default=None,
        help="Allow diagonal moves past one blocked orthogonal neighbour "
        "(disables the expected-cost check)",
    )
    parser.add_argument(
        "--time-budget",
        type=positive_float,
        default=None,
        help="Per-search time limit in seconds; slower scenarios are skipped",
    )

    # Execution control
    parser.add_argument(
        "--workers",
        dest="max_workers",
        type=positive_int,
        default=None,
        help="Threads used to run a map's scenarios (default: 1)",
    )
    parser.add_argument(
        "--samples",
        type=positive_int,
        default=None,
        help="Timing repetitions per scenario (default: 1)",
    )
    parser.add_argument(
        "--no-verify",
        dest="verify_expected",
        action="store_false",
        default=None,
        help="Don't compare solved costs with the scenario file's optimal lengths",
    )
    parser.add_argument(
        "--tolerance",
        type=positive_float,
        default=None,
        help="Absolute tolerance for expected-cost checks (default: 0.001)",
    )

    # Configuration file
    parser.add_argument(
        "--config",
        type=str,
        help="Path to JSON configuration file (command line options override it)",
    )

    # Logging
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose output",
    )
    parser.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Only log errors",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Also write logs to this file",
    )


CONFIG_OPTIONS = [
    "maps_root",
    "map_set",
    "map_pattern",
    "algorithms",
    "scenario_source",
    "scenario_suffix",
    "random_scenarios",
    "seed",
    "corner_cutting",
    "time_budget",
    "max_workers",
    "samples",
    "verify_expected",
    "tolerance",
]


def build_config_from_args(args: argparse.Namespace) -> BenchmarkConfig:
    """
    Build BenchmarkConfig from an optional config file plus command line overrides.

    Raises:
        OSError: If the config file cannot be read
        ValueError: If the config file or a value is invalid
    """
    data = BenchmarkConfig.load(args.config).to_dict() if args.config else {}

    for name in CONFIG_OPTIONS:
        value = getattr(args, name, None)
        if value is not None:
            data[name] = value

    return BenchmarkConfig.from_dict(data)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the single-map front-end."""
    parser = argparse.ArgumentParser(
        prog="gridbench",
        description="Run every scenario of one grid map with one search algorithm",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Output:
  <algorithm> <total_cost> <nodes_expanded> <mean_ms> <solved>/<scenarios>

Examples:
  # Scenarios from maps/bitgrid/arena.map.scen
  python main.py -a jps maps/bitgrid/arena.map

  # 500 random scenarios, corner cutting allowed
  python main.py -a astar --scenarios random --count 500 --corner-cutting arena.map

  # Threaded, with 5 timing samples per scenario
  python main.py -a dijkstra --workers 4 --samples 5 arena.map
        """,
    )

    parser.add_argument(
        "--algorithm",
        "-a",
        type=str.lower,
        required=True,
        choices=ALGORITHM_NAMES,
        help="Search algorithm",
    )
    parser.add_argument(
        "map",
        type=str,
        help="Map file (.map, or an image such as .png)",
    )
    parser.add_argument(
        "--report",
        choices=["text", "json"],
        default="text",
        help="Print the result line (text) or the full map result as JSON (default: text)",
    )

    add_search_arguments(parser)
    return parser


def create_corpus_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the corpus front-end."""
    parser = argparse.ArgumentParser(
        prog="gridbench-corpus",
        description="Benchmark search algorithms over every map in a map set",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Output:
  one "<algorithm> <total_cost>" line per algorithm

Examples:
  # All algorithms over maps/bitgrid/**/*.map
  python benchmark.py bitgrid

  # Two algorithms, different corpus root, JSON report
  python benchmark.py dao --maps-root /data/movingai --algorithms jps astar --report json

  # Use a config file
  python benchmark.py bitgrid --config benchmark_config.json
        """,
    )

    parser.add_argument(
        "map_set",
        type=str,
        nargs="?",
        default=None,
        help="Map set directory below the maps root (default: bitgrid)",
    )
    parser.add_argument(
        "--maps-root",
        type=str,
        default=None,
        help="Root folder holding map sets (default: maps)",
    )
    parser.add_argument(
        "--pattern",
        dest="map_pattern",
        type=str,
        default=None,
        help="Glob pattern for map files, searched recursively (default: *.map)",
    )
    parser.add_argument(
        "--algorithms",
        type=str.lower,
        nargs="+",
        choices=ALGORITHM_NAMES,
        default=None,
        help="Algorithms to run, in output order (default: jps astar dijkstra)",
    )
    parser.add_argument(
        "--report",
        choices=["text", "json", "summary"],
        default="text",
        help="Totals lines (text), the aggregated report as JSON, "
        "or a summary table (default: text)",
    )

    add_search_arguments(parser)
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Single-map entry point. Returns the process exit code."""
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose, args.quiet, args.log_file)

    try:
        config = build_config_from_args(args)
    except (OSError, ValueError) as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    runner = BenchmarkRunner(config)

    try:
        result = runner.run_map(args.map, Algorithm.from_name(args.algorithm))
    except (OSError, FormatError) as e:
        logger.error(f"Failed to run {args.map}: {e}")
        return 1
    except KeyboardInterrupt:
        print("\n\nInterrupted.", file=sys.stderr)
        return 130
    except Exception as e:
        logger.exception(f"Benchmark failed: {e}")
        return 1

    if args.report == "json":
        print(json.dumps(result.to_dict(include_outcomes=True), indent=2))
    else:
        print(result.result_line())
    return 0


def corpus_main(argv: Optional[list[str]] = None) -> int:
    """Corpus entry point. Returns the process exit code."""
    parser = create_corpus_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose, args.quiet, args.log_file)

    try:
        config = build_config_from_args(args)
    except (OSError, ValueError) as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    try:
        maps = config.get_maps()
    except ValueError as e:
        logger.error(str(e))
        return 1
    if not maps:
        logger.error(f"No maps matching {config.map_pattern} found in {config.map_folder}")
        return 1

    def progress_callback(completed: int, total: int, message: str) -> None:
        pct = completed / total * 100 if total > 0 else 0
        print(f"[{pct:5.1f}%] {message}", file=sys.stderr)

    runner = BenchmarkRunner(
        config, progress_callback=progress_callback if args.verbose else None
    )

    try:
        aggregator = runner.run_corpus()
    except KeyboardInterrupt:
        print("\n\nBenchmark interrupted.", file=sys.stderr)
        return 130
    except Exception as e:
        logger.exception(f"Benchmark failed: {e}")
        return 1

    if aggregator.num_failed:
        logger.warning(f"{aggregator.num_failed} runs failed; see errors above")

    if args.report == "json":
        print(json.dumps(aggregator.generate_report(), indent=2))
    elif args.report == "summary":
        aggregator.print_summary()
    else:
        for line in aggregator.total_lines():
            print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
