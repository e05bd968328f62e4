"""Benchmark runner for timing searches over maps and map corpora."""

import logging
import threading
import traceback
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from ..errors import FormatError, InvalidQueryError, SearchTimeoutError
from ..grid import OccupancyGrid, load_map
from ..metrics import MapResult, ScenarioOutcome
from ..movement import CornerPolicy
from ..scenarios import Scenario, open_scenarios
from ..search import Algorithm, search
from .aggregator import ResultsAggregator
from .config import BenchmarkConfig, MapRun

logger = logging.getLogger(__name__)


class BenchmarkRunner:
    """
    Runs the scenarios of one map, or of every map in a corpus.

    Features:
    - Runs every scenario of a map with one algorithm and sums path costs
    - Skips invalid and timed-out scenarios without aborting the map
    - Verifies solved costs against expected optimal lengths
    - Optionally shares the grid across a thread pool of searches
    - Provides progress callbacks for corpus runs
    """

    def __init__(
        self,
        config: BenchmarkConfig,
        progress_callback: Optional[Callable[[int, int, str], None]] = None,
    ):
        """
        Initialize the benchmark runner.

        Args:
            config: Benchmark configuration
            progress_callback: Optional callback(completed, total, message) for progress updates
        """
        self.config = config
        self.progress_callback = progress_callback
        self.policy = CornerPolicy.from_flag(config.corner_cutting)
        # Scenario file lengths are optimal without corner cutting
        self.verify_expected = config.verify_expected and not config.corner_cutting

        # Track corpus progress
        self.completed_count = 0
        self.failed_count = 0
        self.total_runs = 0

        self._progress_lock = threading.Lock()

    def _report_progress(self, message: str) -> None:
        """Report progress to callback if available."""
        if self.progress_callback:
            self.progress_callback(self.completed_count, self.total_runs, message)

    def _run_scenario(
        self, grid: OccupancyGrid, scenario: Scenario, algorithm: Algorithm
    ) -> ScenarioOutcome:
        """
        Run one scenario ``config.samples`` times.

        Invalid queries and timeouts are logged and reported as skipped.
        """
        timings = []
        result = None

        for _ in range(self.config.samples):
            try:
                result = search(
                    grid,
                    scenario.start,
                    scenario.goal,
                    algorithm,
                    policy=self.policy,
                    time_budget=self.config.time_budget,
                )
            except (InvalidQueryError, SearchTimeoutError) as e:
                logger.warning(f"Skipping scenario {scenario.start} -> {scenario.goal}: {e}")
                return ScenarioOutcome(scenario=scenario, status="skipped", error=str(e))
            timings.append(result.elapsed)

        if not result.reachable:
            logger.debug(f"Unreachable: {scenario.start} -> {scenario.goal}")
            return ScenarioOutcome(
                scenario=scenario,
                status="unreachable",
                nodes_expanded=result.nodes_expanded,
                elapsed=timings,
            )

        mismatch = False
        if self.verify_expected and scenario.expected_cost is not None:
            if abs(result.cost - scenario.expected_cost) > self.config.tolerance:
                mismatch = True
                logger.warning(
                    f"Cost mismatch for {scenario.start} -> {scenario.goal}: "
                    f"got {result.cost:.6f}, expected {scenario.expected_cost:.6f}"
                )

        return ScenarioOutcome(
            scenario=scenario,
            status="solved",
            cost=result.cost,
            nodes_expanded=result.nodes_expanded,
            elapsed=timings,
            mismatch=mismatch,
        )

    def run_map(self, map_path: str | Path, algorithm: Algorithm | str) -> MapResult:
        """
        Run every scenario of one map with one algorithm.

        Args:
            map_path: Map file to load
            algorithm: Algorithm or its name

        Returns:
            MapResult summarizing all scenarios

        Raises:
            OSError: If the map or a required scenario file cannot be read
            FormatError: If the map or scenario file is malformed
        """
        if isinstance(algorithm, str):
            algorithm = Algorithm.from_name(algorithm)

        grid = load_map(map_path)
        source = open_scenarios(
            map_path,
            grid,
            source=self.config.scenario_source,
            count=self.config.random_scenarios,
            seed=self.config.seed,
            suffix=self.config.scenario_suffix,
        )
        # Read all scenarios before the first search
        scenarios = list(source)

        logger.info(
            f"Running: {algorithm.value} on {Path(map_path).name} "
            f"({grid.width}x{grid.height}, {len(scenarios)} scenarios from {source!r})"
        )

        if self.config.max_workers > 1 and len(scenarios) > 1:
            with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
                outcomes = list(
                    executor.map(lambda s: self._run_scenario(grid, s, algorithm), scenarios)
                )
        else:
            outcomes = [self._run_scenario(grid, s, algorithm) for s in scenarios]

        result = MapResult.from_outcomes(
            map_path, algorithm.value, outcomes, corner_cutting=self.config.corner_cutting
        )

        logger.info(
            f"  Result: {result.solved}/{result.scenarios} solved, "
            f"{result.unreachable} unreachable, {result.skipped} skipped, "
            f"total cost {result.total_cost:.6f}"
        )
        if result.mismatched:
            logger.warning(
                f"  {result.mismatched} scenarios disagree with expected costs on {map_path}"
            )

        return result

    def _run_single(self, run: MapRun, aggregator: ResultsAggregator) -> None:
        """Execute one (map, algorithm) run and record its outcome."""
        try:
            result = self.run_map(run.map_path, run.algorithm)
        except (OSError, FormatError) as e:
            logger.error(f"Run failed for {run.run_id}: {e}")
            logger.debug(traceback.format_exc())
            with self._progress_lock:
                self.failed_count += 1
                aggregator.add_failure(str(run.map_path), run.algorithm.value, str(e))
            return

        with self._progress_lock:
            aggregator.add_result(result)
            self.completed_count += 1

    def run_corpus(self, algorithms: Optional[list[Algorithm | str]] = None) -> ResultsAggregator:
        """
        Run every map of the configured map set with each algorithm.

        Maps that fail to load are logged, counted as failed and skipped; the
        scan always continues.

        Args:
            algorithms: Algorithms to run (default: the configured ones)

        Returns:
            ResultsAggregator holding per-map results and per-algorithm totals

        Raises:
            ValueError: If the map folder does not exist
        """
        if algorithms is None:
            algorithms = self.config.get_algorithms()
        else:
            algorithms = [
                a if isinstance(a, Algorithm) else Algorithm.from_name(a) for a in algorithms
            ]

        start_time = datetime.now()
        runs = self.config.generate_runs(algorithms)
        aggregator = ResultsAggregator([a.value for a in algorithms])

        self.total_runs = len(runs)
        self.completed_count = 0
        self.failed_count = 0

        logger.info(f"Benchmark: {len(runs)} runs over {self.config.map_folder}")
        logger.info(f"  Algorithms: {[a.value for a in algorithms]}")
        logger.info(f"  Corner cutting: {'allowed' if self.config.corner_cutting else 'disallowed'}")
        logger.info(f"  Scenario source: {self.config.scenario_source}")

        self._report_progress(f"Starting benchmark with {len(runs)} runs")

        for i, run in enumerate(runs):
            self._report_progress(
                f"[{i + 1}/{len(runs)}] {run.algorithm.value} - {run.map_path.name}"
            )
            self._run_single(run, aggregator)

        duration = (datetime.now() - start_time).total_seconds()

        logger.info("=" * 50)
        logger.info("BENCHMARK COMPLETE")
        logger.info("=" * 50)
        logger.info(f"Total runs: {len(runs)}")
        logger.info(f"Completed: {self.completed_count}")
        logger.info(f"Failed: {self.failed_count}")
        logger.info(f"Duration: {duration:.1f}s")

        return aggregator
