"""Benchmark module for running pathfinding algorithms over map corpora."""

from .config import BenchmarkConfig, MapRun
from .runner import BenchmarkRunner
from .aggregator import AlgorithmTotals, ResultsAggregator

__all__ = [
    "BenchmarkConfig",
    "MapRun",
    "BenchmarkRunner",
    "AlgorithmTotals",
    "ResultsAggregator",
]
