#!/usr/bin/env python3
"""
Benchmark CLI for running search algorithms over a whole map set.

Examples:
    # All algorithms over maps/bitgrid/**/*.map
    python benchmark.py bitgrid

    # Selected algorithms with random scenarios
    python benchmark.py dao --algorithms jps astar --scenarios random --count 200
"""

import sys

from gridbench.cli import corpus_main

if __name__ == "__main__":
    sys.exit(corpus_main())
