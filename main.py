#!/usr/bin/env python3
"""CLI entry point: run one map's scenarios with one search algorithm."""

import sys

from gridbench.cli import main

if __name__ == "__main__":
    sys.exit(main())
