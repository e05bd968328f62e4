"""Exception hierarchy for map loading, scenario parsing and search."""


class GridBenchError(Exception):
    """Base class for all gridbench errors."""


class FormatError(GridBenchError, ValueError):
    """A map or scenario file is malformed."""

    def __init__(self, message: str, path=None, line: int | None = None):
        self.path = path
        self.line = line
        location = ""
        if path is not None:
            location = f"{path}"
            if line is not None:
                location += f":{line}"
            location += ": "
        elif line is not None:
            location = f"line {line}: "
        super().__init__(f"{location}{message}")


class InvalidQueryError(GridBenchError, ValueError):
    """Start or goal is out of bounds or on a blocked cell."""


class SearchTimeoutError(GridBenchError, TimeoutError):
    """A search exceeded its time budget."""
