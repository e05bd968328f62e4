"""Occupancy grids and the MovingAI octile map format."""

import logging
from collections import deque
from pathlib import Path
from typing import Iterable, NamedTuple

import numpy as np
from PIL import Image, UnidentifiedImageError

from .errors import FormatError

logger = logging.getLogger(__name__)

# Map file format:
#
#   type octile
#   height <H>
#   width <W>
#   map
#   <H rows of W characters>
MAP_TYPE = "octile"
HEADER_LINES = 4

PASSABLE_CHARS = frozenset(".GSW")
BLOCKED_CHARS = frozenset("@OT")
ALPHABET = PASSABLE_CHARS | BLOCKED_CHARS

# Characters written for grids built from images
PASSABLE_CHAR = "."
BLOCKED_CHAR = "@"

IMAGE_SUFFIXES = frozenset({".png", ".bmp", ".pgm", ".gif"})


class Cell(NamedTuple):
    """Integer grid coordinate, x to the right and y downwards."""

    x: int
    y: int


class OccupancyGrid:
    """
    Immutable passable/blocked grid.

    The terrain characters and the derived boolean ``passable`` array are
    frozen on construction. For the search loops the grid also keeps a flat
    ``bytes`` copy padded with one blocked cell on every side, so neighbour
    lookups never need a bounds check. Flat indices are ``(y + 1) * stride
    + (x + 1)``.
    """

    def __init__(self, terrain: np.ndarray):
        """
        Initialize the grid.

        Args:
            terrain: 2D array of single characters, indexed [y, x]

        Raises:
            FormatError: If the array is empty or contains unknown characters
        """
        terrain = np.array(terrain, dtype="U1")
        if terrain.ndim != 2 or terrain.size == 0:
            raise FormatError(f"Grid must be a non-empty 2D array, got shape {terrain.shape}")

        known = np.isin(terrain, sorted(ALPHABET))
        if not known.all():
            y, x = np.argwhere(~known)[0]
            raise FormatError(f"Unknown map character {terrain[y, x]!r} at ({x}, {y})")

        passable = np.isin(terrain, sorted(PASSABLE_CHARS))
        terrain.setflags(write=False)
        passable.setflags(write=False)

        self._terrain = terrain
        self._passable = passable
        self._height, self._width = terrain.shape
        self._stride = self._width + 2

        padded = np.zeros((self._height + 2, self._width + 2), dtype=np.uint8)
        padded[1:-1, 1:-1] = passable
        self._cells = padded.tobytes()

    @classmethod
    def from_rows(cls, rows: Iterable[str]) -> "OccupancyGrid":
        """Build a grid from equal-length strings of map characters."""
        rows = list(rows)
        widths = {len(row) for row in rows}
        if len(widths) > 1:
            raise FormatError(f"Rows have differing widths: {sorted(widths)}")
        return cls(np.array([list(row) for row in rows], dtype="U1"))

    @classmethod
    def from_passable(cls, passable: np.ndarray) -> "OccupancyGrid":
        """Build a grid from a boolean array (True = passable)."""
        passable = np.asarray(passable, dtype=bool)
        return cls(np.where(passable, PASSABLE_CHAR, BLOCKED_CHAR))

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def passable(self) -> np.ndarray:
        """Read-only boolean array indexed [y, x]."""
        return self._passable

    @property
    def terrain(self) -> np.ndarray:
        """Read-only character array indexed [y, x]."""
        return self._terrain

    @property
    def stride(self) -> int:
        """Row length of the padded flat layout."""
        return self._stride

    @property
    def cells(self) -> bytes:
        """Padded flat passability, 1 = passable."""
        return self._cells

    @property
    def passable_count(self) -> int:
        return int(self._passable.sum())

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self._width and 0 <= y < self._height

    def is_passable(self, x: int, y: int) -> bool:
        """True if (x, y) is inside the grid and not blocked."""
        return self.in_bounds(x, y) and bool(self._passable[y, x])

    def index(self, x: int, y: int) -> int:
        """Flat padded index of an in-bounds cell."""
        return (y + 1) * self._stride + x + 1

    def cell(self, index: int) -> Cell:
        """Inverse of index()."""
        y, x = divmod(index, self._stride)
        return Cell(x - 1, y - 1)

    def components(self) -> np.ndarray:
        """4-connected component labels, see connected_components()."""
        return connected_components(self)

    def rows(self) -> list[str]:
        """Terrain rows as strings."""
        return ["".join(row) for row in self._terrain]

    def to_text(self) -> str:
        """Serialize in the octile map format."""
        return serialize_map(self)

    def __repr__(self) -> str:
        return (
            f"OccupancyGrid(width={self._width}, height={self._height}, "
            f"passable={self.passable_count})"
        )


def serialize_map(grid: OccupancyGrid) -> str:
    """Render a grid as octile map text (trailing newline included)."""
    lines = [
        f"type {MAP_TYPE}",
        f"height {grid.height}",
        f"width {grid.width}",
        "map",
    ]
    lines.extend(grid.rows())
    return "\n".join(lines) + "\n"


def _header_value(lines: list[str], index: int, keyword: str, source) -> int:
    """Parse a ``<keyword> <positive int>`` header line."""
    if index >= len(lines):
        raise FormatError("Unexpected end of file in header", source, index + 1)

    parts = lines[index].split()
    if len(parts) != 2 or parts[0] != keyword:
        raise FormatError(f"Expected '{keyword} <n>', got {lines[index]!r}", source, index + 1)

    try:
        value = int(parts[1])
    except ValueError:
        raise FormatError(f"Invalid {keyword}: {parts[1]!r}", source, index + 1)

    if value <= 0:
        raise FormatError(f"{keyword} must be positive, got {value}", source, index + 1)
    return value


def parse_map(text: str, source=None) -> OccupancyGrid:
    """
    Parse octile map text.

    Args:
        text: Full file contents
        source: Optional file name used in error messages

    Returns:
        The parsed OccupancyGrid

    Raises:
        FormatError: On a bad header, wrong row count or width, an unknown
            character, or trailing data after the grid
    """
    lines = text.splitlines()

    if not lines or lines[0].split() != ["type", MAP_TYPE]:
        got = lines[0] if lines else ""
        raise FormatError(f"Expected 'type {MAP_TYPE}', got {got!r}", source, 1)

    height = _header_value(lines, 1, "height", source)
    width = _header_value(lines, 2, "width", source)

    if len(lines) <= 3 or lines[3].split() != ["map"]:
        got = lines[3] if len(lines) > 3 else ""
        raise FormatError(f"Expected 'map', got {got!r}", source, 4)

    rows = lines[HEADER_LINES:HEADER_LINES + height]
    if len(rows) < height:
        raise FormatError(
            f"Expected {height} rows, found {len(rows)}", source, HEADER_LINES + len(rows) + 1
        )

    for i, row in enumerate(rows):
        line_no = HEADER_LINES + i + 1
        if len(row) != width:
            raise FormatError(f"Expected {width} columns, found {len(row)}", source, line_no)
        unknown = set(row) - ALPHABET
        if unknown:
            raise FormatError(f"Unknown map characters {sorted(unknown)}", source, line_no)

    for i, extra in enumerate(lines[HEADER_LINES + height:]):
        if extra.strip():
            raise FormatError(
                "Unexpected data after the last row", source, HEADER_LINES + height + i + 1
            )

    return OccupancyGrid.from_rows(rows)


def load_image_map(path: str | Path, threshold: int = 128) -> OccupancyGrid:
    """
    Load a grid from a raster image.

    Pixels whose grayscale value is at least ``threshold`` are passable,
    darker pixels are blocked.

    Raises:
        OSError: If the file cannot be read
        FormatError: If the file is not a recognizable image or is too large
    """
    path = Path(path)
    try:
        with Image.open(path) as img:
            gray = np.asarray(img.convert("L"))
    except UnidentifiedImageError as e:
        raise FormatError(f"Not a readable image: {e}", path)
    except Image.DecompressionBombError as e:
        raise FormatError(f"Image too large: {e}", path)

    grid = OccupancyGrid.from_passable(gray >= threshold)
    logger.debug(f"Loaded image map {path}: {grid}")
    return grid


def load_map(path: str | Path) -> OccupancyGrid:
    """
    Load a map file, dispatching on the file suffix.

    Raises:
        OSError: If the file cannot be opened or read
        FormatError: If the contents are malformed
    """
    path = Path(path)
    if path.suffix.lower() in IMAGE_SUFFIXES:
        return load_image_map(path)

    data = path.read_bytes()
    try:
        text = data.decode("ascii")
    except UnicodeDecodeError as e:
        raise FormatError(f"Map is not ASCII text (byte {e.start})", path)

    grid = parse_map(text, source=path)
    logger.debug(f"Loaded map {path}: {grid}")
    return grid


def connected_components(grid: OccupancyGrid) -> np.ndarray:
    """
    Label 4-connected regions of passable cells.

    Every legal diagonal step has an orthogonal detour under either corner
    policy, so two cells are mutually reachable iff they share a label.

    Returns:
        int32 array indexed [y, x]; -1 for blocked cells
    """
    cells = grid.cells
    stride = grid.stride
    labels = [-1] * len(cells)
    offsets = (1, -1, stride, -stride)
    label = 0

    for origin in range(len(cells)):
        if not cells[origin] or labels[origin] != -1:
            continue
        labels[origin] = label
        queue = deque([origin])
        while queue:
            current = queue.popleft()
            for offset in offsets:
                neighbour = current + offset
                if cells[neighbour] and labels[neighbour] == -1:
                    labels[neighbour] = label
                    queue.append(neighbour)
        label += 1

    padded = np.array(labels, dtype=np.int32).reshape(grid.height + 2, grid.width + 2)
    return padded[1:-1, 1:-1].copy()
