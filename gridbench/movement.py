"""8-directional movement rules shared by all search algorithms."""

import math
from enum import Enum

from .grid import Cell, OccupancyGrid

SQRT2 = math.sqrt(2)
DIAGONAL_EXTRA = SQRT2 - 1

# (dx, dy) in a fixed order; successor order feeds the tie-breaking sequence
STRAIGHT_DIRECTIONS = ((1, 0), (0, 1), (-1, 0), (0, -1))
DIAGONAL_DIRECTIONS = ((1, 1), (-1, 1), (-1, -1), (1, -1))
DIRECTIONS = STRAIGHT_DIRECTIONS + DIAGONAL_DIRECTIONS


class CornerPolicy(Enum):
    """When a diagonal step past a blocked orthogonal neighbour is legal."""

    NO_CORNER_CUTTING = "no-corner-cutting"  # both orthogonal neighbours passable
    ALLOW_CORNER_CUTTING = "corner-cutting"  # at least one orthogonal neighbour passable

    @classmethod
    def from_flag(cls, corner_cutting: bool) -> "CornerPolicy":
        return cls.ALLOW_CORNER_CUTTING if corner_cutting else cls.NO_CORNER_CUTTING


def octile(dx: int, dy: int) -> float:
    """Octile distance for a displacement."""
    dx, dy = abs(dx), abs(dy)
    if dx < dy:
        dx, dy = dy, dx
    return dx + DIAGONAL_EXTRA * dy


def octile_distance(a: Cell, b: Cell) -> float:
    return octile(b[0] - a[0], b[1] - a[1])


def step_allowed(
    grid: OccupancyGrid, cell: Cell, dx: int, dy: int, policy: CornerPolicy
) -> bool:
    """
    Check a single unit step from ``cell`` in direction (dx, dy).

    Args:
        grid: The grid to move on
        cell: Origin cell (must be passable)
        dx: -1, 0 or 1
        dy: -1, 0 or 1
        policy: Corner-cutting rule for diagonal steps

    Returns:
        True if the target is passable and, for a diagonal, the policy allows it
    """
    x, y = cell
    if not grid.is_passable(x + dx, y + dy):
        return False
    if dx == 0 or dy == 0:
        return True

    side_x = grid.is_passable(x + dx, y)
    side_y = grid.is_passable(x, y + dy)
    if policy is CornerPolicy.NO_CORNER_CUTTING:
        return side_x and side_y
    return side_x or side_y


def step_successors(grid: OccupancyGrid, policy: CornerPolicy):
    """
    Build the single-step successor function used by Dijkstra and A*.

    The returned callable maps ``(index, parent)`` on the padded flat layout
    to a list of ``(neighbour_index, step_cost)``. ``parent`` is ignored.
    """
    cells = grid.cells
    stride = grid.stride
    strict = policy is CornerPolicy.NO_CORNER_CUTTING

    straight = [dx + dy * stride for dx, dy in STRAIGHT_DIRECTIONS]
    diagonal = [(dx + dy * stride, dx, dy * stride) for dx, dy in DIAGONAL_DIRECTIONS]

    def successors(index, parent):
        result = [(index + offset, 1.0) for offset in straight if cells[index + offset]]
        for offset, side_x, side_y in diagonal:
            target = index + offset
            if not cells[target]:
                continue
            if strict:
                if not (cells[index + side_x] and cells[index + side_y]):
                    continue
            elif not (cells[index + side_x] or cells[index + side_y]):
                continue
            result.append((target, SQRT2))
        return result

    return successors
