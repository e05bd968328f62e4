"""
Jump Point Search successor generation.

A node's successors are the jump points reached by jumping from it along its
canonical directions. Canonical directions are the natural directions of the
arrival move plus any forced ones. All work is done on the grid's padded flat
layout, where the border is blocked and no bounds checks are needed.
"""

from .grid import OccupancyGrid
from .movement import DIRECTIONS, SQRT2, CornerPolicy


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


class _Jumper:
    """Straight and diagonal jumps for one grid, goal and corner policy."""

    def __init__(self, grid: OccupancyGrid, goal: int, policy: CornerPolicy):
        self.cells = grid.cells
        self.stride = grid.stride
        self.goal = goal
        self.strict = policy is CornerPolicy.NO_CORNER_CUTTING

    def straight(self, index: int, step: int, side: int):
        """
        Jump from ``index`` by ``step`` until a jump point, the goal or a wall.

        Args:
            index: Start of the jump (not itself tested)
            step: Flat offset of the direction
            side: Flat offset perpendicular to the direction

        Returns:
            (jump_point, distance) or None
        """
        cells = self.cells
        goal = self.goal
        current = index
        distance = 0

        if self.strict:
            while True:
                current += step
                if not cells[current]:
                    return None
                distance += 1
                if current == goal:
                    return current, distance
                behind = current - step
                if (not cells[behind + side] and cells[current + side]) or (
                    not cells[behind - side] and cells[current - side]
                ):
                    return current, distance

        while True:
            current += step
            if not cells[current]:
                return None
            distance += 1
            if current == goal:
                return current, distance
            ahead = current + step
            if (not cells[current + side] and cells[ahead + side]) or (
                not cells[current - side] and cells[ahead - side]
            ):
                return current, distance

    def diagonal(self, index: int, step_x: int, step_y: int):
        """
        Jump diagonally by ``step_x + step_y`` from ``index``.

        Each cell reached is a jump point if it is the goal, has a forced
        neighbour, or a straight sub-jump along either component finds one.

        Returns:
            (jump_point, diagonal_steps) or None
        """
        cells = self.cells
        goal = self.goal
        step = step_x + step_y
        current = index
        distance = 0

        while True:
            side_x = cells[current + step_x]
            side_y = cells[current + step_y]
            if not cells[current + step]:
                return None
            if self.strict:
                if not (side_x and side_y):
                    return None
            elif not (side_x or side_y):
                return None

            current += step
            distance += 1
            if current == goal:
                return current, distance

            if not self.strict and (
                (cells[current - step_x + step_y] and not cells[current - step_x])
                or (cells[current + step_x - step_y] and not cells[current - step_y])
            ):
                return current, distance

            if (
                self.straight(current, step_x, step_y) is not None
                or self.straight(current, step_y, step_x) is not None
            ):
                return current, distance

    def jump(self, index: int, dx: int, dy: int):
        """Jump in direction (dx, dy); returns (jump_point, cost) or None."""
        stride = self.stride
        if dx and dy:
            found = self.diagonal(index, dx, dy * stride)
            if found is None:
                return None
            return found[0], found[1] * SQRT2

        step = dx + dy * stride
        side = stride if dx else 1
        found = self.straight(index, step, side)
        if found is None:
            return None
        return found[0], float(found[1])

    def directions(self, index: int, parent: int | None) -> list[tuple[int, int]]:
        """Canonical directions for a node reached from ``parent``."""
        if parent is None:
            return list(DIRECTIONS)

        stride = self.stride
        cells = self.cells
        py, px = divmod(parent, stride)
        y, x = divmod(index, stride)
        dx = _sign(x - px)
        dy = _sign(y - py)

        if dx and dy:
            result = [(dx, 0), (0, dy), (dx, dy)]
            if not self.strict:
                if not cells[index - dx]:
                    result.append((-dx, dy))
                if not cells[index - dy * stride]:
                    result.append((dx, -dy))
            return result

        step = dx + dy * stride
        result = [(dx, dy)]
        sides = ((0, 1), (0, -1)) if dx else ((1, 0), (-1, 0))
        for sx, sy in sides:
            side = sx + sy * stride
            if self.strict:
                if not cells[index - step + side] and cells[index + side]:
                    result.append((sx, sy))
                    result.append((dx + sx, dy + sy))
            elif not cells[index + side]:
                result.append((dx + sx, dy + sy))
        return result


def jump_successors(grid: OccupancyGrid, goal: int, policy: CornerPolicy):
    """
    Build the JPS successor function for a search towards ``goal``.

    Args:
        grid: The grid to search
        goal: Flat padded index of the goal
        policy: Corner-cutting rule

    Returns:
        Callable mapping ``(index, parent)`` to a list of
        ``(jump_point_index, segment_cost)``
    """
    jumper = _Jumper(grid, goal, policy)

    def successors(index, parent):
        result = []
        for dx, dy in jumper.directions(index, parent):
            found = jumper.jump(index, dx, dy)
            if found is not None:
                result.append(found)
        return result

    return successors
