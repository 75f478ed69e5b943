"""Grid primitives shared by every generation phase.

Directions live in a single lookup table (offset, opposite, yaw, pivot) so
shape classification, gate facing and world placement all agree.
"""
from __future__ import annotations
from enum import Enum
from typing import Dict, Iterator, NamedTuple, Tuple


class Cell(NamedTuple):
    x: int
    y: int

    def neighbor(self, direction: "Direction") -> "Cell":
        dx, dy = DIRECTIONS[direction].offset
        return Cell(self.x + dx, self.y + dy)

    def neighbors(self) -> Iterator[Tuple["Direction", "Cell"]]:
        for d in COMPASS:
            yield d, self.neighbor(d)

    def manhattan(self, other: "Cell") -> int:
        return abs(self.x - other.x) + abs(self.y - other.y)


ORIGIN = Cell(0, 0)


class Direction(str, Enum):
    NORTH = 'north'
    EAST = 'east'
    SOUTH = 'south'
    WEST = 'west'


class DirectionInfo(NamedTuple):
    offset: Tuple[int, int]
    opposite: Direction
    yaw: float
    # pivot sits on the north-west corner; rotated assets shift by whole cells
    pivot: Tuple[int, int]


# y grows southward
DIRECTIONS: Dict[Direction, DirectionInfo] = {
    Direction.NORTH: DirectionInfo((0, -1), Direction.SOUTH, 0.0, (0, 0)),
    Direction.EAST: DirectionInfo((1, 0), Direction.WEST, 90.0, (1, 0)),
    Direction.SOUTH: DirectionInfo((0, 1), Direction.NORTH, 180.0, (1, 1)),
    Direction.WEST: DirectionInfo((-1, 0), Direction.EAST, 270.0, (0, 1)),
}

# Fixed iteration order; every BFS and side scan walks the compass this way.
COMPASS: Tuple[Direction, ...] = (Direction.NORTH, Direction.EAST, Direction.SOUTH, Direction.WEST)

ConnectionKey = Tuple[Cell, Cell]


def connection_key(a: Cell, b: Cell) -> ConnectionKey:
    """Order-independent key for the door between two adjacent cells."""
    return (a, b) if a <= b else (b, a)


def direction_between(a: Cell, b: Cell) -> Direction:
    for d in COMPASS:
        if a.neighbor(d) == b:
            return d
    raise ValueError(f"{a} and {b} are not adjacent")


def pivot_offset(yaw: float, cell_size: float) -> Tuple[float, float]:
    for info in DIRECTIONS.values():
        if abs(info.yaw - yaw) < 0.1:
            return (info.pivot[0] * cell_size, info.pivot[1] * cell_size)
    return (0.0, 0.0)


def cell_center(cell: Cell, cell_size: float, z: float = 0.0) -> Tuple[float, float, float]:
    half = cell_size / 2.0
    return (cell.x * cell_size + half, cell.y * cell_size + half, z)


__all__ = [
    "Cell",
    "ORIGIN",
    "Direction",
    "DirectionInfo",
    "DIRECTIONS",
    "COMPASS",
    "ConnectionKey",
    "connection_key",
    "direction_between",
    "pivot_offset",
    "cell_center",
]
