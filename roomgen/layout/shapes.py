"""Room shape classification.

A room's open-direction set (doors to its four neighbours) decides its
category and orientation; the category then picks an asset variant from the
caller's pool. Orientation labels and yaw come from the shared direction
table in ``cells``.
"""
from __future__ import annotations
from typing import Dict, FrozenSet, Iterable, List, NamedTuple, Optional, Tuple
import random

from .cells import COMPASS, DIRECTIONS, Cell, Direction
from .connectivity import ConnectionGraph

DEAD_END = 'dead-end'
STRAIGHT = 'straight'
TURN = 'turn'
T_JUNCTION = 't-junction'
CROSSROAD = 'crossroad'
ISOLATED = 'isolated'

DOOR_SIDE = 'door'
WALL_SIDE = 'wall'
WINDOW_SIDE = 'window'


class Shape(NamedTuple):
    category: str
    orientation: str
    yaw: float


def _build_table() -> Dict[FrozenSet[Direction], Shape]:
    table: Dict[FrozenSet[Direction], Shape] = {frozenset(): Shape(ISOLATED, 'none', 0.0)}
    for i, d in enumerate(COMPASS):
        info = DIRECTIONS[d]
        table[frozenset([d])] = Shape(DEAD_END, d.value, info.yaw)
        clockwise = COMPASS[(i + 1) % 4]
        table[frozenset([d, clockwise])] = Shape(TURN, f"{d.value}-{clockwise.value}", info.yaw)
        # T-junctions are keyed by the closed side; yaw 0 is the missing-south asset
        table[frozenset(COMPASS) - {d}] = Shape(T_JUNCTION, f"missing-{d.value}",
                                                DIRECTIONS[info.opposite].yaw)
    table[frozenset([Direction.NORTH, Direction.SOUTH])] = Shape(STRAIGHT, 'north-south', 0.0)
    table[frozenset([Direction.EAST, Direction.WEST])] = Shape(STRAIGHT, 'east-west', 90.0)
    table[frozenset(COMPASS)] = Shape(CROSSROAD, 'any', 0.0)
    return table


SHAPE_TABLE = _build_table()


def classify(open_dirs: Iterable[Direction]) -> Shape:
    return SHAPE_TABLE[frozenset(open_dirs)]


def dedicated_shape(open_dirs: List[Direction]) -> Shape:
    """Special rooms always use a single-opening orientation facing their first door."""
    if not open_dirs:
        return SHAPE_TABLE[frozenset()]
    first = open_dirs[0]
    return Shape(DEAD_END, first.value, DIRECTIONS[first].yaw)


class RoomShapeClassifier:
    def __init__(self, graph: ConnectionGraph, rng: random.Random, pools: Dict[str, List[str]]):
        self.graph = graph
        self.rng = rng
        self.pools = pools
        xs = [c.x for c in graph.cells] or [0]
        ys = [c.y for c in graph.cells] or [0]
        self.extent: Tuple[int, int, int, int] = (min(xs), min(ys), max(xs), max(ys))

    def shape_of(self, cell: Cell) -> Shape:
        return classify(self.graph.open_directions(cell))

    def pick_variant(self, category: str) -> Optional[str]:
        """Uniform pick from the category pool; None when the pool is empty or missing."""
        pool = self.pools.get(category) or []
        if not pool:
            return None
        return pool[self.rng.randrange(len(pool))]

    def near_perimeter(self, cell: Cell, d: Direction) -> bool:
        min_x, min_y, max_x, max_y = self.extent
        if d is Direction.NORTH:
            return cell.y <= min_y + 1
        if d is Direction.SOUTH:
            return cell.y >= max_y - 1
        if d is Direction.EAST:
            return cell.x >= max_x - 1
        return cell.x <= min_x + 1

    def sides(self, cell: Cell) -> Dict[str, str]:
        out = {}
        for d in COMPASS:
            n = cell.neighbor(d)
            if self.graph.connected(cell, n):
                out[d.value] = DOOR_SIDE
            elif n not in self.graph.cells and self.near_perimeter(cell, d):
                out[d.value] = WINDOW_SIDE
            else:
                out[d.value] = WALL_SIDE
        return out


__all__ = [
    "Shape",
    "SHAPE_TABLE",
    "RoomShapeClassifier",
    "classify",
    "dedicated_shape",
    "DEAD_END",
    "STRAIGHT",
    "TURN",
    "T_JUNCTION",
    "CROSSROAD",
    "ISOLATED",
]
