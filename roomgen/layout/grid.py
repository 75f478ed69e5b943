"""Randomised frontier growth of the occupied cell set."""
from __future__ import annotations
import random
from typing import Dict, List, NamedTuple, Optional, Set, Tuple

from .cells import COMPASS, ORIGIN, Cell


class GrowthOutputs(NamedTuple):
    cells: List[Cell]
    warning: Optional[str]


class GridLayoutEngine:
    """Grow the occupied set outward from the origin.

    With ``forced_corridor`` the origin gets a single occupied neighbour and its
    other in-bounds neighbours stay reserved for the whole run, so inside
    ``bounds`` the reachable limit is up to three cells below the bounded area.
    """

    def __init__(self, rng: random.Random, *, forced_corridor: bool = True,
                 bounds: Optional[Tuple[int, int, int, int]] = None):
        self.rng = rng
        self.forced_corridor = forced_corridor
        self.bounds = bounds
        # dict keeps insertion order for deterministic replay
        self.occupied: Dict[Cell, None] = {}
        self.frontier: List[Cell] = []
        self._queued: Set[Cell] = set()
        self._reserved: Set[Cell] = set()

    def in_bounds(self, cell: Cell) -> bool:
        if self.bounds is None:
            return True
        min_x, min_y, max_x, max_y = self.bounds
        return min_x <= cell.x <= max_x and min_y <= cell.y <= max_y

    def _occupy(self, cell: Cell) -> None:
        self.occupied[cell] = None
        for d in COMPASS:
            n = cell.neighbor(d)
            if n in self.occupied or n in self._queued or n in self._reserved:
                continue
            if not self.in_bounds(n):
                continue
            self.frontier.append(n)
            self._queued.add(n)

    def _take(self, index: int) -> Cell:
        cell = self.frontier.pop(index)
        self._queued.discard(cell)
        self._occupy(cell)
        return cell

    def grow(self, target: int) -> GrowthOutputs:
        """Grow to ``target`` cells; stops early (with a warning) if the frontier empties."""
        if target < 1:
            raise ValueError(f"target cell count must be >= 1, got {target}")
        self.occupied.clear(); self.frontier.clear()
        self._queued.clear(); self._reserved.clear()
        self._occupy(ORIGIN)
        remaining = target - 1
        if remaining > 0 and self.forced_corridor and self.frontier:
            # Single branch out of the origin: its other neighbours never join the frontier,
            # so the origin stays a dead end for the safe room.
            first = self.frontier[self.rng.randrange(len(self.frontier))]
            self._reserved.update(c for c in self.frontier if c != first)
            self.frontier = [first]
            self._queued = {first}
            self._take(0)
            remaining -= 1
        warning = None
        for _ in range(remaining):
            if not self.frontier:
                warning = (f"frontier exhausted: placed {len(self.occupied)} of {target} requested cells")
                break
            self._take(self.rng.randrange(len(self.frontier)))
        return GrowthOutputs(list(self.occupied), warning)


def is_connected(cells) -> bool:
    """True when the cells form one component under 4-adjacency (doors ignored)."""
    cells = set(cells)
    if not cells:
        return True
    start = ORIGIN if ORIGIN in cells else next(iter(cells))
    seen = {start}; stack = [start]
    while stack:
        cur = stack.pop()
        for d in COMPASS:
            n = cur.neighbor(d)
            if n in cells and n not in seen:
                seen.add(n); stack.append(n)
    return len(seen) == len(cells)


__all__ = ["GridLayoutEngine", "GrowthOutputs", "is_connected"]
