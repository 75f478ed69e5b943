"""Locked-area carving.

Grows a region away from the origin one cell at a time. Every candidate is
checked on a trial copy of the locked set: the BFS from the origin, walking
only doors whose endpoints are both unlocked, must still reach every unlocked
room. Accepted candidates are committed, the rest are discarded. Afterwards
every boundary door is removed and a single gate is re-opened.
"""
from __future__ import annotations
from typing import Dict, List, NamedTuple, Optional, Set
import math
import random

from .cells import COMPASS, ORIGIN, Cell, Direction
from .connectivity import ConnectionGraph, bfs

MIN_CELLS_FOR_LOCK = 5


def target_locked_rooms(occupied: int, fraction: float) -> int:
    # rounded first so 10 * 0.3 gives 3, not 4
    return max(2, math.ceil(round(occupied * fraction, 9)))


class Gate(NamedTuple):
    locked: Cell
    unlocked: Cell
    facing: Direction  # from the locked room toward the unlocked one


class CarveOutputs(NamedTuple):
    locked: List[Cell]
    gate: Optional[Gate]
    target: int
    rejected: int
    removed: int
    sealed: int


class LockedAreaCarver:
    def __init__(self, graph: ConnectionGraph, rng: random.Random, fraction: float = 0.3):
        self.graph = graph
        self.rng = rng
        self.fraction = min(0.5, max(0.2, fraction))
        self.locked: Dict[Cell, None] = {}
        self.rejected = 0

    def target_size(self) -> int:
        return target_locked_rooms(len(self.graph.cells), self.fraction)

    def unlocked_reachable(self, locked: Set[Cell]) -> bool:
        reach = bfs(self.graph, ORIGIN, allow=lambda a, b: a not in locked and b not in locked)
        return all(c in reach for c in self.graph.cells if c not in locked)

    def try_lock(self, candidate: Cell) -> bool:
        """Lock ``candidate`` only if no unlocked room would be stranded."""
        if candidate == ORIGIN or candidate in self.locked or candidate not in self.graph.cells:
            return False
        trial = set(self.locked)
        trial.add(candidate)
        if not self.unlocked_reachable(trial):
            self.rejected += 1
            return False
        self.locked[candidate] = None
        return True

    def seed_order(self) -> List[Cell]:
        # sorted() is stable, so the first cell found wins distance ties
        return sorted((c for c in self.graph.cells if c != ORIGIN), key=lambda c: -c.manhattan(ORIGIN))

    def _lockable_neighbors(self, cell: Cell, skip: Set[Cell]) -> List[Cell]:
        out = []
        for d in COMPASS:
            n = cell.neighbor(d)
            if n in self.graph.cells and n != ORIGIN and n not in self.locked and n not in skip:
                out.append(n)
        return out

    def grow(self, target: int) -> None:
        seed = next((c for c in self.seed_order() if self.try_lock(c)), None)
        if seed is None:
            return
        candidates = self._lockable_neighbors(seed, set())
        seen = set(candidates)
        while candidates and len(self.locked) < target:
            cand = candidates.pop(self.rng.randrange(len(candidates)))
            if not self.try_lock(cand):
                # re-queued once an adjacent cell commits; it may no longer shield anything
                seen.discard(cand)
                continue
            for n in self._lockable_neighbors(cand, seen):
                seen.add(n); candidates.append(n)

    def cut_boundary(self) -> int:
        removed = 0
        for cell in self.locked:
            for d in COMPASS:
                n = cell.neighbor(d)
                if n in self.graph.cells and n not in self.locked and self.graph.disconnect(cell, n):
                    removed += 1
        return removed

    def boundary_pairs(self) -> List[Gate]:
        return [Gate(cell, cell.neighbor(d), d) for cell in self.locked for d in COMPASS
                if cell.neighbor(d) in self.graph.cells and cell.neighbor(d) not in self.locked]

    def place_gate(self) -> Optional[Gate]:
        pairs = self.boundary_pairs()
        if not pairs:
            return None
        gate = pairs[self.rng.randrange(len(pairs))]
        self.graph.connect(gate.locked, gate.unlocked)
        return gate

    def seal(self, gate: Gate) -> int:
        """Open locked-to-locked doors until every locked room is reachable from the gate."""
        inside = lambda a, b: a in self.locked and b in self.locked  # noqa: E731
        added = 0
        reach = bfs(self.graph, gate.locked, allow=inside)
        while len(reach) < len(self.locked):
            opened = False
            for cell in list(reach):
                for d in COMPASS:
                    n = cell.neighbor(d)
                    if n in self.locked and n not in reach:
                        self.graph.connect(cell, n); added += 1; opened = True
                        break
                if opened:
                    break
            if not opened:
                break
            reach = bfs(self.graph, gate.locked, allow=inside)
        return added

    def carve(self) -> CarveOutputs:
        self.locked.clear(); self.rejected = 0
        if len(self.graph.cells) < MIN_CELLS_FOR_LOCK:
            return CarveOutputs([], None, 0, 0, 0, 0)
        target = self.target_size()
        self.grow(target)
        removed = self.cut_boundary()
        gate = self.place_gate()
        sealed = self.seal(gate) if gate else 0
        return CarveOutputs(list(self.locked), gate, target, self.rejected, removed, sealed)


__all__ = ["LockedAreaCarver", "CarveOutputs", "Gate", "MIN_CELLS_FOR_LOCK", "target_locked_rooms"]
